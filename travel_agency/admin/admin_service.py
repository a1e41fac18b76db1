import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, selectinload

from travel_agency.admin.schemas import (
    TripCreate, TripUpdate, AddonCreate, DepartureCreate, DepartureUpdate,
    DestinationCreate
)
from travel_agency.auth.schemas import Role, UserStatus
from travel_agency.bookings.booking_service import BookingService
from travel_agency.models import (
    Trip, TripDeparture, Addon, Destination, Booking, User, Setting
)
from travel_agency.trips.schemas import TripStatus, TripCategory, DepartureStatus
from travel_agency.exceptions import NotFoundError, ConflictError, InvalidStateError
from travel_agency.logging_config import timed
from travel_agency.utils import slugify, as_utc

logger = logging.getLogger(__name__)

class AdminManagementService:
    """Service for administrative management operations"""

    def __init__(self, db: Session):
        self.db = db
        self.booking_service = BookingService(db)

    def _count_by(self, column, ids: List[str]) -> Dict[str, int]:
        """Row counts grouped by a foreign key column, for the given parent ids"""
        if not ids:
            return {}
        rows = self.db.query(column, func.count()).filter(column.in_(ids)).group_by(column).all()
        return {key: count for key, count in rows}

    def _commit(self):
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    # Trips

    def _trip_to_dict(self, trip: Trip, departure_count: int = 0) -> dict:
        return {
            "id": trip.id,
            "title": trip.title,
            "slug": trip.slug,
            "description": trip.description,
            "duration_days": trip.duration_days,
            "category": trip.category,
            "status": trip.status,
            "inclusions": trip.inclusions,
            "exclusions": trip.exclusions,
            "highlights": trip.highlights,
            "destination": trip.destination,
            "image": trip.images[0].url if trip.images else None,
            "departure_count": departure_count,
            "created_at": trip.created_at
        }

    def _get_trip(self, trip_id: str) -> Trip:
        trip = self.db.query(Trip).options(
            joinedload(Trip.destination),
            selectinload(Trip.images)
        ).filter(Trip.id == trip_id).first()
        if not trip:
            raise NotFoundError("Trip not found")
        return trip

    def _ensure_destination(self, destination_id: str):
        if not self.db.query(Destination).filter(Destination.id == destination_id).first():
            raise NotFoundError("Destination not found")

    def _ensure_unique_slug(self, slug: str, exclude_trip_id: Optional[str] = None):
        query = self.db.query(Trip).filter(Trip.slug == slug)
        if exclude_trip_id:
            query = query.filter(Trip.id != exclude_trip_id)
        if query.first():
            raise ConflictError("Trip with similar title already exists")

    def list_trips(
        self,
        status: Optional[TripStatus] = None,
        category: Optional[TripCategory] = None,
        skip: int = 0,
        limit: int = 10
    ) -> Tuple[List[dict], int]:
        """All trips regardless of publication status"""
        query = self.db.query(Trip).options(
            joinedload(Trip.destination),
            selectinload(Trip.images)
        )
        if status:
            query = query.filter(Trip.status == status.value)
        if category:
            query = query.filter(Trip.category == category.value)

        total = query.count()
        trips = query.order_by(Trip.created_at.desc()).offset(skip).limit(limit).all()

        counts = self._count_by(TripDeparture.trip_id, [t.id for t in trips])
        return [self._trip_to_dict(t, counts.get(t.id, 0)) for t in trips], total

    @timed("create_trip")
    def create_trip(self, trip_data: TripCreate) -> dict:
        slug = slugify(trip_data.title)
        self._ensure_unique_slug(slug)
        self._ensure_destination(trip_data.destination_id)

        data = trip_data.dict()
        data["category"] = trip_data.category.value
        data["status"] = trip_data.status.value
        trip = Trip(slug=slug, **data)
        self.db.add(trip)
        self._commit()

        logger.info("Trip %s created (%s)", trip.slug, trip.status)
        return self._trip_to_dict(self._get_trip(trip.id))

    @timed("update_trip")
    def update_trip(self, trip_id: str, trip_data: TripUpdate) -> dict:
        trip = self._get_trip(trip_id)
        updates = trip_data.dict(exclude_unset=True)

        if updates.get("title"):
            updates["slug"] = slugify(updates["title"])
            self._ensure_unique_slug(updates["slug"], exclude_trip_id=trip.id)

        if updates.get("destination_id"):
            self._ensure_destination(updates["destination_id"])

        for field, value in updates.items():
            if value is None and field in ("title", "destination_id", "duration_days", "category", "status"):
                continue
            setattr(trip, field, value.value if hasattr(value, "value") else value)

        self._commit()
        logger.info("Trip %s updated: %s", trip.id, ", ".join(sorted(updates)))

        counts = self._count_by(TripDeparture.trip_id, [trip.id])
        return self._trip_to_dict(self._get_trip(trip.id), counts.get(trip.id, 0))

    @timed("delete_trip")
    def delete_trip(self, trip_id: str):
        trip = self._get_trip(trip_id)

        bookings = self.db.query(Booking).join(Booking.departure).filter(
            TripDeparture.trip_id == trip.id
        ).count()
        if bookings > 0:
            raise InvalidStateError("Cannot delete trip with existing bookings")

        self.db.delete(trip)
        self._commit()
        logger.info("Trip %s deleted", trip_id)

    def add_addon(self, trip_id: str, addon_data: AddonCreate) -> Addon:
        trip = self._get_trip(trip_id)

        addon = Addon(
            trip_id=trip.id,
            name=addon_data.name,
            description=addon_data.description,
            price=addon_data.price,
            type=addon_data.type.value,
            is_active=addon_data.is_active
        )
        self.db.add(addon)
        self._commit()
        self.db.refresh(addon)
        return addon

    # Departures

    def _departure_to_dict(self, departure: TripDeparture, booking_count: int = 0) -> dict:
        trip = departure.trip
        return {
            "id": departure.id,
            "trip_id": departure.trip_id,
            "trip_title": trip.title,
            "destination_name": trip.destination.name if trip.destination else None,
            "start_date": departure.start_date,
            "end_date": departure.end_date,
            "capacity": departure.capacity,
            "seats_reserved": departure.seats_reserved,
            "available_seats": departure.capacity - departure.seats_reserved,
            "base_price": departure.base_price,
            "child_price": departure.child_price,
            "currency": departure.currency,
            "status": departure.status,
            "booking_count": booking_count
        }

    def _get_departure(self, departure_id: str) -> TripDeparture:
        departure = self.db.query(TripDeparture).options(
            joinedload(TripDeparture.trip).joinedload(Trip.destination)
        ).filter(TripDeparture.id == departure_id).first()
        if not departure:
            raise NotFoundError("Departure not found")
        return departure

    def list_departures(
        self,
        trip_id: Optional[str] = None,
        status: Optional[DepartureStatus] = None,
        skip: int = 0,
        limit: int = 10
    ) -> Tuple[List[dict], int]:
        query = self.db.query(TripDeparture).options(
            joinedload(TripDeparture.trip).joinedload(Trip.destination)
        )
        if trip_id:
            query = query.filter(TripDeparture.trip_id == trip_id)
        if status:
            query = query.filter(TripDeparture.status == status.value)

        total = query.count()
        departures = query.order_by(TripDeparture.start_date.desc()).offset(skip).limit(limit).all()

        counts = self._count_by(Booking.departure_id, [d.id for d in departures])
        return [self._departure_to_dict(d, counts.get(d.id, 0)) for d in departures], total

    @timed("create_departure")
    def create_departure(self, departure_data: DepartureCreate) -> dict:
        if not self.db.query(Trip).filter(Trip.id == departure_data.trip_id).first():
            raise NotFoundError("Trip not found")

        departure = TripDeparture(
            trip_id=departure_data.trip_id,
            start_date=departure_data.start_date,
            end_date=departure_data.end_date,
            capacity=departure_data.capacity,
            seats_reserved=0,
            base_price=departure_data.base_price,
            child_price=departure_data.child_price,
            currency=departure_data.currency,
            status=DepartureStatus.AVAILABLE.value
        )
        self.db.add(departure)
        self._commit()

        logger.info("Departure %s created for trip %s (%d seats)", departure.id, departure.trip_id, departure.capacity)
        return self._departure_to_dict(self._get_departure(departure.id))

    @timed("update_departure")
    def update_departure(self, departure_id: str, departure_data: DepartureUpdate) -> dict:
        """
        Update a departure under a row lock.

        Capacity may not drop below the seats already reserved. Unless the
        departure is explicitly cancelled, its status is derived from the
        seat count.
        """
        updates = departure_data.dict(exclude_unset=True)

        try:
            departure = self.db.query(TripDeparture).filter(
                TripDeparture.id == departure_id
            ).populate_existing().with_for_update().first()
            if not departure:
                raise NotFoundError("Departure not found")

            start_date = as_utc(updates.get("start_date") or departure.start_date)
            end_date = as_utc(updates.get("end_date") or departure.end_date)
            if end_date <= start_date:
                raise InvalidStateError("end_date must be after start_date")

            capacity = updates.get("capacity") or departure.capacity
            if capacity < departure.seats_reserved:
                raise InvalidStateError(
                    f"Capacity cannot be lower than reserved seats ({departure.seats_reserved})"
                )

            for field in ("start_date", "end_date", "capacity", "base_price", "child_price", "currency"):
                if field in updates and (updates[field] is not None or field == "child_price"):
                    value = updates[field]
                    setattr(departure, field, value.upper() if field == "currency" else value)

            requested_status = updates.get("status")
            if requested_status == DepartureStatus.CANCELLED:
                departure.status = DepartureStatus.CANCELLED.value
            elif requested_status is not None or departure.status != DepartureStatus.CANCELLED.value:
                if departure.seats_reserved >= departure.capacity:
                    departure.status = DepartureStatus.FULL.value
                else:
                    departure.status = DepartureStatus.AVAILABLE.value

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info("Departure %s updated (%s)", departure_id, departure.status)
        counts = self._count_by(Booking.departure_id, [departure_id])
        return self._departure_to_dict(self._get_departure(departure_id), counts.get(departure_id, 0))

    @timed("delete_departure")
    def delete_departure(self, departure_id: str):
        departure = self._get_departure(departure_id)

        if self.db.query(Booking).filter(Booking.departure_id == departure.id).count() > 0:
            raise InvalidStateError("Cannot delete departure with existing bookings")

        self.db.delete(departure)
        self._commit()
        logger.info("Departure %s deleted", departure_id)

    # Bookings

    def list_bookings(self, status=None, search: Optional[str] = None, skip: int = 0, limit: int = 10):
        return self.booking_service.search_bookings(status=status, search=search, skip=skip, limit=limit)

    def update_booking_status(self, booking_id: str, status, cancellation_reason: Optional[str] = None) -> Booking:
        return self.booking_service.update_booking_status(booking_id, status, cancellation_reason)

    # Destinations

    def list_destinations(self) -> List[dict]:
        destinations = self.db.query(Destination).order_by(Destination.name.asc()).all()
        counts = self._count_by(Trip.destination_id, [d.id for d in destinations])
        return [
            {
                "id": d.id,
                "name": d.name,
                "country": d.country,
                "city": d.city,
                "description": d.description,
                "image_url": d.image_url,
                "trip_count": counts.get(d.id, 0)
            }
            for d in destinations
        ]

    def create_destination(self, destination_data: DestinationCreate) -> Destination:
        destination = Destination(**destination_data.dict())
        self.db.add(destination)
        self._commit()
        self.db.refresh(destination)
        logger.info("Destination %s created", destination.name)
        return destination

    # Users

    def _user_to_dict(self, user: User, booking_count: int = 0) -> dict:
        return {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "phone": user.phone,
            "role": user.role,
            "status": user.status,
            "booking_count": booking_count,
            "created_at": user.created_at
        }

    def list_users(
        self,
        role: Optional[Role] = None,
        status: Optional[UserStatus] = None,
        skip: int = 0,
        limit: int = 10
    ) -> Tuple[List[dict], int]:
        query = self.db.query(User)
        if role:
            query = query.filter(User.role == role.value)
        if status:
            query = query.filter(User.status == status.value)

        total = query.count()
        users = query.order_by(User.created_at.desc()).offset(skip).limit(limit).all()

        counts = self._count_by(Booking.customer_id, [u.id for u in users])
        return [self._user_to_dict(u, counts.get(u.id, 0)) for u in users], total

    def _get_user(self, user_id: str) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User not found")
        return user

    @timed("update_user_status")
    def update_user_status(self, user_id: str, status: UserStatus, acting_user: User) -> dict:
        user = self._get_user(user_id)
        if user.id == acting_user.id:
            raise InvalidStateError("You cannot change your own status")

        user.status = status.value
        self._commit()
        logger.info("User %s status set to %s by %s", user.email, status.value, acting_user.email)
        return self._user_to_dict(user)

    @timed("update_user_role")
    def update_user_role(self, user_id: str, role: Role, acting_user: User) -> dict:
        user = self._get_user(user_id)
        if user.id == acting_user.id:
            raise InvalidStateError("You cannot change your own role")

        user.role = role.value
        self._commit()
        logger.info("User %s role set to %s by %s", user.email, role.value, acting_user.email)
        return self._user_to_dict(user)

    # Settings

    def get_settings(self) -> List[Setting]:
        return self.db.query(Setting).order_by(Setting.key.asc()).all()

    def update_setting(self, key: str, value: Any) -> Setting:
        """Create or replace a setting value"""
        setting = self.db.query(Setting).filter(Setting.key == key).first()
        if setting:
            setting.value = value
        else:
            setting = Setting(key=key, value=value)
            self.db.add(setting)

        self._commit()
        self.db.refresh(setting)
        logger.info("Setting %s updated", key)
        return setting
