import logging
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from travel_agency.models import (
    Booking, BookingAddon, Passenger, TripDeparture, Trip, Addon, User
)
from travel_agency.bookings.schemas import BookingCreateRequest, BookingStatus
from travel_agency.trips.schemas import DepartureStatus
from travel_agency.auth.policy import Action, is_allowed
from travel_agency.exceptions import (
    NotFoundError, ConflictError, InvalidStateError, CapacityExceededError, ForbiddenError
)
from travel_agency.logging_config import timed
from travel_agency.utils import generate_booking_code

logger = logging.getLogger(__name__)

def booking_to_summary(booking: Booking) -> dict:
    departure = booking.departure
    trip = departure.trip
    return {
        "id": booking.id,
        "booking_code": booking.booking_code,
        "status": booking.status,
        "total_amount": booking.total_amount,
        "paid_amount": booking.paid_amount,
        "currency": booking.currency,
        "passenger_count": len(booking.passengers),
        "departure": {
            "id": departure.id,
            "start_date": departure.start_date,
            "end_date": departure.end_date,
            "status": departure.status,
            "trip_id": trip.id,
            "trip_title": trip.title,
            "trip_slug": trip.slug,
            "trip_category": trip.category,
            "destination_name": trip.destination.name if trip.destination else None
        },
        "customer": booking.customer,
        "created_at": booking.created_at
    }

def booking_to_detail(booking: Booking) -> dict:
    detail = booking_to_summary(booking)
    detail.update({
        "notes": booking.notes,
        "cancellation_reason": booking.cancellation_reason,
        "passengers": booking.passengers,
        "addons": [
            {
                "id": line.id,
                "addon_id": line.addon_id,
                "addon_name": line.addon.name if line.addon else None,
                "quantity": line.quantity,
                "price": line.price
            }
            for line in booking.addons
        ],
        "payments": booking.payments
    })
    return detail


class BookingService:
    """Seat reservation and booking lifecycle on scheduled departures"""

    def __init__(self, db: Session):
        self.db = db

    def _booking_query(self):
        return self.db.query(Booking).options(
            joinedload(Booking.customer),
            joinedload(Booking.departure).joinedload(TripDeparture.trip).joinedload(Trip.destination),
            selectinload(Booking.passengers),
            selectinload(Booking.addons).joinedload(BookingAddon.addon),
            selectinload(Booking.payments)
        )

    def _lock_departure(self, departure_id: str) -> Optional[TripDeparture]:
        """Read a departure row with FOR UPDATE so seat counts are serialized per departure"""
        return self.db.query(TripDeparture).filter(
            TripDeparture.id == departure_id
        ).populate_existing().with_for_update().first()

    @staticmethod
    def calculate_total(
        departure: TripDeparture,
        passengers: list,
        addon_lines: List[Tuple[Addon, int]]
    ) -> Decimal:
        """Per-passenger fare (child price when set) plus addon price times quantity"""
        total = Decimal("0")
        for passenger in passengers:
            if passenger.is_child and departure.child_price:
                total += Decimal(departure.child_price)
            else:
                total += Decimal(departure.base_price)

        for addon, quantity in addon_lines:
            total += Decimal(addon.price) * quantity

        return total

    def ensure_can_act(self, booking: Booking, user: User, action: Action = Action.BOOKING_ACT_FOR_OTHERS):
        """Owners may always act on their bookings; others need the policy action"""
        if booking.customer_id != user.id and not is_allowed(user.role, action):
            raise ForbiddenError("Access denied")

    @timed("create_booking")
    def create_booking(self, customer: User, request: BookingCreateRequest) -> Booking:
        """Reserve seats and create the booking, passengers and addon lines in one transaction"""
        seats_requested = len(request.passengers)

        try:
            departure = self._lock_departure(request.departure_id)
            if not departure:
                raise NotFoundError("Departure not found")

            if departure.status != DepartureStatus.AVAILABLE.value:
                raise InvalidStateError("This departure is not available for booking")

            available_seats = departure.capacity - departure.seats_reserved
            if available_seats < seats_requested:
                raise CapacityExceededError(f"Only {available_seats} seats available")

            catalog = {
                addon.id: addon
                for addon in self.db.query(Addon).filter(
                    Addon.trip_id == departure.trip_id,
                    Addon.is_active == True
                ).all()
            }

            addon_lines = []
            for selection in request.addons or []:
                addon = catalog.get(selection.addon_id)
                if not addon:
                    raise NotFoundError(f"Addon {selection.addon_id} not found")
                addon_lines.append((addon, selection.quantity))

            total_amount = self.calculate_total(departure, request.passengers, addon_lines)

            booking = Booking(
                booking_code=generate_booking_code(),
                customer_id=customer.id,
                departure_id=departure.id,
                status=BookingStatus.PENDING.value,
                total_amount=total_amount,
                paid_amount=Decimal("0"),
                currency=departure.currency,
                notes=request.notes,
                created_by_id=customer.id,
                passengers=[
                    Passenger(
                        full_name=p.full_name,
                        gender=p.gender.value,
                        date_of_birth=p.date_of_birth,
                        passport_no=p.passport_no,
                        nationality=p.nationality,
                        is_child=p.is_child
                    )
                    for p in request.passengers
                ],
                addons=[
                    BookingAddon(addon_id=addon.id, quantity=quantity, price=addon.price)
                    for addon, quantity in addon_lines
                ]
            )
            self.db.add(booking)

            departure.seats_reserved = departure.seats_reserved + seats_requested
            if departure.seats_reserved >= departure.capacity:
                departure.status = DepartureStatus.FULL.value

            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Booking code already exists, please retry")
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "Booking %s created for departure %s (%d seats, total %s %s)",
            booking.booking_code, departure.id, seats_requested, total_amount, booking.currency
        )
        return self.get_booking_by_id(booking.id)

    def get_booking_by_id(self, booking_id: str) -> Booking:
        booking = self._booking_query().filter(Booking.id == booking_id).first()
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    def get_booking(self, booking_id: str, user: User) -> Booking:
        """Get a booking visible to the user"""
        booking = self.get_booking_by_id(booking_id)
        self.ensure_can_act(booking, user)
        return booking

    def get_customer_bookings(
        self,
        customer_id: str,
        status: Optional[BookingStatus] = None,
        skip: int = 0,
        limit: int = 10
    ) -> Tuple[List[Booking], int]:
        """Bookings of one customer, newest first"""
        query = self._booking_query().filter(Booking.customer_id == customer_id)
        if status:
            query = query.filter(Booking.status == status.value)

        total = query.count()
        bookings = query.order_by(Booking.created_at.desc()).offset(skip).limit(limit).all()
        return bookings, total

    def search_bookings(
        self,
        status: Optional[BookingStatus] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 10
    ) -> Tuple[List[Booking], int]:
        """Search all bookings by status, code or customer name/email"""
        query = self._booking_query()

        if status:
            query = query.filter(Booking.status == status.value)

        if search:
            query = query.filter(
                or_(
                    Booking.booking_code.ilike(f"%{search}%"),
                    Booking.customer.has(User.name.ilike(f"%{search}%")),
                    Booking.customer.has(User.email.ilike(f"%{search}%"))
                )
            )

        total = query.count()
        bookings = query.order_by(Booking.created_at.desc()).offset(skip).limit(limit).all()
        return bookings, total

    def _release_seats(self, booking: Booking):
        """Give the booking's seats back and recompute the departure status from the new count"""
        departure = self._lock_departure(booking.departure_id)
        released = len(booking.passengers)

        departure.seats_reserved = max(0, departure.seats_reserved - released)

        if departure.status != DepartureStatus.CANCELLED.value:
            if departure.seats_reserved >= departure.capacity:
                departure.status = DepartureStatus.FULL.value
            else:
                departure.status = DepartureStatus.AVAILABLE.value

        logger.info(
            "Released %d seats on departure %s (%d/%d reserved)",
            released, departure.id, departure.seats_reserved, departure.capacity
        )

    def _lock_booking(self, booking_id: str) -> Optional[Booking]:
        """Re-read a booking row with FOR UPDATE so its status is checked and changed by one writer"""
        return self.db.query(Booking).filter(
            Booking.id == booking_id
        ).populate_existing().with_for_update().first()

    def _transition(self, booking: Booking, target: BookingStatus, reason: Optional[str] = None):
        try:
            booking = self._lock_booking(booking.id)
            if not booking:
                raise NotFoundError("Booking not found")

            if booking.status == BookingStatus.CANCELLED.value:
                raise InvalidStateError("Booking already cancelled")

            if booking.status == BookingStatus.COMPLETED.value:
                if target == BookingStatus.CANCELLED:
                    raise InvalidStateError("Cannot cancel completed booking")
                raise InvalidStateError("Booking is already completed")

            if booking.status == target.value:
                raise InvalidStateError(f"Booking is already {target.value}")

            if target == BookingStatus.CANCELLED:
                self._release_seats(booking)
                booking.cancellation_reason = reason

            booking.status = target.value
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info("Booking %s moved to %s", booking.booking_code, target.value)

    @timed("cancel_booking")
    def cancel_booking(self, booking_id: str, user: User, reason: Optional[str] = None) -> Booking:
        """Cancel a booking on behalf of its owner or staff"""
        booking = self.get_booking_by_id(booking_id)
        self.ensure_can_act(booking, user)
        self._transition(booking, BookingStatus.CANCELLED, reason)
        return self.get_booking_by_id(booking_id)

    @timed("update_booking_status")
    def update_booking_status(
        self,
        booking_id: str,
        status: BookingStatus,
        cancellation_reason: Optional[str] = None
    ) -> Booking:
        """Staff status change; cancelling releases seats like a customer cancellation"""
        booking = self.get_booking_by_id(booking_id)
        self._transition(booking, status, cancellation_reason)
        return self.get_booking_by_id(booking_id)
