from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload, selectinload

from travel_agency.models import Trip, TripDeparture, Destination, Addon
from travel_agency.trips.schemas import TripStatus, TripCategory, DepartureStatus
from travel_agency.exceptions import NotFoundError
from travel_agency.utils import utcnow

def departure_to_dict(departure: TripDeparture) -> dict:
    """Serialize a departure together with its remaining seats"""
    return {
        "id": departure.id,
        "trip_id": departure.trip_id,
        "start_date": departure.start_date,
        "end_date": departure.end_date,
        "capacity": departure.capacity,
        "seats_reserved": departure.seats_reserved,
        "available_seats": departure.capacity - departure.seats_reserved,
        "base_price": departure.base_price,
        "child_price": departure.child_price,
        "currency": departure.currency,
        "status": departure.status
    }

class TripService:
    @staticmethod
    def upcoming_departures_query(db: Session, start_from: Optional[datetime] = None):
        return db.query(TripDeparture).filter(
            TripDeparture.status == DepartureStatus.AVAILABLE.value,
            TripDeparture.start_date >= (start_from or utcnow())
        )

    @staticmethod
    def get_trips(
        db: Session,
        skip: int = 0,
        limit: int = 10,
        category: Optional[TripCategory] = None,
        destination: Optional[str] = None,
        search: Optional[str] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        start_date: Optional[datetime] = None
    ) -> Tuple[List[dict], int]:
        """Published trips with their next bookable departure"""
        query = db.query(Trip).options(
            joinedload(Trip.destination),
            selectinload(Trip.images)
        ).filter(Trip.status == TripStatus.PUBLISHED.value)

        if category:
            query = query.filter(Trip.category == category.value)

        if destination:
            query = query.join(Trip.destination).filter(Destination.name.ilike(f"%{destination}%"))

        if search:
            query = query.filter(
                or_(
                    Trip.title.ilike(f"%{search}%"),
                    Trip.description.ilike(f"%{search}%")
                )
            )

        total = query.count()
        trips = query.order_by(Trip.created_at.desc()).offset(skip).limit(limit).all()

        summaries = []
        for trip in trips:
            departures = TripService.upcoming_departures_query(db, start_date).filter(
                TripDeparture.trip_id == trip.id
            )
            if min_price is not None:
                departures = departures.filter(TripDeparture.base_price >= min_price)
            if max_price is not None:
                departures = departures.filter(TripDeparture.base_price <= max_price)
            next_departure = departures.order_by(TripDeparture.start_date.asc()).first()

            summaries.append({
                "id": trip.id,
                "title": trip.title,
                "slug": trip.slug,
                "description": trip.description,
                "duration_days": trip.duration_days,
                "category": trip.category,
                "destination": trip.destination,
                "image": trip.images[0].url if trip.images else None,
                "min_price": next_departure.base_price if next_departure else None,
                "currency": next_departure.currency if next_departure else "USD",
                "next_departure": next_departure.start_date if next_departure else None
            })

        return summaries, total

    @staticmethod
    def get_trip_by_slug(db: Session, slug: str, include_unpublished: bool = False) -> dict:
        """Full trip detail with active addons and upcoming departures"""
        query = db.query(Trip).options(
            joinedload(Trip.destination),
            selectinload(Trip.images),
            selectinload(Trip.itineraries)
        ).filter(Trip.slug == slug)

        if not include_unpublished:
            query = query.filter(Trip.status == TripStatus.PUBLISHED.value)

        trip = query.first()

        if not trip:
            raise NotFoundError("Trip not found")

        addons = db.query(Addon).filter(
            Addon.trip_id == trip.id,
            Addon.is_active == True
        ).all()

        departures = TripService.upcoming_departures_query(db).filter(
            TripDeparture.trip_id == trip.id
        ).order_by(TripDeparture.start_date.asc()).all()

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
            "images": trip.images,
            "itineraries": trip.itineraries,
            "addons": addons,
            "departures": [departure_to_dict(d) for d in departures]
        }

    @staticmethod
    def get_trip_departures(db: Session, trip_id: str, start_date: Optional[datetime] = None) -> List[dict]:
        departures = TripService.upcoming_departures_query(db, start_date).filter(
            TripDeparture.trip_id == trip_id
        ).order_by(TripDeparture.start_date.asc()).all()
        return [departure_to_dict(d) for d in departures]
