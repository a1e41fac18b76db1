from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from travel_agency.models import Booking, Payment, Trip, TripDeparture, Destination, User
from travel_agency.auth.schemas import Role
from travel_agency.bookings.schemas import BookingStatus
from travel_agency.payments.schemas import PaymentStatus

# Bookings whose paid amount counts as revenue
REVENUE_STATUSES = (BookingStatus.CONFIRMED.value, BookingStatus.COMPLETED.value)
TOP_DEPARTURES_LIMIT = 5
RECENT_BOOKINGS_LIMIT = 5

def _in_range(query, column, start_date: Optional[datetime], end_date: Optional[datetime]):
    if start_date:
        query = query.filter(column >= start_date)
    if end_date:
        query = query.filter(column <= end_date)
    return query


class ReportService:
    """Dashboard and finance aggregates computed in the database"""

    def __init__(self, db: Session):
        self.db = db

    def get_summary(self) -> dict:
        total_bookings = self.db.query(func.count(Booking.id)).scalar()

        total_revenue = self.db.query(func.sum(Booking.paid_amount)).filter(
            Booking.status.in_(REVENUE_STATUSES)
        ).scalar()

        total_customers = self.db.query(func.count(User.id)).filter(
            User.role == Role.CUSTOMER.value
        ).scalar()

        status_counts = dict(
            self.db.query(Booking.status, func.count(Booking.id)).group_by(Booking.status).all()
        )

        recent = self.db.query(Booking).options(
            joinedload(Booking.customer),
            joinedload(Booking.departure).joinedload(TripDeparture.trip)
        ).order_by(Booking.created_at.desc()).limit(RECENT_BOOKINGS_LIMIT).all()

        return {
            "total_bookings": total_bookings or 0,
            "total_revenue": Decimal(total_revenue or 0),
            "total_customers": total_customers or 0,
            "pending_bookings": status_counts.get(BookingStatus.PENDING.value, 0),
            "confirmed_bookings": status_counts.get(BookingStatus.CONFIRMED.value, 0),
            "recent_bookings": [
                {
                    "id": b.id,
                    "booking_code": b.booking_code,
                    "status": b.status,
                    "total_amount": b.total_amount,
                    "currency": b.currency,
                    "customer_name": b.customer.name if b.customer else None,
                    "customer_email": b.customer.email if b.customer else None,
                    "trip_title": b.departure.trip.title,
                    "created_at": b.created_at
                }
                for b in recent
            ]
        }

    def get_revenue(self, start_date: Optional[datetime] = None, end_date: Optional[datetime] = None) -> dict:
        """Collected vs expected revenue, payment mix and top departures"""
        bookings = _in_range(
            self.db.query(Booking).filter(Booking.status.in_(REVENUE_STATUSES)),
            Booking.created_at, start_date, end_date
        )

        paid_sum, expected_sum = _in_range(
            self.db.query(func.sum(Booking.paid_amount), func.sum(Booking.total_amount)).filter(
                Booking.status.in_(REVENUE_STATUSES)
            ),
            Booking.created_at, start_date, end_date
        ).one()

        payments = _in_range(
            self.db.query(Payment.method, func.count(Payment.id), func.sum(Payment.amount)).filter(
                Payment.status == PaymentStatus.PAID.value
            ),
            Payment.paid_at, start_date, end_date
        ).group_by(Payment.method).all()

        revenue = func.sum(Booking.paid_amount).label("revenue")
        top = _in_range(
            self.db.query(
                TripDeparture.id,
                Trip.title,
                Destination.name,
                func.count(Booking.id),
                revenue
            ).select_from(Booking).join(Booking.departure).join(TripDeparture.trip).join(Trip.destination).filter(
                Booking.status.in_(REVENUE_STATUSES)
            ),
            Booking.created_at, start_date, end_date
        ).group_by(TripDeparture.id, Trip.title, Destination.name).order_by(
            revenue.desc()
        ).limit(TOP_DEPARTURES_LIMIT).all()

        return {
            "total_revenue": Decimal(paid_sum or 0),
            "expected_revenue": Decimal(expected_sum or 0),
            "total_bookings": bookings.count(),
            "payments_by_method": [
                {"method": method, "count": count, "amount": Decimal(amount or 0)}
                for method, count, amount in payments
            ],
            "top_trips": [
                {
                    "departure_id": departure_id,
                    "trip": title,
                    "destination": destination,
                    "bookings": count,
                    "revenue": Decimal(amount or 0)
                }
                for departure_id, title, destination, count, amount in top
            ]
        }

    def get_bookings_report(self, start_date: Optional[datetime] = None, end_date: Optional[datetime] = None) -> dict:
        by_status = _in_range(
            self.db.query(Booking.status, func.count(Booking.id)),
            Booking.created_at, start_date, end_date
        ).group_by(Booking.status).all()

        by_category = _in_range(
            self.db.query(Trip.category, func.count(Booking.id))
            .select_from(Booking)
            .join(Booking.departure).join(TripDeparture.trip),
            Booking.created_at, start_date, end_date
        ).group_by(Trip.category).all()

        return {
            "bookings_by_status": [{"status": s, "count": c} for s, c in by_status],
            "bookings_by_category": [{"category": cat, "count": c} for cat, c in by_category]
        }
