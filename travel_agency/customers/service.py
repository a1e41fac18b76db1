from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from travel_agency.models import User, Booking
from travel_agency.auth.schemas import Role
from travel_agency.bookings.schemas import BookingStatus
from travel_agency.bookings.booking_service import BookingService, booking_to_summary
from travel_agency.exceptions import NotFoundError

RECENT_BOOKINGS_LIMIT = 10

class CustomerService:
    """Read-only customer directory for agency staff"""

    def __init__(self, db: Session):
        self.db = db

    def list_customers(self, search: Optional[str] = None, skip: int = 0, limit: int = 10) -> Tuple[List[dict], int]:
        query = self.db.query(User).filter(User.role == Role.CUSTOMER.value)

        if search:
            query = query.filter(
                or_(
                    User.name.ilike(f"%{search}%"),
                    User.email.ilike(f"%{search}%"),
                    User.phone.ilike(f"%{search}%")
                )
            )

        total = query.count()
        customers = query.order_by(User.created_at.desc()).offset(skip).limit(limit).all()

        ids = [c.id for c in customers]
        counts = {}
        if ids:
            counts = dict(
                self.db.query(Booking.customer_id, func.count(Booking.id))
                .filter(Booking.customer_id.in_(ids))
                .group_by(Booking.customer_id)
                .all()
            )

        return [
            {
                "id": c.id,
                "name": c.name,
                "email": c.email,
                "phone": c.phone,
                "nationality": c.nationality,
                "status": c.status,
                "booking_count": counts.get(c.id, 0),
                "created_at": c.created_at
            }
            for c in customers
        ], total

    def get_customer(self, customer_id: str) -> dict:
        """Customer profile with recent bookings and confirmed-booking stats"""
        customer = self.db.query(User).filter(
            User.id == customer_id,
            User.role == Role.CUSTOMER.value
        ).first()
        if not customer:
            raise NotFoundError("Customer not found")

        bookings, _ = BookingService(self.db).get_customer_bookings(
            customer.id, limit=RECENT_BOOKINGS_LIMIT
        )

        confirmed_count, confirmed_total = self.db.query(
            func.count(Booking.id),
            func.sum(Booking.total_amount)
        ).filter(
            Booking.customer_id == customer.id,
            Booking.status == BookingStatus.CONFIRMED.value
        ).one()

        return {
            "id": customer.id,
            "name": customer.name,
            "email": customer.email,
            "phone": customer.phone,
            "nationality": customer.nationality,
            "passport_no": customer.passport_no,
            "date_of_birth": customer.date_of_birth,
            "status": customer.status,
            "created_at": customer.created_at,
            "bookings": [booking_to_summary(b) for b in bookings],
            "stats": {
                "total_bookings": confirmed_count or 0,
                "total_spent": Decimal(confirmed_total or 0)
            }
        }
