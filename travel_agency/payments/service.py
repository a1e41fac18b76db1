import logging
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session, joinedload

from travel_agency.models import Booking, Payment, TripDeparture, User
from travel_agency.payments.schemas import PaymentCreateRequest, PaymentMethod, PaymentStatus
from travel_agency.bookings.schemas import BookingStatus
from travel_agency.auth.policy import Action, is_allowed
from travel_agency.exceptions import (
    NotFoundError, InvalidStateError, InvalidAmountError, ForbiddenError
)
from travel_agency.logging_config import timed
from travel_agency.utils import utcnow

logger = logging.getLogger(__name__)

def payment_to_dict(payment: Payment) -> dict:
    booking = payment.booking
    customer = booking.customer
    departure = booking.departure
    return {
        "id": payment.id,
        "booking_id": payment.booking_id,
        "method": payment.method,
        "amount": payment.amount,
        "status": payment.status,
        "reference": payment.reference,
        "paid_at": payment.paid_at,
        "created_at": payment.created_at,
        "booking": {
            "id": booking.id,
            "booking_code": booking.booking_code,
            "status": booking.status,
            "total_amount": booking.total_amount,
            "paid_amount": booking.paid_amount,
            "currency": booking.currency,
            "customer_name": customer.name if customer else None,
            "customer_email": customer.email if customer else None,
            "trip_title": departure.trip.title if departure and departure.trip else None
        }
    }


class PaymentService:
    """Payment recording and booking balance reconciliation"""

    def __init__(self, db: Session):
        self.db = db

    def _payment_query(self):
        return self.db.query(Payment).options(
            joinedload(Payment.booking).joinedload(Booking.customer),
            joinedload(Payment.booking).joinedload(Booking.departure).joinedload(TripDeparture.trip)
        )

    def _lock_booking(self, booking_id: str) -> Optional[Booking]:
        return self.db.query(Booking).filter(
            Booking.id == booking_id
        ).populate_existing().with_for_update().first()

    def _apply_to_booking(self, booking_id: str, amount: Decimal):
        """
        Add a settled amount to the booking balance.

        The booking is re-read with a row lock in the current transaction so
        concurrent confirmations add to the latest paid amount.
        """
        booking = self._lock_booking(booking_id)
        if booking.status == BookingStatus.CANCELLED.value:
            raise InvalidStateError("Cannot apply a payment to a cancelled booking")

        remaining = Decimal(booking.total_amount) - Decimal(booking.paid_amount or 0)
        if Decimal(amount) > remaining:
            raise InvalidAmountError(f"Payment amount exceeds remaining balance of {remaining}")

        booking.paid_amount = Decimal(booking.paid_amount or 0) + Decimal(amount)

        if booking.paid_amount >= booking.total_amount and booking.status == BookingStatus.PENDING.value:
            booking.status = BookingStatus.CONFIRMED.value
            logger.info("Booking %s fully paid and confirmed", booking.booking_code)

    def get_payment(self, payment_id: str) -> Payment:
        payment = self._payment_query().filter(Payment.id == payment_id).first()
        if not payment:
            raise NotFoundError("Payment not found")
        return payment

    @timed("create_payment")
    def create_payment(self, user: User, request: PaymentCreateRequest) -> Payment:
        """Record a payment; cash is settled immediately"""
        try:
            booking = self._lock_booking(request.booking_id)
            if not booking:
                raise NotFoundError("Booking not found")

            if booking.customer_id != user.id and not is_allowed(user.role, Action.PAYMENT_ACT_FOR_OTHERS):
                raise ForbiddenError("Access denied")

            if booking.status == BookingStatus.CANCELLED.value:
                raise InvalidStateError("Cannot pay for a cancelled booking")

            remaining = Decimal(booking.total_amount) - Decimal(booking.paid_amount or 0)
            if request.amount > remaining:
                raise InvalidAmountError(f"Payment amount exceeds remaining balance of {remaining}")

            is_cash = request.method == PaymentMethod.CASH
            payment = Payment(
                booking_id=booking.id,
                method=request.method.value,
                amount=request.amount,
                reference=request.reference,
                status=PaymentStatus.PAID.value if is_cash else PaymentStatus.INITIATED.value,
                paid_at=utcnow() if is_cash else None
            )
            self.db.add(payment)

            if is_cash:
                self._apply_to_booking(booking.id, request.amount)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "Payment %s of %s via %s recorded for booking %s",
            payment.id, request.amount, request.method.value, booking.booking_code
        )
        return self.get_payment(payment.id)

    @timed("confirm_payment")
    def confirm_payment(self, payment_id: str) -> Payment:
        """Settle an initiated payment and apply it to its booking"""
        try:
            payment = self.db.query(Payment).filter(
                Payment.id == payment_id
            ).populate_existing().with_for_update().first()
            if not payment:
                raise NotFoundError("Payment not found")

            if payment.status == PaymentStatus.PAID.value:
                raise InvalidStateError("Payment already confirmed")

            payment.status = PaymentStatus.PAID.value
            payment.paid_at = utcnow()
            self._apply_to_booking(payment.booking_id, payment.amount)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info("Payment %s confirmed", payment_id)
        return self.get_payment(payment_id)

    def list_payments(
        self,
        status: Optional[PaymentStatus] = None,
        method: Optional[PaymentMethod] = None,
        booking_id: Optional[str] = None,
        skip: int = 0,
        limit: int = 10
    ) -> Tuple[List[Payment], int]:
        query = self._payment_query()

        if status:
            query = query.filter(Payment.status == status.value)
        if method:
            query = query.filter(Payment.method == method.value)
        if booking_id:
            query = query.filter(Payment.booking_id == booking_id)

        total = query.count()
        payments = query.order_by(Payment.created_at.desc()).offset(skip).limit(limit).all()
        return payments, total
