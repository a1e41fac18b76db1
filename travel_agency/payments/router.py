from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from travel_agency.database import get_db
from travel_agency.auth.dependencies import get_current_user, require_permission
from travel_agency.auth.policy import Action
from travel_agency.models import User
from travel_agency.payments.schemas import (
    PaymentCreateRequest, PaymentResponse, PaymentList, PaymentMethod, PaymentStatus
)
from travel_agency.payments.service import PaymentService, payment_to_dict
from travel_agency.utils import get_pagination, pagination_meta

router = APIRouter()

@router.post("/", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
def create_payment(
    request: PaymentCreateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Record a payment against a booking"""
    payment = PaymentService(db).create_payment(current_user, request)
    return payment_to_dict(payment)

@router.get("/", response_model=PaymentList)
def list_payments(
    payment_status: Optional[PaymentStatus] = Query(None, alias="status"),
    method: Optional[PaymentMethod] = Query(None),
    booking_id: Optional[str] = Query(None),
    page: int = Query(1),
    limit: int = Query(10),
    current_user: User = Depends(require_permission(Action.PAYMENT_LIST)),
    db: Session = Depends(get_db)
):
    """List payments (finance staff)"""
    skip, limit, page = get_pagination(page, limit)

    payments, total = PaymentService(db).list_payments(
        status=payment_status, method=method, booking_id=booking_id, skip=skip, limit=limit
    )

    return {
        "data": [payment_to_dict(p) for p in payments],
        "pagination": pagination_meta(total, page, limit)
    }

@router.put("/{payment_id}/confirm", response_model=PaymentResponse)
def confirm_payment(
    payment_id: str,
    current_user: User = Depends(require_permission(Action.PAYMENT_CONFIRM)),
    db: Session = Depends(get_db)
):
    """Confirm an initiated payment (finance staff)"""
    return payment_to_dict(PaymentService(db).confirm_payment(payment_id))
