from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from travel_agency.database import get_db
from travel_agency.auth.dependencies import get_current_user
from travel_agency.models import User
from travel_agency.bookings.schemas import (
    BookingCreateRequest, BookingCancellationRequest, BookingDetail, BookingList, BookingStatus
)
from travel_agency.bookings.booking_service import BookingService, booking_to_summary, booking_to_detail
from travel_agency.utils import get_pagination, pagination_meta

router = APIRouter()

@router.post("/", response_model=BookingDetail, status_code=status.HTTP_201_CREATED)
def create_booking(
    request: BookingCreateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Book seats on a departure for the current user"""
    booking_service = BookingService(db)
    booking = booking_service.create_booking(current_user, request)
    return booking_to_detail(booking)

@router.get("/my", response_model=BookingList)
def get_my_bookings(
    status: Optional[BookingStatus] = Query(None, description="Filter by booking status"),
    page: int = Query(1, description="Page number"),
    limit: int = Query(10, description="Bookings per page (max 100)"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List the current user's bookings"""
    skip, limit, page = get_pagination(page, limit)

    booking_service = BookingService(db)
    bookings, total = booking_service.get_customer_bookings(
        current_user.id, status=status, skip=skip, limit=limit
    )

    return {
        "data": [booking_to_summary(b) for b in bookings],
        "pagination": pagination_meta(total, page, limit)
    }

@router.get("/{booking_id}", response_model=BookingDetail)
def get_booking(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get booking details"""
    booking_service = BookingService(db)
    return booking_to_detail(booking_service.get_booking(booking_id, current_user))

@router.post("/{booking_id}/cancel", response_model=BookingDetail)
def cancel_booking(
    booking_id: str,
    request: Optional[BookingCancellationRequest] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Cancel a booking and release its seats"""
    booking_service = BookingService(db)
    booking = booking_service.cancel_booking(
        booking_id, current_user, reason=request.reason if request else None
    )
    return booking_to_detail(booking)
