"""
Booking Module

Seat reservation on scheduled trip departures and the booking lifecycle.

Key Components:
- booking_service.py: Transactional seat reservation, pricing and status transitions
- router.py: FastAPI endpoints for customers (create, list, view, cancel)
- schemas.py: Pydantic models for booking requests and responses

Invariants:
- A departure never has more seats reserved than its capacity
- Seats are released exactly once, when a booking moves to CANCELLED
- CANCELLED and COMPLETED bookings are terminal
"""

from .router import router
from .booking_service import BookingService
from .schemas import (
    BookingCreateRequest, BookingCancellationRequest, BookingStatusUpdateRequest,
    BookingStatus, BookingDetail, BookingSummary, BookingList
)

__all__ = [
    "router",
    "BookingService",
    "BookingCreateRequest",
    "BookingCancellationRequest",
    "BookingStatusUpdateRequest",
    "BookingStatus",
    "BookingDetail",
    "BookingSummary",
    "BookingList"
]
