"""
Payment Module

Records payments against bookings and reconciles the booking's paid amount.
Cash payments are settled on creation; every other method waits for
finance staff to confirm it.
"""

from .router import router
from .service import PaymentService
from .schemas import PaymentCreateRequest, PaymentResponse, PaymentMethod, PaymentStatus

__all__ = [
    "router",
    "PaymentService",
    "PaymentCreateRequest",
    "PaymentResponse",
    "PaymentMethod",
    "PaymentStatus"
]
