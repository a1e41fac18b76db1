from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from enum import Enum

from travel_agency.trips.schemas import Pagination

class PaymentMethod(str, Enum):
    """Supported payment channels"""
    CASH = "CASH"
    EVC = "EVC"
    ZAAD = "ZAAD"
    SAHAL = "SAHAL"
    CARD = "CARD"
    BANK_TRANSFER = "BANK_TRANSFER"

class PaymentStatus(str, Enum):
    INITIATED = "INITIATED"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"

class PaymentCreateRequest(BaseModel):
    booking_id: str
    method: PaymentMethod
    amount: Decimal = Field(..., gt=0)
    reference: Optional[str] = Field(None, max_length=255)

class PaymentBookingInfo(BaseModel):
    id: str
    booking_code: str
    status: str
    total_amount: Decimal
    paid_amount: Decimal
    currency: str
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    trip_title: Optional[str] = None

class PaymentResponse(BaseModel):
    id: str
    booking_id: str
    method: PaymentMethod
    amount: Decimal
    status: PaymentStatus
    reference: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    booking: PaymentBookingInfo

class PaymentList(BaseModel):
    data: List[PaymentResponse]
    pagination: Pagination
