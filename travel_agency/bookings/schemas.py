from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import datetime, date
from decimal import Decimal
from enum import Enum

from travel_agency.trips.schemas import Pagination, DepartureStatus, TripCategory

class BookingStatus(str, Enum):
    """Booking status enumeration"""
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"

class Gender(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"

# Passenger Information
class PassengerInfo(BaseModel):
    """Individual passenger information"""
    full_name: str = Field(..., min_length=1)
    gender: Gender
    date_of_birth: Optional[date] = None
    passport_no: Optional[str] = None
    nationality: Optional[str] = None
    is_child: bool = False

class AddonSelection(BaseModel):
    addon_id: str
    quantity: int = Field(1, ge=1)

# Booking Request Models
class BookingCreateRequest(BaseModel):
    """Request to book seats on a departure"""
    departure_id: str
    passengers: List[PassengerInfo]
    addons: Optional[List[AddonSelection]] = None
    notes: Optional[str] = None

    @validator('passengers')
    def validate_passengers(cls, v):
        if not v:
            raise ValueError('At least one passenger is required')
        return v

class BookingCancellationRequest(BaseModel):
    """Request to cancel a booking"""
    reason: Optional[str] = None

class BookingStatusUpdateRequest(BaseModel):
    """Staff request to move a booking to another status"""
    status: BookingStatus
    cancellation_reason: Optional[str] = None

    @validator('cancellation_reason', always=True)
    def reason_required_for_cancel(cls, v, values):
        if values.get('status') == BookingStatus.CANCELLED and not v:
            raise ValueError('cancellation_reason is required when cancelling')
        return v

    @validator('status')
    def status_must_not_be_pending(cls, v):
        if v == BookingStatus.PENDING:
            raise ValueError('Bookings cannot be moved back to PENDING')
        return v

# Booking Response Models
class Passenger(PassengerInfo):
    id: str

    class Config:
        from_attributes = True

class BookingAddonLine(BaseModel):
    id: str
    addon_id: str
    addon_name: Optional[str] = None
    quantity: int
    price: Decimal

class PaymentLine(BaseModel):
    id: str
    method: str
    amount: Decimal
    status: str
    reference: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class DepartureInfo(BaseModel):
    id: str
    start_date: datetime
    end_date: datetime
    status: DepartureStatus
    trip_id: str
    trip_title: str
    trip_slug: str
    trip_category: TripCategory
    destination_name: Optional[str] = None

class CustomerInfo(BaseModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None

    class Config:
        from_attributes = True

class BookingSummary(BaseModel):
    id: str
    booking_code: str
    status: BookingStatus
    total_amount: Decimal
    paid_amount: Decimal
    currency: str
    passenger_count: int
    departure: DepartureInfo
    customer: Optional[CustomerInfo] = None
    created_at: Optional[datetime] = None

class BookingDetail(BookingSummary):
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    passengers: List[Passenger] = []
    addons: List[BookingAddonLine] = []
    payments: List[PaymentLine] = []

class BookingList(BaseModel):
    data: List[BookingSummary]
    pagination: Pagination
