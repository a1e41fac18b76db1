from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime, date
from decimal import Decimal

from travel_agency.auth.schemas import UserStatus
from travel_agency.bookings.schemas import BookingSummary
from travel_agency.trips.schemas import Pagination

class CustomerSummary(BaseModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    nationality: Optional[str] = None
    status: UserStatus
    booking_count: int = 0
    created_at: Optional[datetime] = None

class CustomerList(BaseModel):
    data: List[CustomerSummary]
    pagination: Pagination

class CustomerStats(BaseModel):
    """Aggregates over the customer's confirmed bookings"""
    total_bookings: int = 0
    total_spent: Decimal = Decimal("0")

class CustomerDetail(BaseModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    nationality: Optional[str] = None
    passport_no: Optional[str] = None
    date_of_birth: Optional[date] = None
    status: UserStatus
    created_at: Optional[datetime] = None
    bookings: List[BookingSummary] = []
    stats: CustomerStats
