from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from travel_agency.bookings.schemas import BookingStatus

class RecentBooking(BaseModel):
    id: str
    booking_code: str
    status: BookingStatus
    total_amount: Decimal
    currency: str
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    trip_title: Optional[str] = None
    created_at: Optional[datetime] = None

class DashboardSummary(BaseModel):
    total_bookings: int
    total_revenue: Decimal
    total_customers: int
    pending_bookings: int
    confirmed_bookings: int
    recent_bookings: List[RecentBooking] = []

class PaymentMethodTotal(BaseModel):
    method: str
    count: int
    amount: Decimal

class TopDeparture(BaseModel):
    departure_id: str
    trip: Optional[str] = None
    destination: Optional[str] = None
    bookings: int
    revenue: Decimal

class RevenueReport(BaseModel):
    total_revenue: Decimal
    expected_revenue: Decimal
    total_bookings: int
    payments_by_method: List[PaymentMethodTotal] = []
    top_trips: List[TopDeparture] = []

class StatusCount(BaseModel):
    status: BookingStatus
    count: int

class CategoryCount(BaseModel):
    category: str
    count: int

class BookingsReport(BaseModel):
    bookings_by_status: List[StatusCount] = []
    bookings_by_category: List[CategoryCount] = []
