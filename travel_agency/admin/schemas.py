from pydantic import BaseModel, Field, validator
from typing import Any, List, Optional
from datetime import datetime
from decimal import Decimal

from travel_agency.auth.schemas import Role, UserStatus
from travel_agency.trips.schemas import (
    Pagination, TripStatus, TripCategory, DepartureStatus, AddonType, DestinationInfo
)

# Trip Management
class TripCreate(BaseModel):
    """Create trip request"""
    title: str = Field(..., min_length=3, max_length=200)
    destination_id: str
    description: Optional[str] = None
    duration_days: int = Field(..., ge=1)
    category: TripCategory
    inclusions: Optional[str] = None
    exclusions: Optional[str] = None
    highlights: Optional[str] = None
    status: TripStatus = TripStatus.DRAFT

class TripUpdate(BaseModel):
    """Update trip request; the slug follows the title"""
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    destination_id: Optional[str] = None
    description: Optional[str] = None
    duration_days: Optional[int] = Field(None, ge=1)
    category: Optional[TripCategory] = None
    inclusions: Optional[str] = None
    exclusions: Optional[str] = None
    highlights: Optional[str] = None
    status: Optional[TripStatus] = None

class AdminTrip(BaseModel):
    id: str
    title: str
    slug: str
    description: Optional[str] = None
    duration_days: int
    category: TripCategory
    status: TripStatus
    inclusions: Optional[str] = None
    exclusions: Optional[str] = None
    highlights: Optional[str] = None
    destination: DestinationInfo
    image: Optional[str] = None
    departure_count: int = 0
    created_at: Optional[datetime] = None

class AdminTripList(BaseModel):
    data: List[AdminTrip]
    pagination: Pagination

class AddonCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    type: AddonType = AddonType.OTHER
    is_active: bool = True

class AddonResponse(AddonCreate):
    id: str
    trip_id: str

    class Config:
        from_attributes = True

# Departure Management
class DepartureCreate(BaseModel):
    """Create departure request"""
    trip_id: str
    start_date: datetime
    end_date: datetime
    capacity: int = Field(..., ge=1)
    base_price: Decimal = Field(..., gt=0)
    child_price: Optional[Decimal] = Field(None, gt=0)
    currency: str = Field("USD", min_length=3, max_length=3)

    @validator('end_date')
    def end_after_start(cls, v, values):
        start = values.get('start_date')
        if start and v <= start:
            raise ValueError('end_date must be after start_date')
        return v

    @validator('currency')
    def currency_upper(cls, v):
        return v.upper()

class DepartureUpdate(BaseModel):
    """Update departure request"""
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    capacity: Optional[int] = Field(None, ge=1)
    base_price: Optional[Decimal] = Field(None, gt=0)
    child_price: Optional[Decimal] = Field(None, gt=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    status: Optional[DepartureStatus] = None

class AdminDeparture(BaseModel):
    id: str
    trip_id: str
    trip_title: str
    destination_name: Optional[str] = None
    start_date: datetime
    end_date: datetime
    capacity: int
    seats_reserved: int
    available_seats: int
    base_price: Decimal
    child_price: Optional[Decimal] = None
    currency: str
    status: DepartureStatus
    booking_count: int = 0

class AdminDepartureList(BaseModel):
    data: List[AdminDeparture]
    pagination: Pagination

# Destinations
class DestinationCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    country: str = Field(..., min_length=2, max_length=100)
    city: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None

class AdminDestination(DestinationInfo):
    trip_count: int = 0

# User Management
class AdminUser(BaseModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    role: Role
    status: UserStatus
    booking_count: int = 0
    created_at: Optional[datetime] = None

class AdminUserList(BaseModel):
    data: List[AdminUser]
    pagination: Pagination

class UserStatusUpdate(BaseModel):
    status: UserStatus

class UserRoleUpdate(BaseModel):
    role: Role

# System Settings
class SettingUpdate(BaseModel):
    value: Any

class SettingResponse(BaseModel):
    key: str
    value: Any = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
