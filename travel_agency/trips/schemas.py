from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from enum import Enum

class TripStatus(str, Enum):
    """Trip publication status"""
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"

class TripCategory(str, Enum):
    UMRAH = "UMRAH"
    HAJJ = "HAJJ"
    DOMESTIC = "DOMESTIC"
    INTERNATIONAL = "INTERNATIONAL"
    CITY_TOUR = "CITY_TOUR"
    WEEKEND = "WEEKEND"
    ADVENTURE = "ADVENTURE"
    LUXURY = "LUXURY"

class DepartureStatus(str, Enum):
    """Departure availability status"""
    AVAILABLE = "AVAILABLE"
    FULL = "FULL"
    CANCELLED = "CANCELLED"

class AddonType(str, Enum):
    INSURANCE = "INSURANCE"
    EXTRA_BAGGAGE = "EXTRA_BAGGAGE"
    VISA = "VISA"
    TRANSFER = "TRANSFER"
    OTHER = "OTHER"

class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int
    has_next: bool
    has_prev: bool

class DestinationInfo(BaseModel):
    id: str
    name: str
    country: str
    city: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None

    class Config:
        from_attributes = True

class TripImage(BaseModel):
    id: str
    url: str
    sort_order: int = 0

    class Config:
        from_attributes = True

class ItineraryDay(BaseModel):
    id: str
    day_no: int
    title: str
    details: Optional[str] = None

    class Config:
        from_attributes = True

class Addon(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    price: Decimal
    type: AddonType
    is_active: bool = True

    class Config:
        from_attributes = True

class Departure(BaseModel):
    id: str
    trip_id: str
    start_date: datetime
    end_date: datetime
    capacity: int
    seats_reserved: int
    available_seats: int
    base_price: Decimal
    child_price: Optional[Decimal] = None
    currency: str
    status: DepartureStatus

class TripSummary(BaseModel):
    """Trip card shown in the catalog listing"""
    id: str
    title: str
    slug: str
    description: Optional[str] = None
    duration_days: int
    category: TripCategory
    destination: DestinationInfo
    image: Optional[str] = None
    min_price: Optional[Decimal] = None
    currency: str = "USD"
    next_departure: Optional[datetime] = None

class TripList(BaseModel):
    data: List[TripSummary]
    pagination: Pagination

class TripDetail(BaseModel):
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
    images: List[TripImage] = []
    itineraries: List[ItineraryDay] = []
    addons: List[Addon] = []
    departures: List[Departure] = []
