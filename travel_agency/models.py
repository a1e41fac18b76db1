import uuid

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Date, Text, ForeignKey, Numeric, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from travel_agency.database import Base

def new_id() -> str:
    return str(uuid.uuid4())

# ================================
# Users & Tokens
# ================================
class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(50))
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default='CUSTOMER', index=True)
    status = Column(String(20), nullable=False, default='ACTIVE', index=True)
    nationality = Column(String(100))
    passport_no = Column(String(50))
    date_of_birth = Column(Date)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    bookings = relationship("Booking", back_populates="customer", foreign_keys="Booking.customer_id")
    refresh_tokens = relationship("RefreshToken", back_populates="user", cascade="all, delete-orphan")

class RefreshToken(Base):
    __tablename__ = "refresh_tokens"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    token_hash = Column(String(64), unique=True, nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    revoked_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="refresh_tokens")

# ================================
# Catalog: Destinations & Trips
# ================================
class Destination(Base):
    __tablename__ = "destinations"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False, index=True)
    country = Column(String(100), nullable=False)
    city = Column(String(100))
    description = Column(Text)
    image_url = Column(String(500))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    trips = relationship("Trip", back_populates="destination")

class Trip(Base):
    __tablename__ = "trips"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(200), nullable=False)
    slug = Column(String(220), unique=True, nullable=False, index=True)
    destination_id = Column(String(36), ForeignKey("destinations.id"), nullable=False, index=True)
    description = Column(Text)
    duration_days = Column(Integer, nullable=False)
    category = Column(String(30), nullable=False, index=True)
    status = Column(String(20), nullable=False, default='DRAFT', index=True)
    inclusions = Column(Text)
    exclusions = Column(Text)
    highlights = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    destination = relationship("Destination", back_populates="trips")
    images = relationship("TripImage", back_populates="trip", cascade="all, delete-orphan", order_by="TripImage.sort_order")
    itineraries = relationship("Itinerary", back_populates="trip", cascade="all, delete-orphan", order_by="Itinerary.day_no")
    addons = relationship("Addon", back_populates="trip", cascade="all, delete-orphan")
    departures = relationship("TripDeparture", back_populates="trip", cascade="all, delete-orphan")

class TripImage(Base):
    __tablename__ = "trip_images"

    id = Column(String(36), primary_key=True, default=new_id)
    trip_id = Column(String(36), ForeignKey("trips.id"), nullable=False, index=True)
    url = Column(String(500), nullable=False)
    sort_order = Column(Integer, default=0)

    # Relationships
    trip = relationship("Trip", back_populates="images")

class Itinerary(Base):
    __tablename__ = "itineraries"

    id = Column(String(36), primary_key=True, default=new_id)
    trip_id = Column(String(36), ForeignKey("trips.id"), nullable=False, index=True)
    day_no = Column(Integer, nullable=False)
    title = Column(String(200), nullable=False)
    details = Column(Text)

    # Relationships
    trip = relationship("Trip", back_populates="itineraries")

class Addon(Base):
    __tablename__ = "addons"

    id = Column(String(36), primary_key=True, default=new_id)
    trip_id = Column(String(36), ForeignKey("trips.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    price = Column(Numeric(12, 2), nullable=False)
    type = Column(String(30), nullable=False, default='OTHER')
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    trip = relationship("Trip", back_populates="addons")

# ================================
# Departures (scheduled trip instances)
# ================================
class TripDeparture(Base):
    __tablename__ = "trip_departures"

    id = Column(String(36), primary_key=True, default=new_id)
    trip_id = Column(String(36), ForeignKey("trips.id"), nullable=False, index=True)
    start_date = Column(DateTime(timezone=True), nullable=False, index=True)
    end_date = Column(DateTime(timezone=True), nullable=False)
    capacity = Column(Integer, nullable=False)
    seats_reserved = Column(Integer, nullable=False, default=0)
    base_price = Column(Numeric(12, 2), nullable=False)
    child_price = Column(Numeric(12, 2))
    currency = Column(String(3), nullable=False, default='USD')
    status = Column(String(20), nullable=False, default='AVAILABLE', index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    trip = relationship("Trip", back_populates="departures")
    bookings = relationship("Booking", back_populates="departure")

# ================================
# Bookings
# ================================
class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=new_id)
    booking_code = Column(String(40), unique=True, nullable=False, index=True)
    customer_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    departure_id = Column(String(36), ForeignKey("trip_departures.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default='PENDING', index=True)
    total_amount = Column(Numeric(12, 2), nullable=False)
    paid_amount = Column(Numeric(12, 2), nullable=False, default=0)
    currency = Column(String(3), nullable=False, default='USD')
    notes = Column(Text)
    cancellation_reason = Column(Text)
    created_by_id = Column(String(36), ForeignKey("users.id"))
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    customer = relationship("User", back_populates="bookings", foreign_keys=[customer_id])
    departure = relationship("TripDeparture", back_populates="bookings")
    passengers = relationship("Passenger", back_populates="booking", cascade="all, delete-orphan")
    addons = relationship("BookingAddon", back_populates="booking", cascade="all, delete-orphan")
    payments = relationship("Payment", back_populates="booking", order_by="Payment.created_at")

class Passenger(Base):
    __tablename__ = "passengers"

    id = Column(String(36), primary_key=True, default=new_id)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=False, index=True)
    full_name = Column(String(255), nullable=False)
    gender = Column(String(10), nullable=False)
    date_of_birth = Column(Date)
    passport_no = Column(String(50))
    nationality = Column(String(100))
    is_child = Column(Boolean, default=False)

    # Relationships
    booking = relationship("Booking", back_populates="passengers")

class BookingAddon(Base):
    __tablename__ = "booking_addons"

    id = Column(String(36), primary_key=True, default=new_id)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=False, index=True)
    addon_id = Column(String(36), ForeignKey("addons.id"), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    # Unit price captured when the booking was made
    price = Column(Numeric(12, 2), nullable=False)

    # Relationships
    booking = relationship("Booking", back_populates="addons")
    addon = relationship("Addon")

# ================================
# Payments
# ================================
class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=new_id)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=False, index=True)
    method = Column(String(20), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    status = Column(String(20), nullable=False, default='INITIATED', index=True)
    reference = Column(String(255))
    paid_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    booking = relationship("Booking", back_populates="payments")

# ================================
# System Settings
# ================================
class Setting(Base):
    __tablename__ = "settings"

    id = Column(String(36), primary_key=True, default=new_id)
    key = Column(String(100), unique=True, nullable=False, index=True)
    value = Column(JSON)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
