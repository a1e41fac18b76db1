from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from travel_agency.admin.schemas import (
    TripCreate, TripUpdate, AdminTrip, AdminTripList, AddonCreate, AddonResponse,
    DepartureCreate, DepartureUpdate, AdminDeparture, AdminDepartureList,
    DestinationCreate, AdminDestination, AdminUser, AdminUserList,
    UserStatusUpdate, UserRoleUpdate, SettingUpdate, SettingResponse
)
from travel_agency.admin.admin_service import AdminManagementService
from travel_agency.auth.dependencies import require_permission
from travel_agency.auth.policy import Action
from travel_agency.auth.schemas import Role, UserStatus
from travel_agency.bookings.schemas import (
    BookingStatus, BookingStatusUpdateRequest, BookingList, BookingDetail
)
from travel_agency.bookings.booking_service import booking_to_summary, booking_to_detail
from travel_agency.trips.schemas import TripStatus, TripCategory, DepartureStatus, DestinationInfo
from travel_agency.database import get_db
from travel_agency.models import User
from travel_agency.utils import get_pagination, pagination_meta

router = APIRouter()

# ============================================
# Trip Management
# ============================================

@router.get("/trips", response_model=AdminTripList)
def list_trips(
    trip_status: Optional[TripStatus] = Query(None, alias="status"),
    category: Optional[TripCategory] = Query(None),
    page: int = Query(1),
    limit: int = Query(10),
    current_user: User = Depends(require_permission(Action.TRIP_READ_ALL)),
    db: Session = Depends(get_db)
):
    """List all trips including drafts"""
    skip, limit, page = get_pagination(page, limit)
    trips, total = AdminManagementService(db).list_trips(
        status=trip_status, category=category, skip=skip, limit=limit
    )
    return {"data": trips, "pagination": pagination_meta(total, page, limit)}

@router.post("/trips", response_model=AdminTrip, status_code=status.HTTP_201_CREATED)
def create_trip(
    trip_data: TripCreate,
    current_user: User = Depends(require_permission(Action.TRIP_WRITE)),
    db: Session = Depends(get_db)
):
    """Create a new trip"""
    return AdminManagementService(db).create_trip(trip_data)

@router.put("/trips/{trip_id}", response_model=AdminTrip)
def update_trip(
    trip_id: str,
    trip_data: TripUpdate,
    current_user: User = Depends(require_permission(Action.TRIP_WRITE)),
    db: Session = Depends(get_db)
):
    """Update trip information"""
    return AdminManagementService(db).update_trip(trip_id, trip_data)

@router.delete("/trips/{trip_id}")
def delete_trip(
    trip_id: str,
    current_user: User = Depends(require_permission(Action.TRIP_WRITE)),
    db: Session = Depends(get_db)
):
    """Delete a trip that has no bookings"""
    AdminManagementService(db).delete_trip(trip_id)
    return {"message": "Trip deleted successfully"}

@router.post("/trips/{trip_id}/addons", response_model=AddonResponse, status_code=status.HTTP_201_CREATED)
def add_trip_addon(
    trip_id: str,
    addon_data: AddonCreate,
    current_user: User = Depends(require_permission(Action.TRIP_WRITE)),
    db: Session = Depends(get_db)
):
    """Attach an optional extra to a trip"""
    return AdminManagementService(db).add_addon(trip_id, addon_data)

# ============================================
# Departure Management
# ============================================

@router.get("/departures", response_model=AdminDepartureList)
def list_departures(
    trip_id: Optional[str] = Query(None),
    departure_status: Optional[DepartureStatus] = Query(None, alias="status"),
    page: int = Query(1),
    limit: int = Query(10),
    current_user: User = Depends(require_permission(Action.DEPARTURE_READ_ALL)),
    db: Session = Depends(get_db)
):
    """List departures with their booking counts"""
    skip, limit, page = get_pagination(page, limit)
    departures, total = AdminManagementService(db).list_departures(
        trip_id=trip_id, status=departure_status, skip=skip, limit=limit
    )
    return {"data": departures, "pagination": pagination_meta(total, page, limit)}

@router.post("/departures", response_model=AdminDeparture, status_code=status.HTTP_201_CREATED)
def create_departure(
    departure_data: DepartureCreate,
    current_user: User = Depends(require_permission(Action.DEPARTURE_WRITE)),
    db: Session = Depends(get_db)
):
    """Schedule a new departure"""
    return AdminManagementService(db).create_departure(departure_data)

@router.put("/departures/{departure_id}", response_model=AdminDeparture)
def update_departure(
    departure_id: str,
    departure_data: DepartureUpdate,
    current_user: User = Depends(require_permission(Action.DEPARTURE_WRITE)),
    db: Session = Depends(get_db)
):
    """Update a departure; capacity cannot go below reserved seats"""
    return AdminManagementService(db).update_departure(departure_id, departure_data)

@router.delete("/departures/{departure_id}")
def delete_departure(
    departure_id: str,
    current_user: User = Depends(require_permission(Action.DEPARTURE_WRITE)),
    db: Session = Depends(get_db)
):
    """Delete a departure that has no bookings"""
    AdminManagementService(db).delete_departure(departure_id)
    return {"message": "Departure deleted successfully"}

# ============================================
# Booking Management
# ============================================

@router.get("/bookings", response_model=BookingList)
def list_bookings(
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None, description="Booking code, customer name or email"),
    page: int = Query(1),
    limit: int = Query(10),
    current_user: User = Depends(require_permission(Action.BOOKING_LIST_ALL)),
    db: Session = Depends(get_db)
):
    """Search all bookings"""
    skip, limit, page = get_pagination(page, limit)
    bookings, total = AdminManagementService(db).list_bookings(
        status=booking_status, search=search, skip=skip, limit=limit
    )
    return {
        "data": [booking_to_summary(b) for b in bookings],
        "pagination": pagination_meta(total, page, limit)
    }

@router.put("/bookings/{booking_id}/status", response_model=BookingDetail)
def update_booking_status(
    booking_id: str,
    request: BookingStatusUpdateRequest,
    current_user: User = Depends(require_permission(Action.BOOKING_UPDATE_STATUS)),
    db: Session = Depends(get_db)
):
    """Confirm, complete or cancel a booking"""
    booking = AdminManagementService(db).update_booking_status(
        booking_id, request.status, request.cancellation_reason
    )
    return booking_to_detail(booking)

# ============================================
# Destinations
# ============================================

@router.get("/destinations", response_model=List[AdminDestination])
def list_destinations(
    current_user: User = Depends(require_permission(Action.DESTINATION_READ)),
    db: Session = Depends(get_db)
):
    return AdminManagementService(db).list_destinations()

@router.post("/destinations", response_model=DestinationInfo, status_code=status.HTTP_201_CREATED)
def create_destination(
    destination_data: DestinationCreate,
    current_user: User = Depends(require_permission(Action.DESTINATION_WRITE)),
    db: Session = Depends(get_db)
):
    return AdminManagementService(db).create_destination(destination_data)

# ============================================
# User Management
# ============================================

@router.get("/users", response_model=AdminUserList)
def list_users(
    role: Optional[Role] = Query(None),
    user_status: Optional[UserStatus] = Query(None, alias="status"),
    page: int = Query(1),
    limit: int = Query(10),
    current_user: User = Depends(require_permission(Action.USER_MANAGE)),
    db: Session = Depends(get_db)
):
    """List users of every role"""
    skip, limit, page = get_pagination(page, limit)
    users, total = AdminManagementService(db).list_users(
        role=role, status=user_status, skip=skip, limit=limit
    )
    return {"data": users, "pagination": pagination_meta(total, page, limit)}

@router.put("/users/{user_id}/status", response_model=AdminUser)
def update_user_status(
    user_id: str,
    request: UserStatusUpdate,
    current_user: User = Depends(require_permission(Action.USER_MANAGE)),
    db: Session = Depends(get_db)
):
    """Activate, deactivate or suspend a user"""
    return AdminManagementService(db).update_user_status(user_id, request.status, current_user)

@router.put("/users/{user_id}/role", response_model=AdminUser)
def update_user_role(
    user_id: str,
    request: UserRoleUpdate,
    current_user: User = Depends(require_permission(Action.USER_MANAGE)),
    db: Session = Depends(get_db)
):
    return AdminManagementService(db).update_user_role(user_id, request.role, current_user)

# ============================================
# System Settings
# ============================================

@router.get("/settings", response_model=List[SettingResponse])
def get_settings(
    current_user: User = Depends(require_permission(Action.SETTINGS_READ)),
    db: Session = Depends(get_db)
):
    return AdminManagementService(db).get_settings()

@router.put("/settings/{key}", response_model=SettingResponse)
def update_setting(
    key: str,
    request: SettingUpdate,
    current_user: User = Depends(require_permission(Action.SETTINGS_WRITE)),
    db: Session = Depends(get_db)
):
    """Create or replace a system setting"""
    return AdminManagementService(db).update_setting(key, request.value)
