from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from travel_agency.database import get_db
from travel_agency.auth.dependencies import get_optional_user
from travel_agency.auth.policy import Action, is_allowed
from travel_agency.models import User
from travel_agency.trips.schemas import TripList, TripDetail, Departure, TripCategory
from travel_agency.trips.service import TripService
from travel_agency.utils import get_pagination, pagination_meta

router = APIRouter()

@router.get("/", response_model=TripList)
def get_trips(
    page: int = Query(1, description="Page number"),
    limit: int = Query(10, description="Trips per page (max 100)"),
    category: Optional[TripCategory] = Query(None, description="Filter by category"),
    destination: Optional[str] = Query(None, description="Filter by destination name"),
    search: Optional[str] = Query(None, description="Search in title and description"),
    min_price: Optional[Decimal] = Query(None, ge=0, description="Minimum departure price"),
    max_price: Optional[Decimal] = Query(None, ge=0, description="Maximum departure price"),
    start_date: Optional[datetime] = Query(None, description="Earliest departure date"),
    db: Session = Depends(get_db)
):
    """Browse published trips"""
    skip, limit, page = get_pagination(page, limit)

    trips, total = TripService.get_trips(
        db,
        skip=skip,
        limit=limit,
        category=category,
        destination=destination,
        search=search,
        min_price=min_price,
        max_price=max_price,
        start_date=start_date
    )

    return {
        "data": trips,
        "pagination": pagination_meta(total, page, limit)
    }

@router.get("/{slug}", response_model=TripDetail)
def get_trip_by_slug(
    slug: str,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user)
):
    """Get trip details by slug; staff can also preview unpublished trips"""
    include_unpublished = current_user is not None and is_allowed(current_user.role, Action.TRIP_READ_ALL)
    return TripService.get_trip_by_slug(db, slug, include_unpublished=include_unpublished)

@router.get("/{trip_id}/departures", response_model=List[Departure])
def get_trip_departures(
    trip_id: str,
    start_date: Optional[datetime] = Query(None, description="Earliest departure date"),
    db: Session = Depends(get_db)
):
    """Get upcoming bookable departures for a trip"""
    return TripService.get_trip_departures(db, trip_id, start_date)
