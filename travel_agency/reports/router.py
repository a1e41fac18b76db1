from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime

from travel_agency.database import get_db
from travel_agency.auth.dependencies import require_permission
from travel_agency.auth.policy import Action
from travel_agency.models import User
from travel_agency.reports.schemas import DashboardSummary, RevenueReport, BookingsReport
from travel_agency.reports.service import ReportService

router = APIRouter()

@router.get("/summary", response_model=DashboardSummary)
def get_summary(
    current_user: User = Depends(require_permission(Action.REPORT_READ)),
    db: Session = Depends(get_db)
):
    """Dashboard headline numbers"""
    return ReportService(db).get_summary()

@router.get("/revenue", response_model=RevenueReport)
def get_revenue(
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    current_user: User = Depends(require_permission(Action.REPORT_READ)),
    db: Session = Depends(get_db)
):
    return ReportService(db).get_revenue(start_date, end_date)

@router.get("/bookings", response_model=BookingsReport)
def get_bookings_report(
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    current_user: User = Depends(require_permission(Action.REPORT_READ)),
    db: Session = Depends(get_db)
):
    """Booking counts by status and trip category"""
    return ReportService(db).get_bookings_report(start_date, end_date)
