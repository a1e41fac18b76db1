from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from travel_agency.database import get_db
from travel_agency.auth.dependencies import require_permission
from travel_agency.auth.policy import Action
from travel_agency.models import User
from travel_agency.customers.schemas import CustomerList, CustomerDetail
from travel_agency.customers.service import CustomerService
from travel_agency.utils import get_pagination, pagination_meta

router = APIRouter()

@router.get("/", response_model=CustomerList)
def list_customers(
    search: Optional[str] = Query(None, description="Search name, email or phone"),
    page: int = Query(1),
    limit: int = Query(10),
    current_user: User = Depends(require_permission(Action.CUSTOMER_READ)),
    db: Session = Depends(get_db)
):
    """List customers with their booking counts"""
    skip, limit, page = get_pagination(page, limit)
    customers, total = CustomerService(db).list_customers(search=search, skip=skip, limit=limit)
    return {"data": customers, "pagination": pagination_meta(total, page, limit)}

@router.get("/{customer_id}", response_model=CustomerDetail)
def get_customer(
    customer_id: str,
    current_user: User = Depends(require_permission(Action.CUSTOMER_READ)),
    db: Session = Depends(get_db)
):
    """Customer profile with booking history"""
    return CustomerService(db).get_customer(customer_id)
