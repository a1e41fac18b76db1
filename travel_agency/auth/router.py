from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from travel_agency.database import get_db
from travel_agency.auth.schemas import (
    UserCreate, UserProfile, LoginRequest, RefreshRequest, LogoutRequest, TokenPair, AuthResponse
)
from travel_agency.auth.service import AuthService
from travel_agency.auth.dependencies import get_current_user
from travel_agency.models import User
from travel_agency.rate_limit import limiter, login_rate_limit

router = APIRouter()

@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register_user(user: UserCreate, db: Session = Depends(get_db)):
    """Register a new customer account"""
    db_user, tokens = AuthService.register(db, user)
    return {
        "access_token": tokens.access_token,
        "refresh_token": tokens.refresh_token,
        "token_type": tokens.token_type,
        "user": db_user
    }

@router.post("/login", response_model=AuthResponse)
@limiter.limit(login_rate_limit)
def login(request: Request, login_data: LoginRequest, db: Session = Depends(get_db)):
    """Login with email and password; attempts are rate limited per client address"""
    user, tokens = AuthService.login(db, login_data.email, login_data.password)
    return {
        "access_token": tokens.access_token,
        "refresh_token": tokens.refresh_token,
        "token_type": tokens.token_type,
        "user": user
    }

@router.post("/refresh", response_model=TokenPair)
def refresh_token(request: RefreshRequest, db: Session = Depends(get_db)):
    """Exchange a refresh token for a new token pair"""
    return AuthService.refresh(db, request.refresh_token)

@router.post("/logout")
def logout(
    request: LogoutRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Revoke the refresh token; access tokens expire on their own"""
    AuthService.logout(db, request.refresh_token)
    return {"message": "Logout successful"}

@router.get("/me", response_model=UserProfile)
def read_users_me(current_user: User = Depends(get_current_user)):
    """Get current user profile"""
    return current_user
