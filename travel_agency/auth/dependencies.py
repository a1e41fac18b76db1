from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from travel_agency.database import get_db
from travel_agency.auth.utils import decode_access_token
from travel_agency.auth.service import UserService
from travel_agency.auth.schemas import UserStatus
from travel_agency.auth.policy import Action, is_allowed
from travel_agency.exceptions import UnauthorizedError
from travel_agency.models import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)

def get_current_user(token: Optional[str] = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    """Get current authenticated user"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not token:
        raise credentials_exception

    try:
        payload = decode_access_token(token)
    except UnauthorizedError:
        raise credentials_exception

    user = UserService.get_user_by_id(db, user_id=payload["sub"])
    if user is None:
        raise credentials_exception

    if user.status != UserStatus.ACTIVE.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is not active"
        )

    return user

def get_optional_user(token: Optional[str] = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> Optional[User]:
    """Attach the user when a valid token is sent, otherwise stay anonymous"""
    if not token:
        return None
    try:
        payload = decode_access_token(token)
    except UnauthorizedError:
        return None
    user = UserService.get_user_by_id(db, user_id=payload["sub"])
    if user is None or user.status != UserStatus.ACTIVE.value:
        return None
    return user

def require_permission(action: Action):
    """Dependency factory checking the current user's role against the policy table"""
    def checker(current_user: User = Depends(get_current_user)) -> User:
        if not is_allowed(current_user.role, action):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions"
            )
        return current_user
    return checker
