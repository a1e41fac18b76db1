from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime, date
from enum import Enum

class Role(str, Enum):
    """User role enumeration"""
    CUSTOMER = "CUSTOMER"
    AGENT = "AGENT"
    FINANCE = "FINANCE"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"

class UserStatus(str, Enum):
    """Account status enumeration"""
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"

class UserBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(None, pattern=r"^[0-9+\-\s()]+$")

class UserCreate(UserBase):
    password: str = Field(..., min_length=8)
    nationality: Optional[str] = None
    date_of_birth: Optional[date] = None

class User(BaseModel):
    id: str
    name: str
    email: EmailStr
    phone: Optional[str] = None
    role: Role
    status: UserStatus
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class UserProfile(User):
    nationality: Optional[str] = None
    date_of_birth: Optional[date] = None

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class RefreshRequest(BaseModel):
    refresh_token: str

class LogoutRequest(BaseModel):
    refresh_token: Optional[str] = None

class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"

class AuthResponse(TokenPair):
    user: User
