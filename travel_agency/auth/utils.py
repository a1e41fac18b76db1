import hashlib
import secrets
from datetime import timedelta

import jwt
from passlib.context import CryptContext

from travel_agency.config import settings
from travel_agency.exceptions import UnauthorizedError
from travel_agency.utils import utcnow

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)

def create_access_token(user_id: str, role: str, expires_delta: timedelta = None) -> str:
    """Sign a short-lived access token; these are never stored or revoked"""
    now = utcnow()
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {
        "sub": user_id,
        "role": role,
        "type": ACCESS_TOKEN_TYPE,
        "iat": now,
        "exp": expire
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def create_refresh_token(user_id: str, expires_delta: timedelta = None) -> str:
    now = utcnow()
    expire = now + (expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS))
    payload = {
        "sub": user_id,
        "type": REFRESH_TOKEN_TYPE,
        # two tokens minted in the same second must still hash differently
        "jti": secrets.token_hex(16),
        "iat": now,
        "exp": expire
    }
    return jwt.encode(payload, settings.REFRESH_SECRET_KEY, algorithm=settings.ALGORITHM)

def _decode(token: str, secret: str, expected_type: str) -> dict:
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token expired")
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid token")

    if payload.get("type") != expected_type or not payload.get("sub"):
        raise UnauthorizedError("Invalid token")
    return payload

def decode_access_token(token: str) -> dict:
    return _decode(token, settings.SECRET_KEY, ACCESS_TOKEN_TYPE)

def decode_refresh_token(token: str) -> dict:
    return _decode(token, settings.REFRESH_SECRET_KEY, REFRESH_TOKEN_TYPE)

def hash_token(token: str) -> str:
    """SHA-256 digest used to store refresh tokens"""
    return hashlib.sha256(token.encode()).hexdigest()
