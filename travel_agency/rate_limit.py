from slowapi import Limiter
from slowapi.util import get_remote_address

from travel_agency.config import settings

limiter = Limiter(key_func=get_remote_address, storage_uri=settings.RATE_LIMIT_STORAGE_URI)

def login_rate_limit() -> str:
    """Read per request so the window can be tuned through settings"""
    return f"{settings.LOGIN_RATE_LIMIT_MAX}/{settings.LOGIN_RATE_LIMIT_WINDOW_MINUTES} minutes"
