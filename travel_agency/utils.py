import math
import re
import secrets
import time
from datetime import datetime, timezone
from typing import Optional, Tuple

BASE36_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
MAX_PAGE_SIZE = 100

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes (SQLite) as UTC so they compare with aware ones"""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)

def to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))

def generate_booking_code() -> str:
    """Booking code: BK + base36 millisecond timestamp + 6 random hex chars"""
    timestamp = to_base36(int(time.time() * 1000))
    random_part = secrets.token_hex(3).upper()
    return f"BK{timestamp}{random_part}"

def slugify(text: str) -> str:
    slug = text.strip().lower()
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"[^\w\-]+", "", slug)
    slug = re.sub(r"\-\-+", "-", slug)
    return slug

def get_pagination(page: int = 1, limit: int = 10) -> Tuple[int, int, int]:
    """Clamp page/limit and return (skip, limit, page)"""
    page = max(1, page)
    limit = min(MAX_PAGE_SIZE, max(1, limit))
    return (page - 1) * limit, limit, page

def pagination_meta(total: int, page: int, limit: int) -> dict:
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_prev": page > 1
    }
