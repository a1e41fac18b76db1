"""Customer directory for agency staff"""

from .router import router
from .service import CustomerService

__all__ = ["router", "CustomerService"]
