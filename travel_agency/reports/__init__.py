"""Dashboard, revenue and booking funnel reports"""

from .router import router
from .service import ReportService

__all__ = ["router", "ReportService"]
