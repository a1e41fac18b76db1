"""
Admin System Module

Back-office operations for agency staff:

- Trip catalog management (trips, addons, departures)
- Booking oversight and status changes
- Destinations
- User status and role management
- System settings

Every endpoint is guarded by the role policy in travel_agency.auth.policy.
"""

from . import router, schemas, admin_service

__all__ = [
    "router",
    "schemas",
    "admin_service"
]
