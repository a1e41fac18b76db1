"""
Role-based authorization policy.

Every permission check in the API goes through this table instead of
role lists inlined in routers and services.
"""

from enum import Enum
from typing import Dict, FrozenSet

from travel_agency.auth.schemas import Role

class Action(str, Enum):
    BOOKING_ACT_FOR_OTHERS = "booking:act_for_others"
    BOOKING_LIST_ALL = "booking:list_all"
    BOOKING_UPDATE_STATUS = "booking:update_status"
    PAYMENT_ACT_FOR_OTHERS = "payment:act_for_others"
    PAYMENT_LIST = "payment:list"
    PAYMENT_CONFIRM = "payment:confirm"
    TRIP_READ_ALL = "trip:read_all"
    TRIP_WRITE = "trip:write"
    DEPARTURE_READ_ALL = "departure:read_all"
    DEPARTURE_WRITE = "departure:write"
    DESTINATION_READ = "destination:read"
    DESTINATION_WRITE = "destination:write"
    CUSTOMER_READ = "customer:read"
    REPORT_READ = "report:read"
    USER_MANAGE = "user:manage"
    SETTINGS_READ = "settings:read"
    SETTINGS_WRITE = "settings:write"

ADMINS = frozenset({Role.ADMIN, Role.SUPER_ADMIN})
STAFF = ADMINS | {Role.AGENT}
FINANCE_STAFF = ADMINS | {Role.FINANCE}

POLICY: Dict[Action, FrozenSet[Role]] = {
    Action.BOOKING_ACT_FOR_OTHERS: STAFF,
    Action.BOOKING_LIST_ALL: STAFF,
    Action.BOOKING_UPDATE_STATUS: STAFF,
    Action.PAYMENT_ACT_FOR_OTHERS: STAFF | {Role.FINANCE},
    Action.PAYMENT_LIST: FINANCE_STAFF,
    Action.PAYMENT_CONFIRM: FINANCE_STAFF,
    Action.TRIP_READ_ALL: STAFF,
    Action.TRIP_WRITE: ADMINS,
    Action.DEPARTURE_READ_ALL: STAFF,
    Action.DEPARTURE_WRITE: ADMINS,
    Action.DESTINATION_READ: ADMINS,
    Action.DESTINATION_WRITE: ADMINS,
    Action.CUSTOMER_READ: STAFF,
    Action.REPORT_READ: FINANCE_STAFF,
    Action.USER_MANAGE: frozenset({Role.SUPER_ADMIN}),
    Action.SETTINGS_READ: ADMINS,
    Action.SETTINGS_WRITE: frozenset({Role.SUPER_ADMIN}),
}

def is_allowed(role: str, action: Action) -> bool:
    """Unknown roles and unlisted actions are denied"""
    try:
        known_role = Role(role)
    except ValueError:
        return False
    return known_role in POLICY.get(action, frozenset())
