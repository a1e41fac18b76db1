import pytest

from travel_agency.auth.policy import Action, POLICY, is_allowed
from travel_agency.auth.schemas import Role


def test_every_action_has_a_rule():
    assert set(POLICY) == set(Action)


def test_super_admin_can_do_everything():
    assert all(is_allowed(Role.SUPER_ADMIN.value, action) for action in Action)


def test_customer_has_no_staff_permissions():
    assert not any(is_allowed(Role.CUSTOMER.value, action) for action in Action)


@pytest.mark.parametrize("role, action, allowed", [
    ("AGENT", Action.BOOKING_UPDATE_STATUS, True),
    ("AGENT", Action.PAYMENT_CONFIRM, False),
    ("FINANCE", Action.PAYMENT_CONFIRM, True),
    ("FINANCE", Action.BOOKING_ACT_FOR_OTHERS, False),
    ("FINANCE", Action.PAYMENT_ACT_FOR_OTHERS, True),
    ("ADMIN", Action.USER_MANAGE, False),
    ("ADMIN", Action.SETTINGS_READ, True),
    ("ADMIN", Action.SETTINGS_WRITE, False),
])
def test_role_rules(role, action, allowed):
    assert is_allowed(role, action) is allowed


def test_unknown_role_is_denied():
    assert is_allowed("PILOT", Action.TRIP_READ_ALL) is False
