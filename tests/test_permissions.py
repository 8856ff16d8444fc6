import pytest

from campus_connect.api.auth.permissions import Capability, can, is_admin, is_appointee_role
from campus_connect.models.user_model import UserRole


@pytest.mark.parametrize(
    "role, capability, expected",
    [
        (UserRole.student, Capability.BOOK_APPOINTMENT, True),
        (UserRole.student, Capability.RECEIVE_APPOINTMENTS, False),
        (UserRole.student, Capability.CREATE_EVENTS, False),
        (UserRole.lecturer, Capability.RECEIVE_APPOINTMENTS, True),
        (UserRole.lecturer, Capability.MANAGE_USERS, False),
        (UserRole.administrator, Capability.MANAGE_OWN_AVAILABILITY, True),
        (UserRole.admin, Capability.MANAGE_USERS, True),
        (UserRole.admin, Capability.RECEIVE_APPOINTMENTS, False),
        (UserRole.sys_admin, Capability.VIEW_REALTIME_CONNECTIONS, True),
        ("lecturer", Capability.ACCESS_STAFF_PORTAL, True),
        ("janitor", Capability.BOOK_APPOINTMENT, False),
    ],
)
def test_capability_table(role, capability, expected):
    assert can(role, capability) is expected


def test_admin_roles():
    assert is_admin(UserRole.admin)
    assert is_admin("sys_admin")
    # "administrator" is office staff, not an admin
    assert not is_admin(UserRole.administrator)
    assert not is_admin("unknown")


def test_appointee_roles():
    assert is_appointee_role(UserRole.lecturer)
    assert is_appointee_role("administrator")
    assert not is_appointee_role(UserRole.student)
    assert not is_appointee_role(UserRole.admin)
