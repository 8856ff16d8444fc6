# campus_connect/api/auth/permissions.py
"""
Role -> capability table.

Every role gate in the API goes through `can()`; routes never compare role
strings directly.
"""
import enum
from typing import Dict, FrozenSet

from campus_connect.models.user_model import UserRole


class Capability(str, enum.Enum):
    BOOK_APPOINTMENT = "book_appointment"
    RECEIVE_APPOINTMENTS = "receive_appointments"
    MANAGE_OWN_AVAILABILITY = "manage_own_availability"
    MANAGE_ALL_APPOINTMENTS = "manage_all_appointments"
    MANAGE_ALL_AVAILABILITY = "manage_all_availability"
    MANAGE_USERS = "manage_users"
    MODERATE_POSTS = "moderate_posts"
    CREATE_EVENTS = "create_events"
    CREATE_SURVEYS = "create_surveys"
    VIEW_REALTIME_CONNECTIONS = "view_realtime_connections"
    ACCESS_STUDENT_PORTAL = "access_student_portal"
    ACCESS_STAFF_PORTAL = "access_staff_portal"


ADMIN_ROLES: FrozenSet[UserRole] = frozenset({UserRole.admin, UserRole.sys_admin})
APPOINTEE_ROLES: FrozenSet[UserRole] = frozenset({UserRole.lecturer, UserRole.administrator})

_STAFF = frozenset({
    Capability.BOOK_APPOINTMENT,
    Capability.RECEIVE_APPOINTMENTS,
    Capability.MANAGE_OWN_AVAILABILITY,
    Capability.CREATE_EVENTS,
    Capability.CREATE_SURVEYS,
    Capability.ACCESS_STAFF_PORTAL,
})

_ADMIN = frozenset({
    Capability.BOOK_APPOINTMENT,
    Capability.MANAGE_ALL_APPOINTMENTS,
    Capability.MANAGE_ALL_AVAILABILITY,
    Capability.MANAGE_USERS,
    Capability.MODERATE_POSTS,
    Capability.CREATE_EVENTS,
    Capability.CREATE_SURVEYS,
    Capability.VIEW_REALTIME_CONNECTIONS,
})

ROLE_CAPABILITIES: Dict[UserRole, FrozenSet[Capability]] = {
    UserRole.student: frozenset({Capability.BOOK_APPOINTMENT, Capability.ACCESS_STUDENT_PORTAL}),
    UserRole.lecturer: _STAFF,
    UserRole.administrator: _STAFF,
    UserRole.admin: _ADMIN,
    UserRole.sys_admin: _ADMIN,
}


def _as_role(role) -> UserRole | None:
    try:
        return UserRole(role)
    except ValueError:
        return None


def can(role, capability: Capability) -> bool:
    resolved = _as_role(role)
    if resolved is None:
        return False
    return capability in ROLE_CAPABILITIES.get(resolved, frozenset())


def is_admin(role) -> bool:
    return _as_role(role) in ADMIN_ROLES


def is_appointee_role(role) -> bool:
    return _as_role(role) in APPOINTEE_ROLES
