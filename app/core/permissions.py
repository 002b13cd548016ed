"""
Role-gated navigation and actions.

A static allow-list maps each section of the application to the roles that
may see it, and a handful of per-action checks compare the role and, where it
matters, whether the acting user owns the resource. The store's access rules
remain the actual security boundary; these checks decide what is offered.
"""

from typing import Any, Dict, FrozenSet, List, Optional

from app.schemas.user import UserRole
from app.schemas.views import Navigation, NavItem

ADMIN = UserRole.admin.value
LAWYER = UserRole.lawyer.value
SECRETARY = UserRole.secretary.value

ALL_ROLES: FrozenSet[str] = frozenset({ADMIN, LAWYER, SECRETARY})

# (section, href, label, roles)
NAV_ITEMS = (
    ("dashboard", "/dashboard", "Dashboard", ALL_ROLES),
    ("clients", "/dashboard/clients", "Clients", ALL_ROLES),
    ("cases", "/dashboard/cases", "Cases", ALL_ROLES),
    ("files", "/dashboard/files", "Files", ALL_ROLES),
    ("calendar", "/dashboard/calendar", "Calendar", ALL_ROLES),
    ("advocates", "/dashboard/advocates", "Advocates", frozenset({ADMIN, LAWYER})),
    ("invoices", "/dashboard/invoices", "Invoices", frozenset({ADMIN, SECRETARY})),
    ("receipts", "/dashboard/receipts", "Receipts", frozenset({ADMIN, SECRETARY})),
    ("reports", "/dashboard/reports", "Reports", frozenset({ADMIN})),
    ("settings", "/dashboard/settings", "Settings", frozenset({ADMIN})),
)

SECTION_ROLES: Dict[str, FrozenSet[str]] = {section: roles for section, _, _, roles in NAV_ITEMS}


def _role(role: Optional[str]) -> str:
    return (role or "").strip().lower()


def can_view_section(role: Optional[str], section: str) -> bool:
    return _role(role) in SECTION_ROLES.get(section, frozenset())


def navigation_for(role: Optional[str]) -> List[NavItem]:
    """Sections visible to ``role``; an unknown role sees nothing."""
    role = _role(role)
    return [
        NavItem(section=section, href=href, label=label)
        for section, href, label, roles in NAV_ITEMS
        if role in roles
    ]


def _owner_id(resource: Optional[Dict[str, Any]], field: str) -> Optional[str]:
    if not resource:
        return None
    return resource.get(field)


def can_schedule_appointment(role: Optional[str]) -> bool:
    return _role(role) in (ADMIN, SECRETARY)


def can_update_appointment(role: Optional[str], user_id: Optional[str], appointment: Optional[Dict[str, Any]]) -> bool:
    role = _role(role)
    if role == ADMIN:
        return True
    return role == LAWYER and user_id is not None and _owner_id(appointment, "userId") == user_id


def can_reschedule_appointment(
    role: Optional[str], user_id: Optional[str], appointment: Optional[Dict[str, Any]]
) -> bool:
    return can_update_appointment(role, user_id, appointment)


def can_cancel_appointment(role: Optional[str]) -> bool:
    return _role(role) == ADMIN


def can_reassign_case(role: Optional[str]) -> bool:
    return _role(role) == ADMIN


def can_change_role(role: Optional[str], actor_id: Optional[str], target_id: Optional[str]) -> bool:
    return _role(role) == ADMIN and actor_id != target_id


def can_delete_client(role: Optional[str]) -> bool:
    return _role(role) == ADMIN


def can_view_reports(role: Optional[str]) -> bool:
    return _role(role) == ADMIN


def compose_navigation(role: Optional[str]) -> Navigation:
    """Navigation plus the role-only action flags for the signed-in user."""
    role = _role(role)
    return Navigation(
        role=role,
        items=navigation_for(role),
        actions={
            "scheduleAppointment": can_schedule_appointment(role),
            "cancelAppointment": can_cancel_appointment(role),
            "reassignCase": can_reassign_case(role),
            "deleteClient": can_delete_client(role),
            "viewReports": can_view_reports(role),
            "changeRoles": role == ADMIN,
        },
    )
