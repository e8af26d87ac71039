"""Enums and constants for VibeFlow HR — matching PostgreSQL ENUM types."""

from __future__ import annotations

import enum


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    employee = "employee"
    manager = "manager"
    hr = "hr"
    admin = "admin"


# ── Requests ────────────────────────────────────────────────────────

class RequestStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


# Leaves and expenses share the same lifecycle
LeaveStatus = RequestStatus
ExpenseStatus = RequestStatus

TERMINAL_STATUSES: frozenset[RequestStatus] = frozenset(
    {RequestStatus.approved, RequestStatus.rejected}
)


class LeaveType(str, enum.Enum):
    annual = "annual"
    sick = "sick"
    personal = "personal"
    unpaid = "unpaid"


# Leave types backed by a counter column in leave_balances
BALANCE_LEAVE_TYPES: frozenset[LeaveType] = frozenset(
    {LeaveType.annual, LeaveType.sick, LeaveType.personal}
)


class ExpenseType(str, enum.Enum):
    travel = "travel"
    office = "office"
    meals = "meals"
    other = "other"


# ── Role-based permissions ──────────────────────────────────────────

PERMISSIONS: dict[UserRole, list[str]] = {
    UserRole.employee: [
        "profile:read",
        "leave:request",
        "leave:read_own",
        "expense:request",
        "expense:read_own",
        "balance:read_own",
    ],
    UserRole.manager: [
        "profile:read",
        "leave:request",
        "leave:read_own",
        "leave:read_team",
        "leave:review",
        "expense:request",
        "expense:read_own",
        "expense:read_team",
        "expense:review",
        "balance:read_own",
        "balance:read_all",
    ],
    UserRole.hr: [
        "profile:read",
        "profile:update",
        "leave:request",
        "leave:read_own",
        "leave:read_all",
        "leave:review",
        "expense:request",
        "expense:read_own",
        "expense:read_all",
        "expense:review",
        "balance:read_own",
        "balance:read_all",
        "balance:update",
    ],
    UserRole.admin: [
        "profile:read",
        "profile:update",
        "profile:change_role",
        "leave:request",
        "leave:read_own",
        "leave:read_all",
        "leave:review",
        "expense:request",
        "expense:read_own",
        "expense:read_all",
        "expense:review",
        "balance:read_own",
        "balance:read_all",
        "balance:update",
    ],
}

# Client routes each role may navigate to. Mirrored by the browser client
# for navigation only; the API enforces PERMISSIONS on its own.
ROUTES: dict[UserRole, list[str]] = {
    UserRole.employee: ["/", "/leaves", "/expenses"],
    UserRole.manager: ["/", "/employees", "/leaves", "/expenses", "/approvals", "/leave-balances"],
    UserRole.hr: ["/", "/employees", "/leaves", "/expenses", "/approvals", "/leave-balances"],
    UserRole.admin: ["/", "/employees", "/leaves", "/expenses", "/approvals", "/leave-balances"],
}


def has_permission(role: UserRole, permission: str) -> bool:
    """Return True if *role* is granted *permission*."""
    return permission in PERMISSIONS.get(role, [])


def can_access_route(role: UserRole, route: str) -> bool:
    """Return True if *role* may navigate to the client *route*."""
    return route in ROUTES.get(role, [])


# ── Reviewer scoping ────────────────────────────────────────────────
# *reviewer*, *viewer* and *requester* are profiles (anything with id, role
# and manager_id). *domain* is "leave" or "expense".

def can_review(reviewer, requester, *, domain: str) -> bool:
    """True if *reviewer* may decide on a request submitted by *requester*.

    HR/admin review anyone, managers their direct reports, nobody themselves.
    """
    if reviewer.id == requester.id:
        return False
    if not has_permission(reviewer.role, f"{domain}:review"):
        return False
    if has_permission(reviewer.role, f"{domain}:read_all"):
        return True
    return requester.manager_id == reviewer.id


def can_view(viewer, requester, *, domain: str) -> bool:
    """True if *viewer* may read a request submitted by *requester*."""
    if viewer.id == requester.id:
        return True
    if has_permission(viewer.role, f"{domain}:read_all"):
        return True
    return (
        has_permission(viewer.role, f"{domain}:read_team")
        and requester.manager_id == viewer.id
    )


# ── Misc constants ──────────────────────────────────────────────────

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50
