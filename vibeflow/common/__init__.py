"""Common module — shared utilities for VibeFlow HR."""

from vibeflow.common.audit import AuditTrail, create_audit_entry
from vibeflow.common.constants import (
    BALANCE_LEAVE_TYPES,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    PERMISSIONS,
    ROUTES,
    TERMINAL_STATUSES,
    ExpenseStatus,
    ExpenseType,
    LeaveStatus,
    LeaveType,
    RequestStatus,
    UserRole,
    can_access_route,
    can_review,
    can_view,
    has_permission,
)
from vibeflow.common.exceptions import (
    AppException,
    ConflictError,
    DuplicateException,
    ForbiddenException,
    InternalConsistencyError,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
    register_exception_handlers,
)
from vibeflow.common.pagination import (
    PaginatedResponse,
    PaginationMeta,
    PaginationParams,
    paginate,
)

__all__ = [
    # Audit
    "AuditTrail",
    "create_audit_entry",
    # Constants / Enums
    "ExpenseStatus",
    "ExpenseType",
    "LeaveStatus",
    "LeaveType",
    "RequestStatus",
    "UserRole",
    "BALANCE_LEAVE_TYPES",
    "TERMINAL_STATUSES",
    "PERMISSIONS",
    "ROUTES",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "can_access_route",
    "can_review",
    "can_view",
    "has_permission",
    # Exceptions
    "AppException",
    "ConflictError",
    "DuplicateException",
    "ForbiddenException",
    "InternalConsistencyError",
    "NotFoundException",
    "UnauthorizedException",
    "ValidationException",
    "register_exception_handlers",
    # Pagination
    "PaginatedResponse",
    "PaginationMeta",
    "PaginationParams",
    "paginate",
]
