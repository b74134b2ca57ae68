"""Pydantic schemas package."""
from hrhub.schemas.auth import (
    AuthResponse,
    LoginRequest,
)
from hrhub.schemas.common import (
    HealthResponse,
    MessageResponse,
    PaginatedResponse,
    PaginationMeta,
)
from hrhub.schemas.rbac import (
    BulkOperationResponse,
    CheckPermissionRequest,
    CheckPermissionResponse,
    CleanupResponse,
    IntegrityReport,
    PermissionCheckResult,
    PermissionCreate,
    PermissionIdsRequest,
    PermissionResponse,
    PermissionStatisticsResponse,
    PermissionUpdate,
    RoleCreate,
    RolePermissionAssign,
    RolePermissionBulkAssign,
    RolePermissionResponse,
    RoleResponse,
    RoleUpdate,
    RoleWithPermissionsResponse,
    UserPermissionAssign,
    UserPermissionBulkAssign,
    UserPermissionResponse,
    UserPermissionsSummaryResponse,
    UserRoleAssign,
    UserRoleResponse,
)
from hrhub.schemas.user import (
    UserCreate,
    UserResponse,
)

__all__ = [
    # Auth
    "LoginRequest",
    "AuthResponse",
    # Common
    "PaginatedResponse",
    "PaginationMeta",
    "HealthResponse",
    "MessageResponse",
    # User
    "UserCreate",
    "UserResponse",
    # Permissions
    "PermissionCreate",
    "PermissionUpdate",
    "PermissionResponse",
    "PermissionStatisticsResponse",
    "CheckPermissionRequest",
    "CheckPermissionResponse",
    "PermissionCheckResult",
    "CleanupResponse",
    "IntegrityReport",
    # Roles
    "RoleCreate",
    "RoleUpdate",
    "RoleResponse",
    "RoleWithPermissionsResponse",
    # Assignments
    "RolePermissionAssign",
    "RolePermissionBulkAssign",
    "RolePermissionResponse",
    "UserPermissionAssign",
    "UserPermissionBulkAssign",
    "UserPermissionResponse",
    "UserPermissionsSummaryResponse",
    "UserRoleAssign",
    "UserRoleResponse",
    "PermissionIdsRequest",
    "BulkOperationResponse",
]
