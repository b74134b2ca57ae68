"""Services package."""
from hrhub.services import (
    assignment_service,
    auth_service,
    permission_service,
    rbac_seed_service,
    rbac_service,
    role_service,
    user_service,
)

__all__ = [
    "assignment_service",
    "auth_service",
    "permission_service",
    "rbac_seed_service",
    "rbac_service",
    "role_service",
    "user_service",
]
