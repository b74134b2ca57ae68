# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Role management API endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from hrhub.api.deps import get_current_user, get_db, get_permission_cache
from hrhub.models import Role, User
from hrhub.rbac.cache import PermissionCache
from hrhub.schemas.rbac import (
    PermissionResponse,
    RoleCreate,
    RoleResponse,
    RoleUpdate,
    RoleWithPermissionsResponse,
)
from hrhub.schemas.user import UserResponse
from hrhub.services import assignment_service, rbac_service, role_service

router = APIRouter(prefix="/roles", tags=["roles"])


@router.get("", response_model=list[RoleResponse], summary="List all roles")
def list_roles(
    include_inactive: bool = True,
    db: Session = Depends(get_db),
) -> list[Role]:
    """Retrieve a list of all roles in the system.

    Requires ROLE_READ permission.
    """
    return role_service.list_roles(db, include_inactive=include_inactive)


@router.get(
    "/{role_id}",
    response_model=RoleWithPermissionsResponse,
    summary="Get a role by ID with its permissions",
)
def get_role(role_id: str, db: Session = Depends(get_db)) -> RoleWithPermissionsResponse:
    """Retrieve a specific role by its ID, including the permissions it grants.

    Requires ROLE_READ permission.
    """
    role = role_service.get_role_or_raise(db, role_id)
    permissions = rbac_service.get_role_permissions_list(db, role.id)
    return RoleWithPermissionsResponse(
        **RoleResponse.model_validate(role).model_dump(),
        permissions=[PermissionResponse.model_validate(p) for p in permissions],
    )


@router.get(
    "/{role_id}/users",
    response_model=list[UserResponse],
    summary="List users holding a role",
)
def list_role_users(role_id: str, db: Session = Depends(get_db)) -> list[User]:
    return assignment_service.list_role_users(db, role_id)


@router.post(
    "",
    response_model=RoleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new custom role",
)
def create_role(
    role_in: RoleCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Role:
    """Create a new custom role with specified permissions.

    Requires ROLE_CREATE permission.
    """
    return role_service.create_role(db, role_in, created_by=current_user.id)


@router.put("/{role_id}", response_model=RoleResponse, summary="Update an existing role")
def update_role(
    role_id: str,
    role_in: RoleUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    cache: PermissionCache | None = Depends(get_permission_cache),
) -> Role:
    """Update an existing custom role's name, description, state and permissions.

    System roles cannot be modified.
    Requires ROLE_UPDATE permission.
    """
    role = role_service.get_role_or_raise(db, role_id)
    return role_service.update_role(
        db, role, role_in, updated_by=current_user.id, cache=cache
    )


@router.delete(
    "/{role_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a custom role",
)
def delete_role(
    role_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    cache: PermissionCache | None = Depends(get_permission_cache),
) -> None:
    """Delete a custom role. System roles cannot be deleted.

    Requires ROLE_DELETE permission.
    """
    role = role_service.get_role_or_raise(db, role_id)
    role_service.delete_role(db, role, deleted_by=current_user.id, cache=cache)
