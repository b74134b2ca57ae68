# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""User role assignment API endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from hrhub.api.deps import get_current_user, get_db, get_permission_cache
from hrhub.models import User
from hrhub.rbac.cache import PermissionCache
from hrhub.schemas.rbac import UserRoleAssign, UserRoleResponse
from hrhub.services import assignment_service

router = APIRouter(prefix="/user-roles", tags=["user-roles"])


@router.get(
    "/users/{user_id}",
    response_model=list[UserRoleResponse],
    summary="Get a user's role assignments",
)
def list_user_roles(
    user_id: str,
    include_inactive: bool = False,
    db: Session = Depends(get_db),
) -> list[UserRoleResponse]:
    """Retrieve the role assignments of a user.

    By default only assignments that currently grant permissions are listed.
    Requires ROLE_READ permission.
    """
    user_roles = assignment_service.list_user_roles(
        db, user_id, active_only=not include_inactive
    )
    return [
        UserRoleResponse(**assignment_service.build_user_role_response(ur))
        for ur in user_roles
    ]


@router.post(
    "",
    response_model=UserRoleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Assign a role to a user",
)
def assign_user_role(
    assignment: UserRoleAssign,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    cache: PermissionCache | None = Depends(get_permission_cache),
) -> UserRoleResponse:
    """Assign a role to a user; an earlier assignment is reactivated.

    Requires PERMISSION_ASSIGN permission.
    """
    user_role = assignment_service.assign_role_to_user(
        db,
        assignment.user_id,
        assignment.role_id,
        assigned_by=current_user.id,
        expires_at=assignment.expires_at,
        cache=cache,
    )
    return UserRoleResponse(**assignment_service.build_user_role_response(user_role))


@router.delete(
    "/users/{user_id}/roles/{role_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a role from a user",
)
def remove_user_role(
    user_id: str,
    role_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    cache: PermissionCache | None = Depends(get_permission_cache),
) -> None:
    assignment_service.remove_role_from_user(
        db, user_id, role_id, removed_by=current_user.id, cache=cache
    )
