# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""User management API endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from hrhub.api.deps import get_current_user, get_db, get_permission_cache
from hrhub.models import User
from hrhub.rbac.cache import PermissionCache
from hrhub.schemas.user import UserCreate, UserResponse
from hrhub.services import user_service

router = APIRouter()


@router.get(
    "/users",
    response_model=list[UserResponse],
    summary="List all users",
)
def list_users(db: Session = Depends(get_db)) -> list[User]:
    """Retrieve a list of all users in the system.

    Requires USER_READ permission.
    """
    return user_service.list_users(db)


@router.post(
    "/users",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new user",
)
def create_user(
    user_in: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> User:
    """Create a new user account.

    Requires USER_CREATE permission.
    """
    return user_service.create_user(db, user_in, created_by=current_user.id)


@router.delete(
    "/users/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a user",
)
def delete_user(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    cache: PermissionCache | None = Depends(get_permission_cache),
) -> None:
    """Delete a user together with their sessions, roles and overrides.

    Requires USER_DELETE permission.
    """
    user_service.delete_user(db, user_id, deleted_by=current_user.id, cache=cache)
