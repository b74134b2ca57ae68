# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""User account management."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hrhub.models import User
from hrhub.rbac.cache import PermissionCache
from hrhub.rbac.exceptions import ConflictError, NotFoundError
from hrhub.schemas.user import UserCreate
from hrhub.security import get_password_hash
from hrhub.services import auth_service

logger = logging.getLogger(__name__)


def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.username).all()


def create_user(db: Session, data: UserCreate, created_by: str | None = None) -> User:
    """Create a user account.

    Raises:
        ConflictError: if the username or email is already registered
    """
    if auth_service.get_user_by_username(db, data.username):
        raise ConflictError("Username already registered")
    if auth_service.get_user_by_email(db, data.email):
        raise ConflictError("Email already registered")

    user = User(
        username=data.username,
        email=data.email,
        first_name=data.first_name,
        last_name=data.last_name,
        hashed_password=get_password_hash(data.password),
        is_active=True,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("Username or email already registered") from e
    db.refresh(user)

    logger.info(f"User created: {user.username} by user {created_by}")
    return user


def delete_user(
    db: Session,
    user_id: str,
    deleted_by: str | None = None,
    cache: PermissionCache | None = None,
) -> None:
    """Delete a user with their sessions, role assignments and overrides.

    Raises:
        NotFoundError: if the user does not exist
        ConflictError: if a user tries to delete their own account
    """
    user = auth_service.get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError(f"User '{user_id}' not found")
    if user.id == deleted_by:
        raise ConflictError("Users cannot delete their own account")

    username = user.username
    db.delete(user)
    db.commit()
    if cache is not None:
        cache.invalidate_user(user_id)
    logger.info(f"User deleted: {username} by user {deleted_by}")
