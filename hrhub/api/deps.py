# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""API dependencies for dependency injection."""

from fastapi import Cookie, Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from hrhub.database import get_db
from hrhub.models import User
from hrhub.rbac.cache import PermissionCache
from hrhub.rbac.gate import PermissionGate
from hrhub.services import auth_service

bearer_scheme = HTTPBearer(auto_error=False)

__all__ = [
    "enforce_permissions",
    "get_current_user",
    "get_db",
    "get_optional_user",
    "get_permission_cache",
]


def get_optional_user(
    db: Session = Depends(get_db),
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: str | None = Cookie(default=None),
) -> User | None:
    """Get current user from a bearer token or session cookie, if any."""
    token = credentials.credentials if credentials else session
    return auth_service.resolve_identity(db, token)


def get_current_user(
    current_user: User | None = Depends(get_optional_user),
) -> User:
    """Get current authenticated user."""
    if current_user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return current_user


def get_permission_cache(request: Request) -> PermissionCache | None:
    """Get the application's permission cache."""
    return getattr(request.app.state, "permission_cache", None)


def operation_id_for(request: Request) -> str | None:
    """Name of the route function handling a request."""
    endpoint = request.scope.get("endpoint")
    return getattr(endpoint, "__name__", None)


def enforce_permissions(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
) -> None:
    """Run the permission gate for the matched operation.

    Rejections are raised as AccessDeniedError and rendered by the
    application's exception handler.
    """
    gate: PermissionGate = request.app.state.permission_gate
    gate.authorize(
        db,
        operation_id_for(request),
        current_user.id if current_user else None,
    )
