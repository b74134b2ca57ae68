# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Permission resolution: does a user currently hold a permission?"""

import logging
from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hrhub.models import Permission, Role, RolePermission, User, UserPermission, UserRole
from hrhub.rbac.cache import PermissionCache
from hrhub.rbac.exceptions import NotFoundError, PermissionResolutionError
from hrhub.rbac.types import PermissionCheck

logger = logging.getLogger(__name__)


def in_force(model, now: datetime):
    """Filter clause for rows whose expiry is unset or still in the future."""
    return or_(model.expires_at.is_(None), model.expires_at > now)


def resource_matches(permission: Permission, resource: str | None) -> bool:
    """Check a resource qualifier against a permission's resource.

    No qualifier always matches; an empty permission resource is a wildcard.
    """
    if not resource or not permission.resource:
        return True
    return permission.resource == resource


def get_permission_by_code(db: Session, code: str) -> Permission | None:
    """Get a permission by its code."""
    return db.query(Permission).filter(Permission.code == code).first()


def list_active_roles_for(
    db: Session, user_id: str, now: datetime | None = None
) -> list[Role]:
    """Get the roles that currently contribute permissions to a user.

    An assignment contributes when it is active and not expired and the role
    itself is active.
    """
    now = now or datetime.utcnow()
    return (
        db.query(Role)
        .join(UserRole, UserRole.role_id == Role.id)
        .filter(
            UserRole.user_id == user_id,
            UserRole.is_active == True,  # noqa: E712
            in_force(UserRole, now),
            Role.is_active == True,  # noqa: E712
        )
        .order_by(Role.name)
        .all()
    )


def list_grants_for(
    db: Session, role_id: str, now: datetime | None = None
) -> list[RolePermission]:
    """Get a role's grants and denies that are in force."""
    now = now or datetime.utcnow()
    return (
        db.query(RolePermission)
        .filter(RolePermission.role_id == role_id, in_force(RolePermission, now))
        .order_by(RolePermission.assigned_at.desc())
        .all()
    )


def list_overrides_for(
    db: Session, user_id: str, now: datetime | None = None
) -> list[UserPermission]:
    """Get a user's direct overrides that are in force."""
    now = now or datetime.utcnow()
    return (
        db.query(UserPermission)
        .filter(UserPermission.user_id == user_id, in_force(UserPermission, now))
        .order_by(UserPermission.assigned_at.desc())
        .all()
    )


def _resolve(
    db: Session, user_id: str, permission_code: str, resource: str | None
) -> PermissionCheck:
    permission = get_permission_by_code(db, permission_code)
    if permission is None:
        return PermissionCheck(
            False, permission_code, resource, permission_found=False
        )
    denied = PermissionCheck(False, permission_code, resource)
    if not permission.is_active or not resource_matches(permission, resource):
        return denied

    user = db.query(User).filter(User.id == user_id).first()
    if user is None or not user.is_active:
        return denied

    now = datetime.utcnow()

    # A direct override decides on its own, whichever way it points
    override = (
        db.query(UserPermission)
        .filter(
            UserPermission.user_id == user_id,
            UserPermission.permission_id == permission.id,
            in_force(UserPermission, now),
        )
        .order_by(UserPermission.assigned_at.desc())
        .first()
    )
    if override is not None:
        return PermissionCheck(
            override.is_granted,
            permission_code,
            resource,
            source="user",
            reason=override.reason,
            expires_at=override.expires_at,
        )

    assignments = (
        db.query(UserRole)
        .join(Role, Role.id == UserRole.role_id)
        .filter(
            UserRole.user_id == user_id,
            UserRole.is_active == True,  # noqa: E712
            in_force(UserRole, now),
            Role.is_active == True,  # noqa: E712
        )
        .all()
    )
    for assignment in assignments:
        grant = (
            db.query(RolePermission)
            .filter(
                RolePermission.role_id == assignment.role_id,
                RolePermission.permission_id == permission.id,
                in_force(RolePermission, now),
            )
            .order_by(RolePermission.assigned_at.desc())
            .first()
        )
        if grant is not None and grant.is_granted:
            # The grant lapses with whichever of the two rows expires first
            expiries = [e for e in (grant.expires_at, assignment.expires_at) if e]
            return PermissionCheck(
                True,
                permission_code,
                resource,
                source="role",
                expires_at=min(expiries) if expiries else None,
            )

    return denied


def check_user_permission(
    db: Session,
    user_id: str,
    permission_code: str,
    resource: str | None = None,
    cache: PermissionCache | None = None,
) -> PermissionCheck:
    """Resolve a permission for a user and report how it was decided.

    Unknown users and unknown or inactive permissions resolve to a denial.
    A failure to read the store raises PermissionResolutionError instead of
    returning a decision.
    """
    if cache is not None:
        cached = cache.get(user_id, permission_code, resource)
        if cached is not None:
            return cached

    try:
        check = _resolve(db, user_id, permission_code, resource)
    except SQLAlchemyError as e:
        logger.error(
            f"Permission resolution failed: user {user_id}, permission {permission_code}: {e}"
        )
        raise PermissionResolutionError(
            f"Unable to resolve permission '{permission_code}'"
        ) from e

    if check.has_permission:
        logger.debug(
            f"Permission granted: user {user_id}, permission {permission_code}, "
            f"resource {resource}, source {check.source}"
        )
    else:
        logger.info(
            f"Permission denied: user {user_id}, permission {permission_code}, "
            f"resource {resource}, source {check.source}"
        )

    if cache is not None:
        cache.set(user_id, permission_code, resource, check)
    return check


def has_permission(
    db: Session,
    user_id: str,
    permission_code: str,
    resource: str | None = None,
    cache: PermissionCache | None = None,
) -> bool:
    """Check if a user currently has a permission."""
    return check_user_permission(
        db, user_id, permission_code, resource, cache
    ).has_permission


def get_role_permissions_list(db: Session, role_id: str) -> list[Permission]:
    """Get the permissions a role currently grants."""
    return (
        db.query(Permission)
        .join(RolePermission, RolePermission.permission_id == Permission.id)
        .filter(
            RolePermission.role_id == role_id,
            RolePermission.is_granted == True,  # noqa: E712
            in_force(RolePermission, datetime.utcnow()),
        )
        .order_by(Permission.name)
        .all()
    )


def get_user_permissions_list(db: Session, user_id: str) -> list[Permission]:
    """Get the permissions granted directly to a user by overrides."""
    return (
        db.query(Permission)
        .join(UserPermission, UserPermission.permission_id == Permission.id)
        .filter(
            UserPermission.user_id == user_id,
            UserPermission.is_granted == True,  # noqa: E712
            in_force(UserPermission, datetime.utcnow()),
        )
        .order_by(Permission.name)
        .all()
    )


def get_user_effective_permissions(db: Session, user_id: str) -> list[Permission]:
    """Get every active catalog permission the user currently holds."""
    permissions = (
        db.query(Permission)
        .filter(Permission.is_active == True)  # noqa: E712
        .order_by(Permission.module, Permission.name)
        .all()
    )
    return [p for p in permissions if has_permission(db, user_id, p.code)]


def get_user_permissions_summary(db: Session, user_id: str) -> dict:
    """Summarize a user's roles, direct grants and effective permissions.

    Raises:
        NotFoundError: if the user does not exist
    """
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError(f"User '{user_id}' not found")

    roles = list_active_roles_for(db, user_id)
    direct_permissions = get_user_permissions_list(db, user_id)

    role_permissions: list[Permission] = []
    seen: set[str] = set()
    for role in roles:
        for permission in get_role_permissions_list(db, role.id):
            if permission.id not in seen:
                seen.add(permission.id)
                role_permissions.append(permission)

    all_permissions = get_user_effective_permissions(db, user_id)

    permissions_by_module: dict[str, list[Permission]] = {}
    for permission in all_permissions:
        permissions_by_module.setdefault(permission.module, []).append(permission)

    return {
        "user_id": user.id,
        "user_name": user.full_name or user.username,
        "user_email": user.email,
        "roles": [role.name for role in roles],
        "direct_permissions": direct_permissions,
        "role_permissions": role_permissions,
        "all_permissions": all_permissions,
        "permissions_by_module": permissions_by_module,
    }
