# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Assignment of permissions to roles and users, and of roles to users.

Every assignment is keyed by its pair (role/permission, user/permission,
user/role). Assigning an existing pair overwrites it and stamps a new
``assigned_at``, so the most recent write wins.
"""

import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from hrhub.models import Permission, Role, RolePermission, User, UserPermission, UserRole
from hrhub.rbac.cache import PermissionCache
from hrhub.rbac.exceptions import ConflictError, NotFoundError

logger = logging.getLogger(__name__)


def _get_user(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError(f"User '{user_id}' not found")
    return user


def _get_role(db: Session, role_id: str) -> Role:
    role = db.query(Role).filter(Role.id == role_id).first()
    if not role:
        raise NotFoundError(f"Role '{role_id}' not found")
    return role


def _get_editable_role(db: Session, role_id: str) -> Role:
    """Get a role whose grants may change. System role grants are fixed."""
    role = _get_role(db, role_id)
    if role.is_system:
        raise ConflictError("Permissions of system roles cannot be modified")
    return role


def _get_permissions(db: Session, permission_ids: list[str]) -> list[Permission]:
    permissions = []
    for permission_id in dict.fromkeys(permission_ids):
        permission = db.query(Permission).filter(Permission.id == permission_id).first()
        if not permission:
            raise NotFoundError(f"Permission '{permission_id}' not found")
        permissions.append(permission)
    return permissions


def _commit(db: Session, message: str) -> None:
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError(message) from e


# Role permissions


def _upsert_role_permission(
    db: Session,
    role_id: str,
    permission_id: str,
    is_granted: bool,
    assigned_by: str | None,
    expires_at: datetime | None,
) -> RolePermission:
    role_permission = (
        db.query(RolePermission)
        .filter(
            RolePermission.role_id == role_id,
            RolePermission.permission_id == permission_id,
        )
        .first()
    )
    if role_permission is None:
        role_permission = RolePermission(role_id=role_id, permission_id=permission_id)
        db.add(role_permission)
    role_permission.is_granted = is_granted
    role_permission.assigned_at = datetime.utcnow()
    role_permission.assigned_by = assigned_by
    role_permission.expires_at = expires_at
    return role_permission


def assign_permission_to_role(
    db: Session,
    role_id: str,
    permission_id: str,
    is_granted: bool = True,
    assigned_by: str | None = None,
    expires_at: datetime | None = None,
    cache: PermissionCache | None = None,
) -> RolePermission:
    """Grant or deny a permission to a role, replacing any earlier grant.

    Raises:
        NotFoundError: if the role or permission does not exist
        ConflictError: if the role is a system role
    """
    _get_editable_role(db, role_id)
    _get_permissions(db, [permission_id])

    role_permission = _upsert_role_permission(
        db, role_id, permission_id, is_granted, assigned_by, expires_at
    )
    _commit(db, "Permission is already assigned to this role")
    db.refresh(role_permission)
    if cache is not None:
        cache.clear()

    logger.info(
        f"Permission {permission_id} {'granted to' if is_granted else 'denied for'} "
        f"role {role_id} by user {assigned_by}"
    )
    return role_permission


def remove_permission_from_role(
    db: Session,
    role_id: str,
    permission_id: str,
    removed_by: str | None = None,
    cache: PermissionCache | None = None,
) -> None:
    """Remove a role grant.

    Raises:
        NotFoundError: if the role has no grant for the permission
        ConflictError: if the role is a system role
    """
    _get_editable_role(db, role_id)
    deleted = (
        db.query(RolePermission)
        .filter(
            RolePermission.role_id == role_id,
            RolePermission.permission_id == permission_id,
        )
        .delete(synchronize_session=False)
    )
    if not deleted:
        raise NotFoundError("Role permission assignment not found")
    db.commit()
    if cache is not None:
        cache.clear()
    logger.info(f"Permission {permission_id} removed from role {role_id} by user {removed_by}")


def list_role_permissions(
    db: Session,
    page: int = 1,
    per_page: int = 10,
    role_id: str | None = None,
    permission_id: str | None = None,
    is_granted: bool | None = None,
) -> tuple[list[RolePermission], int]:
    """List role grants with filtering and pagination, newest first."""
    query = db.query(RolePermission).options(
        joinedload(RolePermission.role), joinedload(RolePermission.permission)
    )
    if role_id:
        query = query.filter(RolePermission.role_id == role_id)
    if permission_id:
        query = query.filter(RolePermission.permission_id == permission_id)
    if is_granted is not None:
        query = query.filter(RolePermission.is_granted == is_granted)

    total = query.count()
    items = (
        query.order_by(RolePermission.assigned_at.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    return items, total


def bulk_assign_permissions_to_role(
    db: Session,
    role_id: str,
    permission_ids: list[str],
    is_granted: bool = True,
    assigned_by: str | None = None,
    expires_at: datetime | None = None,
    cache: PermissionCache | None = None,
) -> int:
    """Grant or deny several permissions to a role in one transaction.

    Returns:
        Number of grants written
    """
    _get_editable_role(db, role_id)
    permissions = _get_permissions(db, permission_ids)
    for permission in permissions:
        _upsert_role_permission(
            db, role_id, permission.id, is_granted, assigned_by, expires_at
        )
    _commit(db, "Permission is already assigned to this role")
    if cache is not None:
        cache.clear()

    logger.info(
        f"{len(permissions)} permission(s) assigned to role {role_id} by user {assigned_by}"
    )
    return len(permissions)


def bulk_remove_permissions_from_role(
    db: Session,
    role_id: str,
    permission_ids: list[str],
    removed_by: str | None = None,
    cache: PermissionCache | None = None,
) -> int:
    """Remove several role grants; ids without a grant are skipped.

    Returns:
        Number of grants removed
    """
    _get_editable_role(db, role_id)
    if not permission_ids:
        return 0
    deleted = (
        db.query(RolePermission)
        .filter(
            RolePermission.role_id == role_id,
            RolePermission.permission_id.in_(permission_ids),
        )
        .delete(synchronize_session=False)
    )
    db.commit()
    if cache is not None:
        cache.clear()
    logger.info(f"{deleted} permission(s) removed from role {role_id} by user {removed_by}")
    return deleted


def sync_role_permissions(
    db: Session,
    role_id: str,
    permission_ids: list[str],
    assigned_by: str | None = None,
    cache: PermissionCache | None = None,
) -> int:
    """Make a role grant exactly the given permissions.

    Grants outside the set are removed; grants in the set become plain,
    unexpiring grants.

    Returns:
        Number of grants the role holds afterwards
    """
    _get_editable_role(db, role_id)
    permissions = _get_permissions(db, permission_ids)
    wanted = {permission.id for permission in permissions}

    existing = db.query(RolePermission).filter(RolePermission.role_id == role_id).all()
    for role_permission in existing:
        if role_permission.permission_id not in wanted:
            db.delete(role_permission)
    db.flush()
    for permission in permissions:
        _upsert_role_permission(db, role_id, permission.id, True, assigned_by, None)

    _commit(db, "Permission is already assigned to this role")
    if cache is not None:
        cache.clear()
    logger.info(
        f"Permissions of role {role_id} synchronized to {len(wanted)} code(s) "
        f"by user {assigned_by}"
    )
    return len(wanted)


def copy_role_permissions(
    db: Session,
    source_role_id: str,
    target_role_id: str,
    assigned_by: str | None = None,
    cache: PermissionCache | None = None,
) -> int:
    """Copy every in-force grant and deny of one role onto another.

    Returns:
        Number of grants written to the target role
    """
    _get_role(db, source_role_id)
    _get_editable_role(db, target_role_id)
    if source_role_id == target_role_id:
        raise ConflictError("Source and target role must differ")

    now = datetime.utcnow()
    copied = 0
    sources = (
        db.query(RolePermission).filter(RolePermission.role_id == source_role_id).all()
    )
    for source in sources:
        if source.expires_at is not None and source.expires_at <= now:
            continue
        _upsert_role_permission(
            db,
            target_role_id,
            source.permission_id,
            source.is_granted,
            assigned_by,
            source.expires_at,
        )
        copied += 1

    _commit(db, "Permission is already assigned to this role")
    if cache is not None:
        cache.clear()
    logger.info(
        f"{copied} permission(s) copied from role {source_role_id} to role "
        f"{target_role_id} by user {assigned_by}"
    )
    return copied


def build_role_permission_response(role_permission: RolePermission) -> dict:
    permission = role_permission.permission
    return {
        "id": role_permission.id,
        "role_id": role_permission.role_id,
        "role_name": role_permission.role.name,
        "permission_id": permission.id,
        "permission_name": permission.name,
        "permission_code": permission.code,
        "module": permission.module,
        "action": permission.action,
        "resource": permission.resource,
        "is_granted": role_permission.is_granted,
        "assigned_at": role_permission.assigned_at,
        "assigned_by": role_permission.assigned_by,
        "expires_at": role_permission.expires_at,
    }


# User permissions


def _upsert_user_permission(
    db: Session,
    user_id: str,
    permission_id: str,
    is_granted: bool,
    assigned_by: str | None,
    expires_at: datetime | None,
    reason: str | None,
) -> UserPermission:
    user_permission = (
        db.query(UserPermission)
        .filter(
            UserPermission.user_id == user_id,
            UserPermission.permission_id == permission_id,
        )
        .first()
    )
    if user_permission is None:
        user_permission = UserPermission(user_id=user_id, permission_id=permission_id)
        db.add(user_permission)
    user_permission.is_granted = is_granted
    user_permission.assigned_at = datetime.utcnow()
    user_permission.assigned_by = assigned_by
    user_permission.expires_at = expires_at
    user_permission.reason = reason
    return user_permission


def assign_permission_to_user(
    db: Session,
    user_id: str,
    permission_id: str,
    is_granted: bool = True,
    assigned_by: str | None = None,
    expires_at: datetime | None = None,
    reason: str | None = None,
    cache: PermissionCache | None = None,
) -> UserPermission:
    """Set a direct override for a user, replacing any earlier override.

    Raises:
        NotFoundError: if the user or permission does not exist
    """
    _get_user(db, user_id)
    _get_permissions(db, [permission_id])

    user_permission = _upsert_user_permission(
        db, user_id, permission_id, is_granted, assigned_by, expires_at, reason
    )
    _commit(db, "Permission is already assigned to this user")
    db.refresh(user_permission)
    if cache is not None:
        cache.invalidate_user(user_id)

    logger.info(
        f"Permission {permission_id} {'granted to' if is_granted else 'denied for'} "
        f"user {user_id} by user {assigned_by}"
    )
    return user_permission


def remove_permission_from_user(
    db: Session,
    user_id: str,
    permission_id: str,
    removed_by: str | None = None,
    cache: PermissionCache | None = None,
) -> None:
    """Remove a direct override.

    Raises:
        NotFoundError: if the user has no override for the permission
    """
    deleted = (
        db.query(UserPermission)
        .filter(
            UserPermission.user_id == user_id,
            UserPermission.permission_id == permission_id,
        )
        .delete(synchronize_session=False)
    )
    if not deleted:
        raise NotFoundError("User permission assignment not found")
    db.commit()
    if cache is not None:
        cache.invalidate_user(user_id)
    logger.info(f"Permission {permission_id} removed from user {user_id} by user {removed_by}")


def list_user_permissions(
    db: Session,
    page: int = 1,
    per_page: int = 10,
    user_id: str | None = None,
    permission_id: str | None = None,
    is_granted: bool | None = None,
) -> tuple[list[UserPermission], int]:
    """List user overrides with filtering and pagination, newest first."""
    query = db.query(UserPermission).options(
        joinedload(UserPermission.user), joinedload(UserPermission.permission)
    )
    if user_id:
        query = query.filter(UserPermission.user_id == user_id)
    if permission_id:
        query = query.filter(UserPermission.permission_id == permission_id)
    if is_granted is not None:
        query = query.filter(UserPermission.is_granted == is_granted)

    total = query.count()
    items = (
        query.order_by(UserPermission.assigned_at.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    return items, total


def bulk_assign_permissions_to_user(
    db: Session,
    user_id: str,
    permission_ids: list[str],
    is_granted: bool = True,
    assigned_by: str | None = None,
    expires_at: datetime | None = None,
    reason: str | None = None,
    cache: PermissionCache | None = None,
) -> int:
    """Set several direct overrides for a user in one transaction."""
    _get_user(db, user_id)
    permissions = _get_permissions(db, permission_ids)
    for permission in permissions:
        _upsert_user_permission(
            db, user_id, permission.id, is_granted, assigned_by, expires_at, reason
        )
    _commit(db, "Permission is already assigned to this user")
    if cache is not None:
        cache.invalidate_user(user_id)

    logger.info(
        f"{len(permissions)} permission(s) assigned to user {user_id} by user {assigned_by}"
    )
    return len(permissions)


def bulk_remove_permissions_from_user(
    db: Session,
    user_id: str,
    permission_ids: list[str],
    removed_by: str | None = None,
    cache: PermissionCache | None = None,
) -> int:
    """Remove several direct overrides; ids without an override are skipped."""
    _get_user(db, user_id)
    if not permission_ids:
        return 0
    deleted = (
        db.query(UserPermission)
        .filter(
            UserPermission.user_id == user_id,
            UserPermission.permission_id.in_(permission_ids),
        )
        .delete(synchronize_session=False)
    )
    db.commit()
    if cache is not None:
        cache.invalidate_user(user_id)
    logger.info(f"{deleted} permission(s) removed from user {user_id} by user {removed_by}")
    return deleted


def sync_user_permissions(
    db: Session,
    user_id: str,
    permission_ids: list[str],
    assigned_by: str | None = None,
    cache: PermissionCache | None = None,
) -> int:
    """Make a user's direct overrides exactly the given plain grants."""
    _get_user(db, user_id)
    permissions = _get_permissions(db, permission_ids)
    wanted = {permission.id for permission in permissions}

    existing = db.query(UserPermission).filter(UserPermission.user_id == user_id).all()
    for user_permission in existing:
        if user_permission.permission_id not in wanted:
            db.delete(user_permission)
    db.flush()
    for permission in permissions:
        _upsert_user_permission(db, user_id, permission.id, True, assigned_by, None, None)

    _commit(db, "Permission is already assigned to this user")
    if cache is not None:
        cache.invalidate_user(user_id)
    logger.info(
        f"Permissions of user {user_id} synchronized to {len(wanted)} code(s) "
        f"by user {assigned_by}"
    )
    return len(wanted)


def copy_user_permissions(
    db: Session,
    source_user_id: str,
    target_user_id: str,
    assigned_by: str | None = None,
    cache: PermissionCache | None = None,
) -> int:
    """Copy every in-force override of one user onto another."""
    _get_user(db, source_user_id)
    _get_user(db, target_user_id)
    if source_user_id == target_user_id:
        raise ConflictError("Source and target user must differ")

    now = datetime.utcnow()
    copied = 0
    sources = (
        db.query(UserPermission).filter(UserPermission.user_id == source_user_id).all()
    )
    for source in sources:
        if source.expires_at is not None and source.expires_at <= now:
            continue
        _upsert_user_permission(
            db,
            target_user_id,
            source.permission_id,
            source.is_granted,
            assigned_by,
            source.expires_at,
            source.reason,
        )
        copied += 1

    _commit(db, "Permission is already assigned to this user")
    if cache is not None:
        cache.invalidate_user(target_user_id)
    logger.info(
        f"{copied} permission(s) copied from user {source_user_id} to user "
        f"{target_user_id} by user {assigned_by}"
    )
    return copied


def build_user_permission_response(user_permission: UserPermission) -> dict:
    user = user_permission.user
    permission = user_permission.permission
    return {
        "id": user_permission.id,
        "user_id": user.id,
        "user_name": user.full_name or user.username,
        "user_email": user.email,
        "permission_id": permission.id,
        "permission_name": permission.name,
        "permission_code": permission.code,
        "module": permission.module,
        "action": permission.action,
        "resource": permission.resource,
        "is_granted": user_permission.is_granted,
        "assigned_at": user_permission.assigned_at,
        "assigned_by": user_permission.assigned_by,
        "expires_at": user_permission.expires_at,
        "reason": user_permission.reason,
    }


# User roles


def assign_role_to_user(
    db: Session,
    user_id: str,
    role_id: str,
    assigned_by: str | None = None,
    expires_at: datetime | None = None,
    cache: PermissionCache | None = None,
) -> UserRole:
    """Assign a role to a user, reactivating an earlier assignment if present.

    Raises:
        NotFoundError: if the user or role does not exist
    """
    _get_user(db, user_id)
    _get_role(db, role_id)

    user_role = (
        db.query(UserRole)
        .filter(UserRole.user_id == user_id, UserRole.role_id == role_id)
        .first()
    )
    if user_role is None:
        user_role = UserRole(user_id=user_id, role_id=role_id)
        db.add(user_role)
    user_role.is_active = True
    user_role.assigned_at = datetime.utcnow()
    user_role.assigned_by = assigned_by
    user_role.expires_at = expires_at

    _commit(db, "User already has this role")
    db.refresh(user_role)
    if cache is not None:
        cache.invalidate_user(user_id)
    logger.info(f"Role {role_id} assigned to user {user_id} by user {assigned_by}")
    return user_role


def remove_role_from_user(
    db: Session,
    user_id: str,
    role_id: str,
    removed_by: str | None = None,
    cache: PermissionCache | None = None,
) -> None:
    """Remove a role assignment.

    Raises:
        NotFoundError: if the user does not hold the role
    """
    deleted = (
        db.query(UserRole)
        .filter(UserRole.user_id == user_id, UserRole.role_id == role_id)
        .delete(synchronize_session=False)
    )
    if not deleted:
        raise NotFoundError("Role assignment not found")
    db.commit()
    if cache is not None:
        cache.invalidate_user(user_id)
    logger.info(f"Role {role_id} removed from user {user_id} by user {removed_by}")


def list_user_roles(db: Session, user_id: str, active_only: bool = True) -> list[UserRole]:
    """Get a user's role assignments.

    With ``active_only`` only assignments that currently contribute
    permissions are returned.
    """
    _get_user(db, user_id)
    query = (
        db.query(UserRole)
        .options(joinedload(UserRole.user), joinedload(UserRole.role))
        .filter(UserRole.user_id == user_id)
    )
    user_roles = query.order_by(UserRole.assigned_at).all()
    if not active_only:
        return user_roles
    now = datetime.utcnow()
    return [
        ur
        for ur in user_roles
        if ur.is_active
        and ur.role.is_active
        and (ur.expires_at is None or ur.expires_at > now)
    ]


def list_role_users(db: Session, role_id: str) -> list[User]:
    """Get the users holding an active, unexpired assignment of a role."""
    _get_role(db, role_id)
    now = datetime.utcnow()
    assignments = (
        db.query(UserRole)
        .options(joinedload(UserRole.user))
        .filter(UserRole.role_id == role_id, UserRole.is_active == True)  # noqa: E712
        .all()
    )
    users = [
        ur.user
        for ur in assignments
        if ur.expires_at is None or ur.expires_at > now
    ]
    return sorted(users, key=lambda user: user.username)


def build_user_role_response(user_role: UserRole) -> dict:
    user = user_role.user
    return {
        "id": user_role.id,
        "user_id": user.id,
        "user_name": user.full_name or user.username,
        "user_email": user.email,
        "role_id": user_role.role_id,
        "role_name": user_role.role.name,
        "is_active": user_role.is_active,
        "assigned_at": user_role.assigned_at,
        "assigned_by": user_role.assigned_by,
        "expires_at": user_role.expires_at,
    }
