# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Permission catalog management and maintenance."""

import logging
from datetime import datetime

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hrhub.models import Permission, Role, RolePermission, User, UserPermission, UserRole
from hrhub.rbac.cache import PermissionCache
from hrhub.rbac.exceptions import ConflictError, NotFoundError
from hrhub.schemas.rbac import PermissionCreate, PermissionUpdate

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "name": Permission.name,
    "code": Permission.code,
    "module": Permission.module,
    "created_at": Permission.created_at,
}


def get_permission(db: Session, permission_id: str) -> Permission | None:
    """Get a permission by ID."""
    return db.query(Permission).filter(Permission.id == permission_id).first()


def get_permission_or_raise(db: Session, permission_id: str) -> Permission:
    permission = get_permission(db, permission_id)
    if not permission:
        raise NotFoundError(f"Permission '{permission_id}' not found")
    return permission


def get_permission_by_code(db: Session, code: str) -> Permission | None:
    """Get a permission by code."""
    return db.query(Permission).filter(Permission.code == code).first()


def list_permissions(
    db: Session,
    page: int = 1,
    per_page: int = 10,
    search: str | None = None,
    module: str | None = None,
    action: str | None = None,
    resource: str | None = None,
    is_active: bool | None = None,
    sort_by: str = "name",
    sort_direction: str = "asc",
) -> tuple[list[Permission], int]:
    """List permissions with filtering, sorting and pagination.

    Returns:
        Tuple of (permissions on the requested page, total matching count)
    """
    query = db.query(Permission)

    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                Permission.name.ilike(pattern),
                Permission.code.ilike(pattern),
                Permission.description.ilike(pattern),
            )
        )
    if module:
        query = query.filter(Permission.module == module)
    if action:
        query = query.filter(Permission.action == action)
    if resource:
        query = query.filter(Permission.resource == resource)
    if is_active is not None:
        query = query.filter(Permission.is_active == is_active)

    column = SORT_COLUMNS.get(sort_by.lower(), Permission.name)
    order = column.desc() if sort_direction.lower() == "desc" else column.asc()

    total = query.count()
    permissions = (
        query.order_by(order, Permission.code)
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    return permissions, total


def create_permission(
    db: Session,
    data: PermissionCreate,
    created_by: str | None = None,
    cache: PermissionCache | None = None,
) -> Permission:
    """Create a permission.

    Raises:
        ConflictError: if the code is already taken
    """
    if get_permission_by_code(db, data.code):
        raise ConflictError(f"Permission with code '{data.code}' already exists")

    permission = Permission(**data.model_dump(), created_by=created_by)
    db.add(permission)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError(f"Permission with code '{data.code}' already exists") from e
    db.refresh(permission)
    if cache is not None:
        cache.clear()

    logger.info(f"Permission created: {permission.code} by user {created_by}")
    return permission


def is_permission_referenced(db: Session, permission_id: str) -> bool:
    """Check whether any role grant or user override points at a permission."""
    role_refs = (
        db.query(RolePermission)
        .filter(RolePermission.permission_id == permission_id)
        .count()
    )
    user_refs = (
        db.query(UserPermission)
        .filter(UserPermission.permission_id == permission_id)
        .count()
    )
    return role_refs > 0 or user_refs > 0


def update_permission(
    db: Session,
    permission: Permission,
    data: PermissionUpdate,
    updated_by: str | None = None,
    cache: PermissionCache | None = None,
) -> Permission:
    """Update a permission.

    The code of a permission that is referenced by a grant cannot change.

    Raises:
        ConflictError: if the new code is taken or the permission is referenced
    """
    update_data = data.model_dump(exclude_unset=True)

    new_code = update_data.get("code")
    if new_code and new_code != permission.code:
        existing = get_permission_by_code(db, new_code)
        if existing and existing.id != permission.id:
            raise ConflictError(f"Permission with code '{new_code}' already exists")
        if is_permission_referenced(db, permission.id):
            raise ConflictError(
                f"Permission code '{permission.code}' is in use and cannot be changed"
            )

    for field, value in update_data.items():
        if value is None and field != "description":
            continue
        setattr(permission, field, value)

    permission.updated_at = datetime.utcnow()
    permission.updated_by = updated_by
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError(f"Permission with code '{new_code}' already exists") from e
    db.refresh(permission)
    if cache is not None:
        cache.clear()

    logger.info(f"Permission updated: {permission.code} by user {updated_by}")
    return permission


def delete_permission(
    db: Session,
    permission: Permission,
    deleted_by: str | None = None,
    cache: PermissionCache | None = None,
) -> None:
    """Delete a permission that nothing references.

    Raises:
        ConflictError: if a role grant or user override references it
    """
    if is_permission_referenced(db, permission.id):
        raise ConflictError(
            "Cannot delete permission that is assigned to roles or users; "
            "deactivate it instead"
        )
    code = permission.code
    db.delete(permission)
    db.commit()
    if cache is not None:
        cache.clear()
    logger.info(f"Permission deleted: {code} by user {deleted_by}")


def get_permissions_by_module(db: Session, module: str) -> list[Permission]:
    """Get active permissions of a module."""
    return (
        db.query(Permission)
        .filter(Permission.module == module, Permission.is_active == True)  # noqa: E712
        .order_by(Permission.name)
        .all()
    )


def get_permissions_by_action(db: Session, action: str) -> list[Permission]:
    """Get active permissions for an action."""
    return (
        db.query(Permission)
        .filter(Permission.action == action, Permission.is_active == True)  # noqa: E712
        .order_by(Permission.name)
        .all()
    )


def _distinct_values(db: Session, column) -> list[str]:
    rows = db.query(column).filter(column != "").distinct().order_by(column).all()
    return [row[0] for row in rows]


def get_available_modules(db: Session) -> list[str]:
    return _distinct_values(db, Permission.module)


def get_available_actions(db: Session) -> list[str]:
    return _distinct_values(db, Permission.action)


def get_available_resources(db: Session) -> list[str]:
    return _distinct_values(db, Permission.resource)


def get_permission_statistics(db: Session, top: int = 10) -> dict:
    """Count permissions by state, module and action, plus grant usage."""
    total = db.query(Permission).count()
    active = (
        db.query(Permission).filter(Permission.is_active == True).count()  # noqa: E712
    )

    by_module = dict(
        db.query(Permission.module, func.count(Permission.id))
        .group_by(Permission.module)
        .all()
    )
    by_action = dict(
        db.query(Permission.action, func.count(Permission.id))
        .group_by(Permission.action)
        .all()
    )

    usage: dict[str, int] = {}
    for model in (RolePermission, UserPermission):
        rows = (
            db.query(Permission.code, func.count(model.id))
            .join(model, model.permission_id == Permission.id)
            .group_by(Permission.code)
            .all()
        )
        for code, count in rows:
            usage[code] = usage.get(code, 0) + count
    most_used = sorted(usage, key=lambda code: (-usage[code], code))[:top]

    return {
        "total_permissions": total,
        "active_permissions": active,
        "inactive_permissions": total - active,
        "permissions_by_module": by_module,
        "permissions_by_action": by_action,
        "total_role_permissions": db.query(RolePermission).count(),
        "total_user_permissions": db.query(UserPermission).count(),
        "most_used_permissions": most_used,
    }


def cleanup_expired_assignments(
    db: Session, cache: PermissionCache | None = None
) -> dict[str, int]:
    """Delete grants, overrides and role assignments that have expired.

    Returns:
        Number of rows deleted per table
    """
    now = datetime.utcnow()
    counts = {
        "role_permissions": db.query(RolePermission)
        .filter(RolePermission.expires_at.isnot(None), RolePermission.expires_at <= now)
        .delete(synchronize_session=False),
        "user_permissions": db.query(UserPermission)
        .filter(UserPermission.expires_at.isnot(None), UserPermission.expires_at <= now)
        .delete(synchronize_session=False),
        "user_roles": db.query(UserRole)
        .filter(UserRole.expires_at.isnot(None), UserRole.expires_at <= now)
        .delete(synchronize_session=False),
    }
    db.commit()
    if cache is not None:
        cache.clear()

    logger.info(
        "Expired assignments removed: "
        + ", ".join(f"{table}={count}" for table, count in counts.items())
    )
    return counts


def get_orphaned_permissions(db: Session) -> list[str]:
    """Codes of active permissions that no role grant or user override uses."""
    granted_ids = {row[0] for row in db.query(RolePermission.permission_id).distinct()}
    granted_ids |= {row[0] for row in db.query(UserPermission.permission_id).distinct()}
    permissions = (
        db.query(Permission)
        .filter(Permission.is_active == True)  # noqa: E712
        .order_by(Permission.code)
        .all()
    )
    return [p.code for p in permissions if p.id not in granted_ids]


def validate_permission_integrity(db: Session) -> list[str]:
    """Find grants and assignments that point at missing or disabled records.

    Returns:
        Human readable descriptions of each problem found; empty when valid
    """
    issues: list[str] = []
    permission_ids = {row[0] for row in db.query(Permission.id)}
    inactive_ids = {
        row[0]
        for row in db.query(Permission.id).filter(Permission.is_active == False)  # noqa: E712
    }
    role_ids = {row[0] for row in db.query(Role.id)}
    user_ids = {row[0] for row in db.query(User.id)}

    for rp in db.query(RolePermission).all():
        if rp.permission_id not in permission_ids:
            issues.append(f"Role grant {rp.id} references missing permission {rp.permission_id}")
        elif rp.permission_id in inactive_ids and rp.is_granted:
            issues.append(f"Role grant {rp.id} grants inactive permission {rp.permission_id}")
        if rp.role_id not in role_ids:
            issues.append(f"Role grant {rp.id} references missing role {rp.role_id}")

    for up in db.query(UserPermission).all():
        if up.permission_id not in permission_ids:
            issues.append(
                f"User override {up.id} references missing permission {up.permission_id}"
            )
        elif up.permission_id in inactive_ids and up.is_granted:
            issues.append(
                f"User override {up.id} grants inactive permission {up.permission_id}"
            )
        if up.user_id not in user_ids:
            issues.append(f"User override {up.id} references missing user {up.user_id}")

    for ur in db.query(UserRole).all():
        if ur.role_id not in role_ids:
            issues.append(f"Role assignment {ur.id} references missing role {ur.role_id}")
        if ur.user_id not in user_ids:
            issues.append(f"Role assignment {ur.id} references missing user {ur.user_id}")

    if issues:
        logger.warning(f"Permission integrity check found {len(issues)} issue(s)")
    return issues
