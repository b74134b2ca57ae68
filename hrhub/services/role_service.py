# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Role management service."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hrhub.models import Permission, Role, RolePermission
from hrhub.rbac.cache import PermissionCache
from hrhub.rbac.exceptions import ConflictError, NotFoundError
from hrhub.schemas.rbac import RoleCreate, RoleUpdate

logger = logging.getLogger(__name__)


def get_role(db: Session, role_id: str) -> Role | None:
    """Get a role by ID."""
    return db.query(Role).filter(Role.id == role_id).first()


def get_role_or_raise(db: Session, role_id: str) -> Role:
    role = get_role(db, role_id)
    if not role:
        raise NotFoundError(f"Role '{role_id}' not found")
    return role


def get_role_by_name(db: Session, name: str) -> Role | None:
    """Get a role by its name."""
    return db.query(Role).filter(Role.name == name).first()


def list_roles(db: Session, include_inactive: bool = True) -> list[Role]:
    query = db.query(Role)
    if not include_inactive:
        query = query.filter(Role.is_active == True)  # noqa: E712
    return query.order_by(Role.name).all()


def _permissions_for_codes(db: Session, codes: list[str]) -> list[Permission]:
    permissions = []
    for code in dict.fromkeys(codes):
        permission = db.query(Permission).filter(Permission.code == code).first()
        if not permission:
            raise NotFoundError(f"Permission '{code}' not found")
        permissions.append(permission)
    return permissions


def create_role(
    db: Session,
    data: RoleCreate,
    created_by: str | None = None,
    is_system: bool = False,
) -> Role:
    """Create a role and grant it the given permission codes.

    Raises:
        ConflictError: if the name is already taken
        NotFoundError: if a permission code does not exist
    """
    if get_role_by_name(db, data.name):
        raise ConflictError("Role with this name already exists")
    permissions = _permissions_for_codes(db, data.permissions)

    role = Role(name=data.name, description=data.description, is_system=is_system)
    db.add(role)
    db.flush()  # To get role.id

    for permission in permissions:
        db.add(
            RolePermission(
                role_id=role.id, permission_id=permission.id, assigned_by=created_by
            )
        )

    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("Role could not be created: name or grants conflict") from e
    db.refresh(role)
    logger.info(f"Role created: {role.name} by user {created_by}")
    return role


def update_role(
    db: Session,
    role: Role,
    data: RoleUpdate,
    updated_by: str | None = None,
    cache: PermissionCache | None = None,
) -> Role:
    """Update a role's name, description, state and granted permissions.

    Passing ``permissions`` replaces the role's grants with plain, unexpiring
    grants for exactly those codes.

    Raises:
        ConflictError: if the role is a system role or the name is taken
    """
    if role.is_system:
        raise ConflictError("System roles cannot be modified")

    if data.name and data.name != role.name:
        existing = get_role_by_name(db, data.name)
        if existing and existing.id != role.id:
            raise ConflictError("Role with this name already exists")
        role.name = data.name

    if data.description is not None:
        role.description = data.description
    if data.is_active is not None:
        role.is_active = data.is_active

    if data.permissions is not None:
        permissions = _permissions_for_codes(db, data.permissions)
        db.query(RolePermission).filter(RolePermission.role_id == role.id).delete()
        db.flush()
        for permission in permissions:
            db.add(
                RolePermission(
                    role_id=role.id, permission_id=permission.id, assigned_by=updated_by
                )
            )

    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("Role could not be updated: name or grants conflict") from e
    db.refresh(role)
    if cache is not None:
        cache.clear()
    logger.info(f"Role updated: {role.name} by user {updated_by}")
    return role


def delete_role(
    db: Session,
    role: Role,
    deleted_by: str | None = None,
    cache: PermissionCache | None = None,
) -> None:
    """Delete a role along with its grants and assignments.

    Raises:
        ConflictError: if the role is a system role
    """
    if role.is_system:
        raise ConflictError("System roles cannot be deleted")
    name = role.name
    db.delete(role)
    db.commit()
    if cache is not None:
        cache.clear()
    logger.info(f"Role deleted: {name} by user {deleted_by}")
