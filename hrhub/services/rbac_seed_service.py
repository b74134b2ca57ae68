# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Seeding of the core permission catalog and default roles."""

import logging

from sqlalchemy.orm import Session

from hrhub.models import Permission, Role, RolePermission
from hrhub.rbac.permissions import CORE_PERMISSIONS
from hrhub.rbac.roles import DEFAULT_ROLES

logger = logging.getLogger(__name__)


def seed_rbac_data(db: Session) -> None:
    """Seeds the database with core permissions and default roles.

    This function is idempotent: existing permissions and roles are left as
    they are, so changes made through the API survive a restart.
    """
    created_permissions = 0
    for perm_data in CORE_PERMISSIONS:
        permission = (
            db.query(Permission).filter(Permission.code == perm_data["code"]).first()
        )
        if not permission:
            db.add(Permission(**perm_data))
            created_permissions += 1
    db.flush()

    created_roles = 0
    for role_data in DEFAULT_ROLES:
        role = db.query(Role).filter(Role.name == role_data["name"]).first()
        if not role:
            role = Role(
                name=role_data["name"],
                is_system=role_data["is_system"],
                description=role_data["description"],
            )
            db.add(role)
            db.flush()  # Flush to get the role ID
            created_roles += 1

            for perm_code in role_data["permissions"]:
                permission = (
                    db.query(Permission).filter(Permission.code == perm_code).first()
                )
                if permission:
                    db.add(RolePermission(role_id=role.id, permission_id=permission.id))
                else:
                    logger.warning(
                        f"Default role {role.name} references unknown permission {perm_code}"
                    )
    db.commit()

    if created_permissions or created_roles:
        logger.info(
            f"Seeded {created_permissions} permission(s) and {created_roles} role(s)"
        )
