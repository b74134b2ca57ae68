# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Tests for rbac_seed_service."""

from hrhub.models import Permission, Role, RolePermission
from hrhub.rbac.permissions import CORE_PERMISSIONS
from hrhub.rbac.roles import DEFAULT_ROLES
from hrhub.services import rbac_service
from hrhub.services.rbac_seed_service import seed_rbac_data


def test_seed_creates_catalog_and_roles(db_session):
    seed_rbac_data(db_session)

    assert db_session.query(Permission).count() == len(CORE_PERMISSIONS)
    assert {r.name for r in db_session.query(Role)} == {r["name"] for r in DEFAULT_ROLES}

    admin = db_session.query(Role).filter(Role.name == "Admin").one()
    assert admin.is_system is True
    assert len(rbac_service.get_role_permissions_list(db_session, admin.id)) == len(
        CORE_PERMISSIONS
    )


def test_seed_is_idempotent(db_session):
    seed_rbac_data(db_session)
    grants = db_session.query(RolePermission).count()

    seed_rbac_data(db_session)

    assert db_session.query(Permission).count() == len(CORE_PERMISSIONS)
    assert db_session.query(RolePermission).count() == grants


def test_seed_keeps_changes_made_later(db_session):
    seed_rbac_data(db_session)
    permission = db_session.query(Permission).filter(Permission.code == "REPORT_VIEW").one()
    permission.is_active = False
    db_session.commit()

    seed_rbac_data(db_session)

    db_session.refresh(permission)
    assert permission.is_active is False
