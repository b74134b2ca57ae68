# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Tests for role_service."""

import pytest

from hrhub.models import Role, RolePermission, UserRole
from hrhub.rbac.exceptions import ConflictError, NotFoundError
from hrhub.schemas.rbac import RoleCreate, RoleUpdate
from hrhub.services import rbac_service, role_service


def test_create_role_with_permissions(db_session, make_permission):
    make_permission("EMPLOYEE_READ")
    role = role_service.create_role(
        db_session, RoleCreate(name="Payroll", permissions=["EMPLOYEE_READ"])
    )
    assert role.is_system is False
    assert [p.code for p in rbac_service.get_role_permissions_list(db_session, role.id)] == [
        "EMPLOYEE_READ"
    ]


def test_create_role_duplicate_name(db_session, make_role):
    make_role("Payroll")
    with pytest.raises(ConflictError):
        role_service.create_role(db_session, RoleCreate(name="Payroll"))


def test_create_role_unknown_permission(db_session):
    with pytest.raises(NotFoundError):
        role_service.create_role(
            db_session, RoleCreate(name="Payroll", permissions=["NOPE_READ"])
        )
    assert db_session.query(Role).count() == 0


def test_update_role_replaces_permissions(db_session, make_permission):
    make_permission("EMPLOYEE_READ")
    make_permission("EMPLOYEE_CREATE")
    role = role_service.create_role(
        db_session, RoleCreate(name="Payroll", permissions=["EMPLOYEE_READ"])
    )

    updated = role_service.update_role(
        db_session,
        role,
        RoleUpdate(name="Payroll Team", permissions=["EMPLOYEE_CREATE"]),
    )

    assert updated.name == "Payroll Team"
    assert [p.code for p in rbac_service.get_role_permissions_list(db_session, role.id)] == [
        "EMPLOYEE_CREATE"
    ]


def test_update_role_duplicate_name(db_session, make_role):
    make_role("HR")
    role = make_role("Payroll")
    with pytest.raises(ConflictError):
        role_service.update_role(db_session, role, RoleUpdate(name="HR"))


def test_system_role_is_immutable(db_session, seeded):
    admin = role_service.get_role_by_name(db_session, "Admin")
    with pytest.raises(ConflictError):
        role_service.update_role(db_session, admin, RoleUpdate(description="changed"))
    with pytest.raises(ConflictError):
        role_service.delete_role(db_session, admin)


def test_delete_role_removes_grants_and_assignments(
    db_session, make_permission, make_user
):
    make_permission("EMPLOYEE_READ")
    role = role_service.create_role(
        db_session, RoleCreate(name="Payroll", permissions=["EMPLOYEE_READ"])
    )
    user = make_user("alice")
    db_session.add(UserRole(user_id=user.id, role_id=role.id))
    db_session.commit()

    role_service.delete_role(db_session, role)

    assert role_service.get_role_by_name(db_session, "Payroll") is None
    assert db_session.query(RolePermission).count() == 0
    assert db_session.query(UserRole).count() == 0
    assert not rbac_service.has_permission(db_session, user.id, "EMPLOYEE_READ")


def test_list_roles_can_skip_inactive(db_session, make_role):
    make_role("HR")
    make_role("Legacy", is_active=False)
    assert [r.name for r in role_service.list_roles(db_session)] == ["HR", "Legacy"]
    assert [r.name for r in role_service.list_roles(db_session, include_inactive=False)] == [
        "HR"
    ]


def test_create_role_repeated_codes_grant_once(db_session, make_permission):
    make_permission("EMPLOYEE_READ")
    role = role_service.create_role(
        db_session,
        RoleCreate(name="Payroll", permissions=["EMPLOYEE_READ", "EMPLOYEE_READ"]),
    )
    assert db_session.query(RolePermission).filter(
        RolePermission.role_id == role.id
    ).count() == 1


def test_update_role_repeated_codes_grant_once(db_session, make_permission):
    make_permission("EMPLOYEE_READ")
    role = role_service.create_role(db_session, RoleCreate(name="Payroll"))

    role_service.update_role(
        db_session, role, RoleUpdate(permissions=["EMPLOYEE_READ", "EMPLOYEE_READ"])
    )

    assert [p.code for p in rbac_service.get_role_permissions_list(db_session, role.id)] == [
        "EMPLOYEE_READ"
    ]
