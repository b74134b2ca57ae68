# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Tests for the permission registry and enforcement gate."""

import logging

import pytest

from hrhub.models import UserPermission
from hrhub.rbac.exceptions import (
    NotAuthenticatedError,
    PermissionDeniedError,
    PermissionResolutionError,
    ResolutionFailureError,
)
from hrhub.rbac.gate import PermissionGate, PermissionRegistry
from hrhub.rbac.operations import OPERATION_PERMISSIONS
from hrhub.rbac.permissions import CORE_PERMISSIONS
from hrhub.rbac.types import PermissionRequirement
from hrhub.services import rbac_service


def grant(db_session, user, permission):
    db_session.add(UserPermission(user_id=user.id, permission_id=permission.id))
    db_session.commit()


class TestPermissionRegistry:
    def test_declare_accumulates_requirements(self):
        registry = PermissionRegistry()
        registry.declare("delete_user", "USER_DELETE")
        registry.declare("delete_user", "AUDIT_WRITE", "User")
        registry.declare("delete_user", "USER_DELETE")

        assert registry.requirements_for("delete_user") == [
            PermissionRequirement("USER_DELETE"),
            PermissionRequirement("AUDIT_WRITE", "User"),
        ]
        assert "delete_user" in registry
        assert registry.operations() == ["delete_user"]

    def test_undeclared_operation_has_no_requirements(self):
        assert PermissionRegistry().requirements_for("health_check") == []

    def test_from_mapping(self):
        registry = PermissionRegistry.from_mapping(
            {"list_users": [{"code": "USER_READ", "resource": "User"}]}
        )
        assert registry.requirements_for("list_users") == [
            PermissionRequirement("USER_READ", "User")
        ]
        assert registry.permission_codes() == {"USER_READ"}

    def test_declared_codes_exist_in_core_catalog(self):
        registry = PermissionRegistry.from_mapping(OPERATION_PERMISSIONS)
        core_codes = {p["code"] for p in CORE_PERMISSIONS}
        assert registry.permission_codes() <= core_codes


class TestPermissionGate:
    @pytest.fixture
    def gate(self):
        registry = PermissionRegistry()
        registry.declare("delete_user", "USER_DELETE")
        return PermissionGate(registry)

    def test_undeclared_operation_passes_without_identity(self, gate, db_session):
        gate.authorize(db_session, "health_check", None)

    def test_missing_identity_is_unauthenticated(self, gate, db_session):
        with pytest.raises(NotAuthenticatedError) as exc_info:
            gate.authorize(db_session, "delete_user", None)
        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Unauthorized: User not authenticated"

    def test_missing_permission_is_forbidden(self, gate, db_session, make_user, make_permission):
        make_permission("USER_DELETE")
        user = make_user("u2")
        with pytest.raises(PermissionDeniedError) as exc_info:
            gate.authorize(db_session, "delete_user", user.id)
        assert exc_info.value.status_code == 403
        assert exc_info.value.permission_code == "USER_DELETE"
        assert "USER_DELETE" in exc_info.value.message

    def test_held_permission_is_allowed(self, gate, db_session, make_user, make_permission):
        permission = make_permission("USER_DELETE")
        user = make_user("u1")
        grant(db_session, user, permission)
        gate.authorize(db_session, "delete_user", user.id)

    def test_every_requirement_must_hold(self, db_session, make_user, make_permission):
        registry = PermissionRegistry()
        registry.declare("get_user_permission_summary", "PERMISSION_READ")
        registry.declare("get_user_permission_summary", "USER_READ")
        gate = PermissionGate(registry)
        user = make_user("u1")
        grant(db_session, user, make_permission("PERMISSION_READ"))
        make_permission("USER_READ")

        with pytest.raises(PermissionDeniedError) as exc_info:
            gate.authorize(db_session, "get_user_permission_summary", user.id)
        assert exc_info.value.permission_code == "USER_READ"

    def test_resolution_failure_is_unavailable(
        self, gate, db_session, make_user, monkeypatch
    ):
        user = make_user("u1")

        def broken(*args, **kwargs):
            raise PermissionResolutionError("store unavailable")

        monkeypatch.setattr(rbac_service, "check_user_permission", broken)
        with pytest.raises(ResolutionFailureError) as exc_info:
            gate.authorize(db_session, "delete_user", user.id)
        assert exc_info.value.status_code == 503
        assert exc_info.value.to_dict() == {
            "detail": "Service Unavailable: Unable to verify permissions",
            "error_kind": "resolution_failure",
            "permission_code": "USER_DELETE",
        }

    def test_unknown_code_is_logged_and_denied(self, gate, db_session, make_user, caplog):
        user = make_user("u1")
        with caplog.at_level(logging.WARNING, logger="hrhub.rbac.gate"):
            with pytest.raises(PermissionDeniedError):
                gate.authorize(db_session, "delete_user", user.id)
        assert "unknown permission 'USER_DELETE'" in caplog.text
