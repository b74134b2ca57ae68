# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Tests for rbac_service permission resolution."""

from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from hrhub.models import RolePermission, UserPermission, UserRole
from hrhub.rbac.cache import PermissionCache
from hrhub.rbac.exceptions import NotFoundError, PermissionResolutionError
from hrhub.services import rbac_service


@pytest.fixture
def admin_setup(make_permission, make_role, make_user, db_session):
    """USER_CREATE granted to Admin, which u1 holds; u2 holds nothing."""
    permission = make_permission("USER_CREATE", module="User")
    role = make_role("Admin")
    db_session.add(RolePermission(role_id=role.id, permission_id=permission.id))
    u1 = make_user("u1")
    u2 = make_user("u2")
    db_session.add(UserRole(user_id=u1.id, role_id=role.id))
    db_session.commit()
    return {"permission": permission, "role": role, "u1": u1, "u2": u2}


def add_override(db_session, user, permission, is_granted, expires_at=None):
    override = UserPermission(
        user_id=user.id,
        permission_id=permission.id,
        is_granted=is_granted,
        expires_at=expires_at,
    )
    db_session.add(override)
    db_session.commit()
    return override


class TestScenarios:
    def test_role_grant_allows(self, db_session, admin_setup):
        assert rbac_service.has_permission(db_session, admin_setup["u1"].id, "USER_CREATE")

    def test_override_deny_flips_result(self, db_session, admin_setup):
        add_override(db_session, admin_setup["u1"], admin_setup["permission"], False)
        assert not rbac_service.has_permission(
            db_session, admin_setup["u1"].id, "USER_CREATE"
        )

    def test_expired_override_is_ignored(self, db_session, admin_setup):
        add_override(
            db_session,
            admin_setup["u1"],
            admin_setup["permission"],
            False,
            expires_at=datetime.utcnow() - timedelta(days=1),
        )
        assert rbac_service.has_permission(db_session, admin_setup["u1"].id, "USER_CREATE")

    def test_user_without_roles_is_denied(self, db_session, admin_setup):
        assert not rbac_service.has_permission(
            db_session, admin_setup["u2"].id, "USER_CREATE"
        )


class TestResolution:
    def test_unknown_user_is_denied(self, db_session, admin_setup):
        assert not rbac_service.has_permission(db_session, "no-such-user", "USER_CREATE")

    def test_unknown_code_is_denied_and_flagged(self, db_session, admin_setup):
        check = rbac_service.check_user_permission(
            db_session, admin_setup["u1"].id, "NOT_A_CODE"
        )
        assert check.has_permission is False
        assert check.permission_found is False

    def test_override_grant_beats_missing_role_grant(self, db_session, admin_setup):
        add_override(db_session, admin_setup["u2"], admin_setup["permission"], True)
        check = rbac_service.check_user_permission(
            db_session, admin_setup["u2"].id, "USER_CREATE"
        )
        assert check.has_permission is True
        assert check.source == "user"

    def test_override_grant_beats_role_deny(self, db_session, admin_setup, make_role):
        denying = make_role("Restricted")
        db_session.add(
            RolePermission(
                role_id=denying.id,
                permission_id=admin_setup["permission"].id,
                is_granted=False,
            )
        )
        db_session.add(UserRole(user_id=admin_setup["u2"].id, role_id=denying.id))
        db_session.commit()
        assert not rbac_service.has_permission(
            db_session, admin_setup["u2"].id, "USER_CREATE"
        )

        add_override(db_session, admin_setup["u2"], admin_setup["permission"], True)
        assert rbac_service.has_permission(db_session, admin_setup["u2"].id, "USER_CREATE")

    def test_expired_role_grant_is_ignored(self, db_session, admin_setup):
        grant = db_session.query(RolePermission).one()
        grant.expires_at = datetime.utcnow() - timedelta(minutes=1)
        db_session.commit()
        assert not rbac_service.has_permission(
            db_session, admin_setup["u1"].id, "USER_CREATE"
        )

    def test_expired_role_assignment_is_ignored(self, db_session, admin_setup):
        assignment = db_session.query(UserRole).one()
        assignment.expires_at = datetime.utcnow() - timedelta(minutes=1)
        db_session.commit()
        assert not rbac_service.has_permission(
            db_session, admin_setup["u1"].id, "USER_CREATE"
        )

    def test_roles_aggregate_with_or(self, db_session, admin_setup, make_role):
        empty = make_role("Empty")
        db_session.add(UserRole(user_id=admin_setup["u1"].id, role_id=empty.id))
        db_session.commit()
        assert rbac_service.has_permission(db_session, admin_setup["u1"].id, "USER_CREATE")

    def test_role_deny_does_not_cancel_other_role_grant(
        self, db_session, admin_setup, make_role
    ):
        denying = make_role("Restricted")
        db_session.add(
            RolePermission(
                role_id=denying.id,
                permission_id=admin_setup["permission"].id,
                is_granted=False,
            )
        )
        db_session.add(UserRole(user_id=admin_setup["u1"].id, role_id=denying.id))
        db_session.commit()
        assert rbac_service.has_permission(db_session, admin_setup["u1"].id, "USER_CREATE")

    def test_inactive_assignment_contributes_nothing(self, db_session, admin_setup):
        assignment = db_session.query(UserRole).one()
        assignment.is_active = False
        db_session.commit()
        assert not rbac_service.has_permission(
            db_session, admin_setup["u1"].id, "USER_CREATE"
        )

    def test_inactive_role_contributes_nothing(self, db_session, admin_setup):
        admin_setup["role"].is_active = False
        db_session.commit()
        assert not rbac_service.has_permission(
            db_session, admin_setup["u1"].id, "USER_CREATE"
        )

    def test_inactive_user_is_denied(self, db_session, admin_setup):
        admin_setup["u1"].is_active = False
        db_session.commit()
        assert not rbac_service.has_permission(
            db_session, admin_setup["u1"].id, "USER_CREATE"
        )

    def test_inactive_permission_is_denied(self, db_session, admin_setup):
        admin_setup["permission"].is_active = False
        db_session.commit()
        assert not rbac_service.has_permission(
            db_session, admin_setup["u1"].id, "USER_CREATE"
        )

    def test_checks_are_idempotent(self, db_session, admin_setup):
        user_id = admin_setup["u1"].id
        first = rbac_service.has_permission(db_session, user_id, "USER_CREATE")
        second = rbac_service.has_permission(db_session, user_id, "USER_CREATE")
        assert first is second is True

    def test_store_failure_raises(self, db_session, admin_setup, monkeypatch):
        def broken(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("database is locked"))

        monkeypatch.setattr(rbac_service, "get_permission_by_code", broken)
        with pytest.raises(PermissionResolutionError):
            rbac_service.has_permission(db_session, admin_setup["u1"].id, "USER_CREATE")


class TestResourceQualifier:
    def test_empty_resource_is_wildcard(self, db_session, make_permission, make_user):
        permission = make_permission("REPORT_VIEW")
        user = make_user("reader")
        add_override(db_session, user, permission, True)
        assert rbac_service.has_permission(db_session, user.id, "REPORT_VIEW", "Payroll")

    def test_matching_resource_allows(self, db_session, make_permission, make_user):
        permission = make_permission("EMPLOYEE_READ", resource="Employee")
        user = make_user("reader")
        add_override(db_session, user, permission, True)
        assert rbac_service.has_permission(db_session, user.id, "EMPLOYEE_READ", "Employee")
        assert rbac_service.has_permission(db_session, user.id, "EMPLOYEE_READ")

    def test_mismatching_resource_denies(self, db_session, make_permission, make_user):
        permission = make_permission("EMPLOYEE_READ", resource="Employee")
        user = make_user("reader")
        add_override(db_session, user, permission, True)
        assert not rbac_service.has_permission(
            db_session, user.id, "EMPLOYEE_READ", "Payroll"
        )


class TestCaching:
    def test_cached_decision_is_reused(self, db_session, admin_setup):
        cache = PermissionCache(ttl_seconds=60)
        user_id = admin_setup["u1"].id
        assert rbac_service.has_permission(db_session, user_id, "USER_CREATE", cache=cache)

        # Without invalidation the stale grant is served from the cache
        add_override(db_session, admin_setup["u1"], admin_setup["permission"], False)
        assert rbac_service.has_permission(db_session, user_id, "USER_CREATE", cache=cache)

        cache.invalidate_user(user_id)
        assert not rbac_service.has_permission(
            db_session, user_id, "USER_CREATE", cache=cache
        )

    def test_cached_grant_lapses_with_its_override(
        self, db_session, make_permission, make_user
    ):
        permission = make_permission("REPORT_VIEW")
        user = make_user("temp")
        expires_at = datetime.utcnow() + timedelta(hours=1)
        add_override(db_session, user, permission, True, expires_at=expires_at)
        wall = {"now": datetime.utcnow()}
        cache = PermissionCache(ttl_seconds=3600 * 24, utcnow=lambda: wall["now"])

        assert rbac_service.has_permission(db_session, user.id, "REPORT_VIEW", cache=cache)
        assert cache.get(user.id, "REPORT_VIEW").expires_at == expires_at

        wall["now"] = expires_at + timedelta(seconds=1)
        assert cache.get(user.id, "REPORT_VIEW") is None

    def test_deny_override_reports_its_expiry(self, db_session, admin_setup):
        expires_at = datetime.utcnow() + timedelta(minutes=10)
        add_override(
            db_session, admin_setup["u1"], admin_setup["permission"], False, expires_at
        )
        check = rbac_service.check_user_permission(
            db_session, admin_setup["u1"].id, "USER_CREATE"
        )
        assert check.has_permission is False
        assert check.expires_at == expires_at

    def test_role_grant_expires_with_the_assignment(self, db_session, admin_setup):
        expires_at = datetime.utcnow() + timedelta(minutes=10)
        assignment = (
            db_session.query(UserRole)
            .filter(UserRole.user_id == admin_setup["u1"].id)
            .one()
        )
        assignment.expires_at = expires_at
        db_session.commit()

        check = rbac_service.check_user_permission(
            db_session, admin_setup["u1"].id, "USER_CREATE"
        )
        assert check.source == "role"
        assert check.expires_at == expires_at

    def test_disabled_cache_always_resolves(self, db_session, admin_setup):
        cache = PermissionCache(ttl_seconds=0)
        user_id = admin_setup["u1"].id
        assert rbac_service.has_permission(db_session, user_id, "USER_CREATE", cache=cache)
        add_override(db_session, admin_setup["u1"], admin_setup["permission"], False)
        assert not rbac_service.has_permission(
            db_session, user_id, "USER_CREATE", cache=cache
        )


class TestAggregates:
    def test_summary(self, db_session, admin_setup, make_permission):
        extra = make_permission("REPORT_VIEW", module="Report")
        add_override(db_session, admin_setup["u1"], extra, True)

        summary = rbac_service.get_user_permissions_summary(
            db_session, admin_setup["u1"].id
        )

        assert summary["roles"] == ["Admin"]
        assert [p.code for p in summary["direct_permissions"]] == ["REPORT_VIEW"]
        assert [p.code for p in summary["role_permissions"]] == ["USER_CREATE"]
        assert {p.code for p in summary["all_permissions"]} == {"USER_CREATE", "REPORT_VIEW"}
        assert set(summary["permissions_by_module"]) == {"User", "Report"}

    def test_summary_unknown_user(self, db_session):
        with pytest.raises(NotFoundError):
            rbac_service.get_user_permissions_summary(db_session, "missing")

    def test_effective_permissions_respect_overrides(self, db_session, admin_setup):
        add_override(db_session, admin_setup["u1"], admin_setup["permission"], False)
        assert rbac_service.get_user_effective_permissions(
            db_session, admin_setup["u1"].id
        ) == []

    def test_active_roles_skip_expired_assignments(self, db_session, admin_setup):
        assert [r.name for r in rbac_service.list_active_roles_for(
            db_session, admin_setup["u1"].id
        )] == ["Admin"]
        later = datetime.utcnow() + timedelta(days=1)
        db_session.query(UserRole).one().expires_at = later - timedelta(hours=1)
        db_session.commit()
        assert rbac_service.list_active_roles_for(
            db_session, admin_setup["u1"].id, now=later
        ) == []
