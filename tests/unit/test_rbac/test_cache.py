# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Tests for the permission decision cache."""

from datetime import datetime, timedelta

from hrhub.rbac.cache import PermissionCache
from hrhub.rbac.types import PermissionCheck


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def allowed(code: str = "USER_READ") -> PermissionCheck:
    return PermissionCheck(True, code, source="role")


def test_disabled_cache_stores_nothing():
    cache = PermissionCache(ttl_seconds=0)
    cache.set("u1", "USER_READ", None, allowed())
    assert cache.enabled is False
    assert cache.get("u1", "USER_READ") is None
    assert len(cache) == 0


def test_entry_expires_after_ttl():
    clock = FakeClock()
    cache = PermissionCache(ttl_seconds=30, clock=clock)
    cache.set("u1", "USER_READ", None, allowed())

    clock.now = 29
    assert cache.get("u1", "USER_READ") == allowed()
    clock.now = 30
    assert cache.get("u1", "USER_READ") is None


def test_resource_is_part_of_the_key():
    cache = PermissionCache(ttl_seconds=30)
    cache.set("u1", "USER_READ", "User", allowed())
    assert cache.get("u1", "USER_READ", "User") is not None
    assert cache.get("u1", "USER_READ") is None


def test_invalidate_user_keeps_other_users():
    cache = PermissionCache(ttl_seconds=30)
    cache.set("u1", "USER_READ", None, allowed())
    cache.set("u2", "USER_READ", None, allowed())

    cache.invalidate_user("u1")

    assert cache.get("u1", "USER_READ") is None
    assert cache.get("u2", "USER_READ") is not None


def test_clear_drops_everything():
    cache = PermissionCache(ttl_seconds=30)
    cache.set("u1", "USER_READ", None, allowed())
    cache.set("u2", "ROLE_READ", None, allowed("ROLE_READ"))
    cache.clear()
    assert len(cache) == 0


def test_entry_is_dropped_when_the_decision_expires():
    clock = FakeClock()
    wall = {"now": datetime(2025, 1, 1, 12, 0, 0)}
    cache = PermissionCache(ttl_seconds=3600, clock=clock, utcnow=lambda: wall["now"])
    check = PermissionCheck(
        True, "USER_READ", source="user", expires_at=datetime(2025, 1, 1, 12, 0, 1)
    )
    cache.set("u1", "USER_READ", None, check)
    assert cache.get("u1", "USER_READ") == check

    wall["now"] = datetime(2025, 1, 1, 12, 0, 2)
    assert cache.get("u1", "USER_READ") is None
    assert len(cache) == 0


def test_already_lapsed_decision_is_not_stored():
    cache = PermissionCache(ttl_seconds=3600)
    check = PermissionCheck(
        True, "USER_READ", expires_at=datetime.utcnow() - timedelta(seconds=1)
    )
    cache.set("u1", "USER_READ", None, check)
    assert len(cache) == 0
