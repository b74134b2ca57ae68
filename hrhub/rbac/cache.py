# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Time-boxed cache of resolved permission decisions."""

import threading
import time
from collections.abc import Callable
from datetime import datetime

from hrhub.rbac.types import PermissionCheck

CacheKey = tuple[str, str | None]


class PermissionCache:
    """Caches permission decisions per user for a limited time.

    The cache is an explicit object owned by the application and handed to the
    resolution service. Writes that change a user's overrides or roles must call
    :meth:`invalidate_user`; writes to roles, grants or the catalog must call
    :meth:`clear`. A TTL of zero disables caching.

    An entry never outlives the decision it holds: a check carrying an
    ``expires_at`` is dropped once that moment has passed, even inside the TTL.
    """

    def __init__(
        self,
        ttl_seconds: float = 0,
        clock: Callable[[], float] = time.monotonic,
        utcnow: Callable[[], datetime] = datetime.utcnow,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._utcnow = utcnow
        self._entries: dict[str, dict[CacheKey, tuple[float, PermissionCheck]]] = {}
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self.ttl_seconds > 0

    def get(
        self, user_id: str, permission_code: str, resource: str | None = None
    ) -> PermissionCheck | None:
        """Return a cached decision, or None when absent or expired."""
        if not self.enabled:
            return None
        with self._lock:
            user_entries = self._entries.get(user_id)
            if not user_entries:
                return None
            entry = user_entries.get((permission_code, resource))
            if entry is None:
                return None
            stored_at, check = entry
            if self._clock() - stored_at >= self.ttl_seconds or self._lapsed(check):
                del user_entries[(permission_code, resource)]
                return None
            return check

    def set(
        self,
        user_id: str,
        permission_code: str,
        resource: str | None,
        check: PermissionCheck,
    ) -> None:
        if not self.enabled or self._lapsed(check):
            return
        with self._lock:
            self._entries.setdefault(user_id, {})[(permission_code, resource)] = (
                self._clock(),
                check,
            )

    def _lapsed(self, check: PermissionCheck) -> bool:
        return check.expires_at is not None and check.expires_at <= self._utcnow()

    def invalidate_user(self, user_id: str) -> None:
        """Drop every cached decision for one user."""
        with self._lock:
            self._entries.pop(user_id, None)

    def clear(self) -> None:
        """Drop every cached decision."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return sum(len(entries) for entries in self._entries.values())
