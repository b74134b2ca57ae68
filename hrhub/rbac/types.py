# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Value types shared by the resolution service and the permission gate."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class PermissionRequirement:
    """A permission an operation declares it needs, optionally scoped to a resource."""

    code: str
    resource: str | None = None


@dataclass(frozen=True)
class PermissionCheck:
    """Outcome of resolving one permission for one user.

    ``source`` records which path decided ("user" for an override, "role" for a
    role grant). It is for logs and administrators, never for rejected callers.
    """

    has_permission: bool
    permission_code: str
    resource: str | None = None
    source: str | None = None
    reason: str | None = None
    expires_at: datetime | None = None
    permission_found: bool = True
