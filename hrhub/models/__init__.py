# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Database models package."""

from hrhub.models.base import Base, TimestampMixin
from hrhub.models.permission import Permission
from hrhub.models.role import Role
from hrhub.models.role_permission import RolePermission
from hrhub.models.session import Session
from hrhub.models.user import User
from hrhub.models.user_permission import UserPermission
from hrhub.models.user_role import UserRole

__all__ = [
    "Base",
    "Permission",
    "Role",
    "RolePermission",
    "Session",
    "TimestampMixin",
    "User",
    "UserPermission",
    "UserRole",
]
