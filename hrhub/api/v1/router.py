# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Main API router for v1 endpoints."""

from fastapi import APIRouter, Depends

from hrhub.api.deps import enforce_permissions
from hrhub.api.v1 import (
    auth,
    permissions,
    role_permissions,
    roles,
    user_permissions,
    user_roles,
    users,
)

# Every v1 route passes through the permission gate
api_router = APIRouter(dependencies=[Depends(enforce_permissions)])

# Auth routes
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])

# User management routes
api_router.include_router(users.router, tags=["users"])

# Permission catalog and maintenance routes
api_router.include_router(permissions.router)

# Role routes
api_router.include_router(roles.router)

# Assignment routes
api_router.include_router(role_permissions.router)
api_router.include_router(user_permissions.router)
api_router.include_router(user_roles.router)

# Routers whose endpoints the permission registry may name
v1_routers = [
    auth.router,
    users.router,
    permissions.router,
    roles.router,
    role_permissions.router,
    user_permissions.router,
    user_roles.router,
]
