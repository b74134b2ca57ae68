# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Permission catalog API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from hrhub.api.deps import get_current_user, get_db, get_permission_cache
from hrhub.models import Permission, User
from hrhub.rbac.cache import PermissionCache
from hrhub.schemas.common import PaginatedResponse, PaginationMeta
from hrhub.schemas.rbac import (
    CheckPermissionRequest,
    CheckPermissionResponse,
    CleanupResponse,
    IntegrityReport,
    PermissionCreate,
    PermissionResponse,
    PermissionStatisticsResponse,
    PermissionUpdate,
)
from hrhub.services import permission_service, rbac_service

router = APIRouter(prefix="/permissions", tags=["permissions"])


@router.get(
    "",
    response_model=PaginatedResponse[PermissionResponse],
    summary="List permissions",
)
def list_permissions(
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    search: str | None = None,
    module: str | None = None,
    action: str | None = None,
    resource: str | None = None,
    is_active: bool | None = None,
    sort_by: str = Query("name", pattern="^(name|code|module|created_at)$"),
    sort_direction: str = Query("asc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
) -> PaginatedResponse[PermissionResponse]:
    """List the permission catalog with filtering, sorting and pagination."""
    permissions, total = permission_service.list_permissions(
        db,
        page=page,
        per_page=per_page,
        search=search,
        module=module,
        action=action,
        resource=resource,
        is_active=is_active,
        sort_by=sort_by,
        sort_direction=sort_direction,
    )
    return PaginatedResponse[PermissionResponse](
        data=[PermissionResponse.model_validate(p) for p in permissions],
        meta=PaginationMeta.build(total, page, per_page),
    )


@router.get("/modules", response_model=list[str], summary="List permission modules")
def list_permission_modules(db: Session = Depends(get_db)) -> list[str]:
    return permission_service.get_available_modules(db)


@router.get("/actions", response_model=list[str], summary="List permission actions")
def list_permission_actions(db: Session = Depends(get_db)) -> list[str]:
    return permission_service.get_available_actions(db)


@router.get("/resources", response_model=list[str], summary="List permission resources")
def list_permission_resources(db: Session = Depends(get_db)) -> list[str]:
    return permission_service.get_available_resources(db)


@router.get(
    "/statistics",
    response_model=PermissionStatisticsResponse,
    summary="Permission catalog statistics",
)
def get_permission_statistics(db: Session = Depends(get_db)) -> dict:
    """Counts by state, module and action, plus the most granted codes."""
    return permission_service.get_permission_statistics(db)


@router.get(
    "/by-code/{code}",
    response_model=PermissionResponse,
    summary="Get a permission by code",
)
def get_permission_by_code(code: str, db: Session = Depends(get_db)) -> Permission:
    permission = permission_service.get_permission_by_code(db, code)
    if not permission:
        raise HTTPException(status_code=404, detail="Permission not found")
    return permission


@router.get(
    "/by-module/{module}",
    response_model=list[PermissionResponse],
    summary="List active permissions of a module",
)
def list_permissions_by_module(module: str, db: Session = Depends(get_db)) -> list[Permission]:
    return permission_service.get_permissions_by_module(db, module)


@router.get(
    "/by-action/{action}",
    response_model=list[PermissionResponse],
    summary="List active permissions for an action",
)
def list_permissions_by_action(action: str, db: Session = Depends(get_db)) -> list[Permission]:
    return permission_service.get_permissions_by_action(db, action)


@router.post(
    "/check",
    response_model=CheckPermissionResponse,
    summary="Check a permission for a user",
)
def check_permission(
    data: CheckPermissionRequest,
    db: Session = Depends(get_db),
    cache: PermissionCache | None = Depends(get_permission_cache),
) -> CheckPermissionResponse:
    """Resolve a permission for any user and explain the decision.

    Unknown users and codes resolve to ``has_permission=false``.
    """
    check = rbac_service.check_user_permission(
        db, data.user_id, data.permission_code, data.resource, cache
    )
    return CheckPermissionResponse(
        has_permission=check.has_permission,
        permission_code=check.permission_code,
        resource=check.resource,
        source=check.source,
        reason=check.reason,
        expires_at=check.expires_at,
    )


# Maintenance


@router.post(
    "/maintenance/cleanup",
    response_model=CleanupResponse,
    summary="Delete expired grants and assignments",
)
def cleanup_expired_assignments(
    db: Session = Depends(get_db),
    cache: PermissionCache | None = Depends(get_permission_cache),
) -> dict:
    """Delete expired role grants, user overrides and role assignments.

    Requires SYSTEM_MAINTENANCE permission.
    """
    return permission_service.cleanup_expired_assignments(db, cache=cache)


@router.get(
    "/maintenance/orphaned",
    response_model=list[str],
    summary="List permissions nothing grants",
)
def list_orphaned_permissions(db: Session = Depends(get_db)) -> list[str]:
    return permission_service.get_orphaned_permissions(db)


@router.get(
    "/maintenance/integrity",
    response_model=IntegrityReport,
    summary="Validate grant and assignment integrity",
)
def validate_permission_integrity(db: Session = Depends(get_db)) -> IntegrityReport:
    issues = permission_service.validate_permission_integrity(db)
    return IntegrityReport(is_valid=not issues, issues=issues)


# CRUD


@router.get(
    "/{permission_id}",
    response_model=PermissionResponse,
    summary="Get a permission by ID",
)
def get_permission(permission_id: str, db: Session = Depends(get_db)) -> Permission:
    return permission_service.get_permission_or_raise(db, permission_id)


@router.post(
    "",
    response_model=PermissionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a permission",
)
def create_permission(
    data: PermissionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    cache: PermissionCache | None = Depends(get_permission_cache),
) -> Permission:
    """Add a permission to the catalog.

    Requires PERMISSION_CREATE permission.
    """
    return permission_service.create_permission(
        db, data, created_by=current_user.id, cache=cache
    )


@router.put(
    "/{permission_id}",
    response_model=PermissionResponse,
    summary="Update a permission",
)
def update_permission(
    permission_id: str,
    data: PermissionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    cache: PermissionCache | None = Depends(get_permission_cache),
) -> Permission:
    """Update a permission. The code of a granted permission cannot change.

    Requires PERMISSION_UPDATE permission.
    """
    permission = permission_service.get_permission_or_raise(db, permission_id)
    return permission_service.update_permission(
        db, permission, data, updated_by=current_user.id, cache=cache
    )


@router.delete(
    "/{permission_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a permission",
)
def delete_permission(
    permission_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    cache: PermissionCache | None = Depends(get_permission_cache),
) -> None:
    """Delete a permission that no role or user references.

    Requires PERMISSION_DELETE permission.
    """
    permission = permission_service.get_permission_or_raise(db, permission_id)
    permission_service.delete_permission(
        db, permission, deleted_by=current_user.id, cache=cache
    )
