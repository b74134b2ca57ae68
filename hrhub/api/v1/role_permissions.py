# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Role permission assignment API endpoints."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from hrhub.api.deps import get_current_user, get_db, get_permission_cache
from hrhub.models import Permission, User
from hrhub.rbac.cache import PermissionCache
from hrhub.schemas.common import PaginatedResponse, PaginationMeta
from hrhub.schemas.rbac import (
    BulkOperationResponse,
    PermissionIdsRequest,
    PermissionResponse,
    RolePermissionAssign,
    RolePermissionBulkAssign,
    RolePermissionResponse,
)
from hrhub.services import assignment_service, rbac_service, role_service

router = APIRouter(prefix="/role-permissions", tags=["role-permissions"])


@router.get(
    "",
    response_model=PaginatedResponse[RolePermissionResponse],
    summary="List role permission grants",
)
def list_role_permissions(
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    role_id: str | None = None,
    permission_id: str | None = None,
    is_granted: bool | None = None,
    db: Session = Depends(get_db),
) -> PaginatedResponse[RolePermissionResponse]:
    items, total = assignment_service.list_role_permissions(
        db,
        page=page,
        per_page=per_page,
        role_id=role_id,
        permission_id=permission_id,
        is_granted=is_granted,
    )
    return PaginatedResponse[RolePermissionResponse](
        data=[
            RolePermissionResponse(**assignment_service.build_role_permission_response(rp))
            for rp in items
        ],
        meta=PaginationMeta.build(total, page, per_page),
    )


@router.get(
    "/roles/{role_id}/permissions",
    response_model=list[PermissionResponse],
    summary="List the permissions a role grants",
)
def list_role_granted_permissions(
    role_id: str, db: Session = Depends(get_db)
) -> list[Permission]:
    role_service.get_role_or_raise(db, role_id)
    return rbac_service.get_role_permissions_list(db, role_id)


@router.post(
    "",
    response_model=RolePermissionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Grant or deny a permission to a role",
)
def assign_role_permission(
    data: RolePermissionAssign,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    cache: PermissionCache | None = Depends(get_permission_cache),
) -> RolePermissionResponse:
    """Grant or deny a permission to a role, replacing any earlier grant.

    Requires PERMISSION_ASSIGN permission.
    """
    role_permission = assignment_service.assign_permission_to_role(
        db,
        data.role_id,
        data.permission_id,
        is_granted=data.is_granted,
        assigned_by=current_user.id,
        expires_at=data.expires_at,
        cache=cache,
    )
    return RolePermissionResponse(
        **assignment_service.build_role_permission_response(role_permission)
    )


@router.delete(
    "/roles/{role_id}/permissions/{permission_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a permission from a role",
)
def remove_role_permission(
    role_id: str,
    permission_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    cache: PermissionCache | None = Depends(get_permission_cache),
) -> None:
    assignment_service.remove_permission_from_role(
        db, role_id, permission_id, removed_by=current_user.id, cache=cache
    )


@router.post(
    "/bulk-assign",
    response_model=BulkOperationResponse,
    summary="Grant or deny several permissions to a role",
)
def bulk_assign_role_permissions(
    data: RolePermissionBulkAssign,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    cache: PermissionCache | None = Depends(get_permission_cache),
) -> BulkOperationResponse:
    affected = assignment_service.bulk_assign_permissions_to_role(
        db,
        data.role_id,
        data.permission_ids,
        is_granted=data.is_granted,
        assigned_by=current_user.id,
        expires_at=data.expires_at,
        cache=cache,
    )
    return BulkOperationResponse(affected=affected)


@router.post(
    "/roles/{role_id}/bulk-remove",
    response_model=BulkOperationResponse,
    summary="Remove several permissions from a role",
)
def bulk_remove_role_permissions(
    role_id: str,
    data: PermissionIdsRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    cache: PermissionCache | None = Depends(get_permission_cache),
) -> BulkOperationResponse:
    affected = assignment_service.bulk_remove_permissions_from_role(
        db, role_id, data.permission_ids, removed_by=current_user.id, cache=cache
    )
    return BulkOperationResponse(affected=affected)


@router.put(
    "/roles/{role_id}/sync",
    response_model=BulkOperationResponse,
    summary="Make a role grant exactly the given permissions",
)
def sync_role_permissions(
    role_id: str,
    data: PermissionIdsRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    cache: PermissionCache | None = Depends(get_permission_cache),
) -> BulkOperationResponse:
    """Replace a role's grants with plain grants for the given permissions.

    Requires PERMISSION_ASSIGN permission.
    """
    affected = assignment_service.sync_role_permissions(
        db, role_id, data.permission_ids, assigned_by=current_user.id, cache=cache
    )
    return BulkOperationResponse(affected=affected)


@router.post(
    "/roles/{source_role_id}/copy-to/{target_role_id}",
    response_model=BulkOperationResponse,
    summary="Copy a role's grants onto another role",
)
def copy_role_permissions(
    source_role_id: str,
    target_role_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    cache: PermissionCache | None = Depends(get_permission_cache),
) -> BulkOperationResponse:
    affected = assignment_service.copy_role_permissions(
        db, source_role_id, target_role_id, assigned_by=current_user.id, cache=cache
    )
    return BulkOperationResponse(affected=affected)
