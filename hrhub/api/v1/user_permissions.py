# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""User permission override API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from hrhub.api.deps import get_current_user, get_db, get_permission_cache
from hrhub.models import Permission, User
from hrhub.rbac.cache import PermissionCache
from hrhub.schemas.common import PaginatedResponse, PaginationMeta
from hrhub.schemas.rbac import (
    BulkOperationResponse,
    PermissionCheckResult,
    PermissionIdsRequest,
    PermissionResponse,
    UserPermissionAssign,
    UserPermissionBulkAssign,
    UserPermissionResponse,
    UserPermissionsSummaryResponse,
)
from hrhub.services import assignment_service, auth_service, rbac_service

router = APIRouter(prefix="/user-permissions", tags=["user-permissions"])


def build_summary_response(db: Session, user_id: str) -> UserPermissionsSummaryResponse:
    """Build the summary response with nested permission schemas."""
    summary = rbac_service.get_user_permissions_summary(db, user_id)

    def serialize(permissions: list[Permission]) -> list[PermissionResponse]:
        return [PermissionResponse.model_validate(p) for p in permissions]

    return UserPermissionsSummaryResponse(
        user_id=summary["user_id"],
        user_name=summary["user_name"],
        user_email=summary["user_email"],
        roles=summary["roles"],
        direct_permissions=serialize(summary["direct_permissions"]),
        role_permissions=serialize(summary["role_permissions"]),
        all_permissions=serialize(summary["all_permissions"]),
        permissions_by_module={
            module: serialize(permissions)
            for module, permissions in summary["permissions_by_module"].items()
        },
    )


# Current user


@router.get(
    "/my-permissions",
    response_model=UserPermissionsSummaryResponse,
    summary="Get current user's permission summary",
)
def get_my_permission_summary(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> UserPermissionsSummaryResponse:
    return build_summary_response(db, current_user.id)


@router.get(
    "/my-permissions/effective",
    response_model=list[PermissionResponse],
    summary="Get current user's effective permissions",
)
def get_my_effective_permissions(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[Permission]:
    return rbac_service.get_user_effective_permissions(db, current_user.id)


@router.get(
    "/my-permissions/check/{permission_code}",
    response_model=PermissionCheckResult,
    summary="Check a permission for the current user",
)
def check_my_permission(
    permission_code: str,
    resource: str | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    cache: PermissionCache | None = Depends(get_permission_cache),
) -> PermissionCheckResult:
    has_permission = rbac_service.has_permission(
        db, current_user.id, permission_code, resource, cache
    )
    return PermissionCheckResult(
        permission_code=permission_code,
        resource=resource,
        has_permission=has_permission,
    )


# Any user


@router.get(
    "",
    response_model=PaginatedResponse[UserPermissionResponse],
    summary="List user permission overrides",
)
def list_user_permissions(
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    user_id: str | None = None,
    permission_id: str | None = None,
    is_granted: bool | None = None,
    db: Session = Depends(get_db),
) -> PaginatedResponse[UserPermissionResponse]:
    items, total = assignment_service.list_user_permissions(
        db,
        page=page,
        per_page=per_page,
        user_id=user_id,
        permission_id=permission_id,
        is_granted=is_granted,
    )
    return PaginatedResponse[UserPermissionResponse](
        data=[
            UserPermissionResponse(**assignment_service.build_user_permission_response(up))
            for up in items
        ],
        meta=PaginationMeta.build(total, page, per_page),
    )


@router.get(
    "/users/{user_id}/permissions",
    response_model=list[PermissionResponse],
    summary="List permissions granted directly to a user",
)
def list_user_granted_permissions(
    user_id: str, db: Session = Depends(get_db)
) -> list[Permission]:
    return rbac_service.get_user_permissions_list(db, user_id)


@router.get(
    "/users/{user_id}/summary",
    response_model=UserPermissionsSummaryResponse,
    summary="Get a user's permission summary",
)
def get_user_permission_summary(
    user_id: str, db: Session = Depends(get_db)
) -> UserPermissionsSummaryResponse:
    """Roles, direct grants and effective permissions of a user.

    Requires PERMISSION_READ and USER_READ permissions.
    """
    return build_summary_response(db, user_id)


@router.get(
    "/users/{user_id}/effective",
    response_model=list[PermissionResponse],
    summary="Get a user's effective permissions",
)
def get_user_effective_permissions(
    user_id: str, db: Session = Depends(get_db)
) -> list[Permission]:
    if not auth_service.get_user_by_id(db, user_id):
        raise HTTPException(status_code=404, detail="User not found")
    return rbac_service.get_user_effective_permissions(db, user_id)


@router.get(
    "/users/{user_id}/check/{permission_code}",
    response_model=PermissionCheckResult,
    summary="Check a permission for a user",
)
def check_user_permission_for(
    user_id: str,
    permission_code: str,
    resource: str | None = None,
    db: Session = Depends(get_db),
    cache: PermissionCache | None = Depends(get_permission_cache),
) -> PermissionCheckResult:
    has_permission = rbac_service.has_permission(db, user_id, permission_code, resource, cache)
    return PermissionCheckResult(
        permission_code=permission_code,
        resource=resource,
        has_permission=has_permission,
    )


@router.post(
    "",
    response_model=UserPermissionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Grant or deny a permission to a user",
)
def assign_user_permission(
    data: UserPermissionAssign,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    cache: PermissionCache | None = Depends(get_permission_cache),
) -> UserPermissionResponse:
    """Set a direct override, replacing any earlier override for the pair.

    Requires PERMISSION_ASSIGN permission.
    """
    user_permission = assignment_service.assign_permission_to_user(
        db,
        data.user_id,
        data.permission_id,
        is_granted=data.is_granted,
        assigned_by=current_user.id,
        expires_at=data.expires_at,
        reason=data.reason,
        cache=cache,
    )
    return UserPermissionResponse(
        **assignment_service.build_user_permission_response(user_permission)
    )


@router.delete(
    "/users/{user_id}/permissions/{permission_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a permission override from a user",
)
def remove_user_permission(
    user_id: str,
    permission_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    cache: PermissionCache | None = Depends(get_permission_cache),
) -> None:
    assignment_service.remove_permission_from_user(
        db, user_id, permission_id, removed_by=current_user.id, cache=cache
    )


@router.post(
    "/bulk-assign",
    response_model=BulkOperationResponse,
    summary="Grant or deny several permissions to a user",
)
def bulk_assign_user_permissions(
    data: UserPermissionBulkAssign,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    cache: PermissionCache | None = Depends(get_permission_cache),
) -> BulkOperationResponse:
    affected = assignment_service.bulk_assign_permissions_to_user(
        db,
        data.user_id,
        data.permission_ids,
        is_granted=data.is_granted,
        assigned_by=current_user.id,
        expires_at=data.expires_at,
        reason=data.reason,
        cache=cache,
    )
    return BulkOperationResponse(affected=affected)


@router.post(
    "/users/{user_id}/bulk-remove",
    response_model=BulkOperationResponse,
    summary="Remove several permission overrides from a user",
)
def bulk_remove_user_permissions(
    user_id: str,
    data: PermissionIdsRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    cache: PermissionCache | None = Depends(get_permission_cache),
) -> BulkOperationResponse:
    affected = assignment_service.bulk_remove_permissions_from_user(
        db, user_id, data.permission_ids, removed_by=current_user.id, cache=cache
    )
    return BulkOperationResponse(affected=affected)


@router.put(
    "/users/{user_id}/sync",
    response_model=BulkOperationResponse,
    summary="Make a user's overrides exactly the given grants",
)
def sync_user_permissions(
    user_id: str,
    data: PermissionIdsRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    cache: PermissionCache | None = Depends(get_permission_cache),
) -> BulkOperationResponse:
    affected = assignment_service.sync_user_permissions(
        db, user_id, data.permission_ids, assigned_by=current_user.id, cache=cache
    )
    return BulkOperationResponse(affected=affected)


@router.post(
    "/users/{source_user_id}/copy-to/{target_user_id}",
    response_model=BulkOperationResponse,
    summary="Copy a user's overrides onto another user",
)
def copy_user_permissions(
    source_user_id: str,
    target_user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    cache: PermissionCache | None = Depends(get_permission_cache),
) -> BulkOperationResponse:
    affected = assignment_service.copy_user_permissions(
        db, source_user_id, target_user_id, assigned_by=current_user.id, cache=cache
    )
    return BulkOperationResponse(affected=affected)
