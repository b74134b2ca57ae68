# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Schemas for permissions, roles and their assignments."""

import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


def validate_expiry(value: datetime.datetime | None) -> datetime.datetime | None:
    """Normalize an expiry to naive UTC and require it to lie in the future."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    if value <= datetime.datetime.utcnow():
        raise ValueError("expires_at must be in the future")
    return value


class ExpiringAssignment(BaseModel):
    """Base for requests carrying an optional expiry."""

    expires_at: datetime.datetime | None = None

    @field_validator("expires_at")
    @classmethod
    def check_expires_at(cls, v: datetime.datetime | None) -> datetime.datetime | None:
        return validate_expiry(v)


# Permissions


class PermissionCreate(BaseModel):
    """Schema for creating a permission."""

    name: str = Field(..., min_length=2, max_length=100)
    code: str = Field(..., min_length=2, max_length=100)
    description: str | None = Field(None, max_length=200)
    module: str = Field(..., min_length=1, max_length=50)
    action: str = Field(..., min_length=1, max_length=50)
    resource: str = Field("", max_length=100)

    @field_validator("code")
    @classmethod
    def strip_code(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("code must not be blank")
        return v


class PermissionUpdate(BaseModel):
    """Schema for updating a permission."""

    name: str | None = Field(None, min_length=2, max_length=100)
    code: str | None = Field(None, min_length=2, max_length=100)
    description: str | None = Field(None, max_length=200)
    module: str | None = Field(None, min_length=1, max_length=50)
    action: str | None = Field(None, min_length=1, max_length=50)
    resource: str | None = Field(None, max_length=100)
    is_active: bool | None = None


class PermissionResponse(BaseModel):
    """Schema representing a permission."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    code: str
    description: str | None
    module: str
    action: str
    resource: str
    is_active: bool
    created_at: datetime.datetime
    updated_at: datetime.datetime | None = None
    created_by: str | None = None
    updated_by: str | None = None


class PermissionStatisticsResponse(BaseModel):
    """Counts describing the permission catalog and its use."""

    total_permissions: int
    active_permissions: int
    inactive_permissions: int
    permissions_by_module: dict[str, int]
    permissions_by_action: dict[str, int]
    total_role_permissions: int
    total_user_permissions: int
    most_used_permissions: list[str]


# Roles


class RoleCreate(BaseModel):
    """Schema for creating a role."""

    name: str = Field(..., min_length=2, max_length=100)
    description: str | None = Field(None, max_length=500)
    permissions: list[str] = []  # permission codes


class RoleUpdate(BaseModel):
    """Schema for updating a role."""

    name: str | None = Field(None, min_length=2, max_length=100)
    description: str | None = Field(None, max_length=500)
    is_active: bool | None = None
    permissions: list[str] | None = None


class RoleResponse(BaseModel):
    """Schema representing a role."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None
    is_system: bool
    is_active: bool
    created_at: datetime.datetime
    updated_at: datetime.datetime


class RoleWithPermissionsResponse(RoleResponse):
    """Schema representing a role along with the permissions it grants."""

    permissions: list[PermissionResponse]


# Role permissions


class RolePermissionAssign(ExpiringAssignment):
    """Schema for granting or denying a permission to a role."""

    role_id: str
    permission_id: str
    is_granted: bool = True


class RolePermissionBulkAssign(ExpiringAssignment):
    """Schema for granting or denying several permissions to a role."""

    role_id: str
    permission_ids: list[str] = Field(..., min_length=1)
    is_granted: bool = True


class RolePermissionResponse(BaseModel):
    """Schema representing a role grant."""

    id: str
    role_id: str
    role_name: str
    permission_id: str
    permission_name: str
    permission_code: str
    module: str
    action: str
    resource: str
    is_granted: bool
    assigned_at: datetime.datetime
    assigned_by: str | None
    expires_at: datetime.datetime | None


# User permissions


class UserPermissionAssign(ExpiringAssignment):
    """Schema for overriding a permission for one user."""

    user_id: str
    permission_id: str
    is_granted: bool = True
    reason: str | None = Field(None, max_length=200)


class UserPermissionBulkAssign(ExpiringAssignment):
    """Schema for overriding several permissions for one user."""

    user_id: str
    permission_ids: list[str] = Field(..., min_length=1)
    is_granted: bool = True
    reason: str | None = Field(None, max_length=200)


class UserPermissionResponse(BaseModel):
    """Schema representing a user override."""

    id: str
    user_id: str
    user_name: str
    user_email: str
    permission_id: str
    permission_name: str
    permission_code: str
    module: str
    action: str
    resource: str
    is_granted: bool
    assigned_at: datetime.datetime
    assigned_by: str | None
    expires_at: datetime.datetime | None
    reason: str | None


class PermissionIdsRequest(BaseModel):
    """A list of permission ids for bulk removal or sync."""

    permission_ids: list[str]


class BulkOperationResponse(BaseModel):
    """Number of rows a bulk operation touched."""

    affected: int


# User roles


class UserRoleAssign(ExpiringAssignment):
    """Schema for assigning a role to a user."""

    user_id: str
    role_id: str


class UserRoleResponse(BaseModel):
    """Schema representing a user's role assignment."""

    id: str
    user_id: str
    user_name: str
    user_email: str
    role_id: str
    role_name: str
    is_active: bool
    assigned_at: datetime.datetime
    assigned_by: str | None
    expires_at: datetime.datetime | None


# Permission checks


class CheckPermissionRequest(BaseModel):
    """Schema for checking one permission for one user."""

    user_id: str
    permission_code: str = Field(..., min_length=1, max_length=100)
    resource: str | None = Field(None, max_length=100)


class CheckPermissionResponse(BaseModel):
    """Detailed permission decision, for administrators."""

    has_permission: bool
    permission_code: str
    resource: str | None = None
    source: str | None = None
    reason: str | None = None
    expires_at: datetime.datetime | None = None


class PermissionCheckResult(BaseModel):
    """Bare permission decision."""

    permission_code: str
    resource: str | None = None
    has_permission: bool


class UserPermissionsSummaryResponse(BaseModel):
    """A user's roles, direct grants and effective permissions."""

    user_id: str
    user_name: str
    user_email: str
    roles: list[str]
    direct_permissions: list[PermissionResponse]
    role_permissions: list[PermissionResponse]
    all_permissions: list[PermissionResponse]
    permissions_by_module: dict[str, list[PermissionResponse]]


# Maintenance


class CleanupResponse(BaseModel):
    """Number of expired rows removed per table."""

    role_permissions: int
    user_permissions: int
    user_roles: int


class IntegrityReport(BaseModel):
    """Result of validating grant and assignment integrity."""

    is_valid: bool
    issues: list[str]
