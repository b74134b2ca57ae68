# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Access control exceptions."""


class AccessControlError(Exception):
    """Base class for access control errors."""


class PermissionResolutionError(AccessControlError):
    """The permission store could not be read, so no decision was made."""


class AccessDeniedError(AccessControlError):
    """A request was rejected by the permission gate."""

    status_code = 403
    error_kind = "forbidden"

    def __init__(self, message: str, permission_code: str | None = None):
        super().__init__(message)
        self.message = message
        self.permission_code = permission_code

    def to_dict(self) -> dict:
        return {
            "detail": self.message,
            "error_kind": self.error_kind,
            "permission_code": self.permission_code,
        }


class NotAuthenticatedError(AccessDeniedError):
    """No verified identity on a request to a guarded operation."""

    status_code = 401
    error_kind = "unauthenticated"

    def __init__(self):
        super().__init__("Unauthorized: User not authenticated")


class PermissionDeniedError(AccessDeniedError):
    """The acting user does not hold a required permission."""

    def __init__(self, permission_code: str):
        super().__init__(
            f"Forbidden: User does not have permission '{permission_code}'",
            permission_code=permission_code,
        )


class ResolutionFailureError(AccessDeniedError):
    """Permissions could not be determined; the request is refused."""

    status_code = 503
    error_kind = "resolution_failure"

    def __init__(self, permission_code: str | None = None):
        super().__init__(
            "Service Unavailable: Unable to verify permissions",
            permission_code=permission_code,
        )


class NotFoundError(AccessControlError):
    """A referenced user, role, permission or assignment does not exist."""


class ConflictError(AccessControlError):
    """A write would break a uniqueness or reference invariant."""
