# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Permission enforcement gate for API operations."""

import logging
from collections.abc import Iterable, Mapping

from sqlalchemy.orm import Session

from hrhub.rbac.cache import PermissionCache
from hrhub.rbac.exceptions import (
    NotAuthenticatedError,
    PermissionDeniedError,
    PermissionResolutionError,
    ResolutionFailureError,
)
from hrhub.rbac.types import PermissionRequirement
from hrhub.services import rbac_service

logger = logging.getLogger(__name__)


class PermissionRegistry:
    """Explicit map from operation id to the permissions it requires.

    Built once at startup. An operation declared more than once needs every
    declared permission; an operation never declared is open.
    """

    def __init__(self) -> None:
        self._requirements: dict[str, list[PermissionRequirement]] = {}

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Iterable[dict]]) -> "PermissionRegistry":
        """Build a registry from ``{operation_id: [{"code": ..., "resource": ...}]}``."""
        registry = cls()
        for operation_id, requirements in mapping.items():
            for requirement in requirements:
                registry.declare(
                    operation_id, requirement["code"], requirement.get("resource")
                )
        return registry

    def declare(
        self, operation_id: str, permission_code: str, resource: str | None = None
    ) -> None:
        """Declare that an operation requires a permission."""
        requirement = PermissionRequirement(permission_code, resource)
        requirements = self._requirements.setdefault(operation_id, [])
        if requirement not in requirements:
            requirements.append(requirement)

    def requirements_for(self, operation_id: str) -> list[PermissionRequirement]:
        return list(self._requirements.get(operation_id, []))

    def operations(self) -> list[str]:
        return sorted(self._requirements)

    def permission_codes(self) -> set[str]:
        """All permission codes referenced by any declaration."""
        return {
            requirement.code
            for requirements in self._requirements.values()
            for requirement in requirements
        }

    def __contains__(self, operation_id: str) -> bool:
        return operation_id in self._requirements


class PermissionGate:
    """Decides whether a caller may run an operation.

    The gate is the only place where an access decision becomes a rejection:
    401 for a missing identity, 403 for a missing permission and 503 when
    permissions could not be read.
    """

    def __init__(self, registry: PermissionRegistry, cache: PermissionCache | None = None):
        self.registry = registry
        self.cache = cache

    def authorize(self, db: Session, operation_id: str, user_id: str | None) -> None:
        """Allow the operation or raise an AccessDeniedError subclass."""
        requirements = self.registry.requirements_for(operation_id)
        if not requirements:
            return

        if not user_id:
            logger.info(f"Rejected unauthenticated call to {operation_id}")
            raise NotAuthenticatedError()

        for requirement in requirements:
            try:
                check = rbac_service.check_user_permission(
                    db, user_id, requirement.code, requirement.resource, self.cache
                )
            except PermissionResolutionError as e:
                logger.error(f"Could not authorize {operation_id} for user {user_id}: {e}")
                raise ResolutionFailureError(requirement.code) from e

            if not check.permission_found:
                logger.warning(
                    f"Operation {operation_id} requires unknown permission "
                    f"'{requirement.code}'"
                )
            if not check.has_permission:
                logger.info(
                    f"Rejected {operation_id} for user {user_id}: "
                    f"missing permission '{requirement.code}'"
                )
                raise PermissionDeniedError(requirement.code)
