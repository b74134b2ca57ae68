# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Permission requirements declared for API operations.

Keys are operation ids (the route function names). Operations that are not
listed here are open to any caller. Every requirement listed for an operation
must be satisfied.
"""

OPERATION_PERMISSIONS: dict[str, list[dict]] = {
    # Users
    "list_users": [{"code": "USER_READ", "resource": "User"}],
    "create_user": [{"code": "USER_CREATE", "resource": "User"}],
    "delete_user": [{"code": "USER_DELETE", "resource": "User"}],
    # Permission catalog
    "list_permissions": [{"code": "PERMISSION_READ"}],
    "list_permission_modules": [{"code": "PERMISSION_READ"}],
    "list_permission_actions": [{"code": "PERMISSION_READ"}],
    "list_permission_resources": [{"code": "PERMISSION_READ"}],
    "get_permission_statistics": [{"code": "PERMISSION_READ"}],
    "get_permission": [{"code": "PERMISSION_READ"}],
    "get_permission_by_code": [{"code": "PERMISSION_READ"}],
    "list_permissions_by_module": [{"code": "PERMISSION_READ"}],
    "list_permissions_by_action": [{"code": "PERMISSION_READ"}],
    "check_permission": [{"code": "PERMISSION_READ"}],
    "create_permission": [{"code": "PERMISSION_CREATE"}],
    "update_permission": [{"code": "PERMISSION_UPDATE"}],
    "delete_permission": [{"code": "PERMISSION_DELETE"}],
    # Maintenance
    "cleanup_expired_assignments": [{"code": "SYSTEM_MAINTENANCE"}],
    "list_orphaned_permissions": [{"code": "SYSTEM_MAINTENANCE"}],
    "validate_permission_integrity": [{"code": "SYSTEM_MAINTENANCE"}],
    # Roles
    "list_roles": [{"code": "ROLE_READ"}],
    "get_role": [{"code": "ROLE_READ"}],
    "list_role_users": [{"code": "ROLE_READ"}],
    "create_role": [{"code": "ROLE_CREATE"}],
    "update_role": [{"code": "ROLE_UPDATE"}],
    "delete_role": [{"code": "ROLE_DELETE"}],
    # Role permissions
    "list_role_permissions": [{"code": "PERMISSION_READ"}],
    "list_role_granted_permissions": [{"code": "PERMISSION_READ"}],
    "assign_role_permission": [{"code": "PERMISSION_ASSIGN"}],
    "remove_role_permission": [{"code": "PERMISSION_ASSIGN"}],
    "bulk_assign_role_permissions": [{"code": "PERMISSION_ASSIGN"}],
    "bulk_remove_role_permissions": [{"code": "PERMISSION_ASSIGN"}],
    "sync_role_permissions": [{"code": "PERMISSION_ASSIGN"}],
    "copy_role_permissions": [{"code": "PERMISSION_ASSIGN"}],
    # User permissions
    "list_user_permissions": [{"code": "PERMISSION_READ"}],
    "list_user_granted_permissions": [{"code": "PERMISSION_READ"}],
    "get_user_permission_summary": [{"code": "PERMISSION_READ"}, {"code": "USER_READ"}],
    "get_user_effective_permissions": [{"code": "PERMISSION_READ"}],
    "check_user_permission_for": [{"code": "PERMISSION_READ"}],
    "assign_user_permission": [{"code": "PERMISSION_ASSIGN"}],
    "remove_user_permission": [{"code": "PERMISSION_ASSIGN"}],
    "bulk_assign_user_permissions": [{"code": "PERMISSION_ASSIGN"}],
    "bulk_remove_user_permissions": [{"code": "PERMISSION_ASSIGN"}],
    "sync_user_permissions": [{"code": "PERMISSION_ASSIGN"}],
    "copy_user_permissions": [{"code": "PERMISSION_ASSIGN"}],
    # User roles
    "list_user_roles": [{"code": "ROLE_READ"}],
    "assign_user_role": [{"code": "PERMISSION_ASSIGN"}],
    "remove_user_role": [{"code": "PERMISSION_ASSIGN"}],
}
