# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Core permission catalog seeded on first run."""

def _permission(code: str, module: str, action: str, resource: str, description: str) -> dict:
    return {
        "code": code,
        "name": f"{action} {resource}",
        "module": module,
        "action": action,
        "resource": resource,
        "description": description,
    }


CORE_PERMISSIONS = [
    # User management
    _permission("USER_READ", "User", "Read", "User", "View user accounts"),
    _permission("USER_CREATE", "User", "Create", "User", "Create user accounts"),
    _permission("USER_UPDATE", "User", "Update", "User", "Update user accounts"),
    _permission("USER_DELETE", "User", "Delete", "User", "Delete user accounts"),
    # Role management
    _permission("ROLE_READ", "Role", "Read", "Role", "View roles and their members"),
    _permission("ROLE_CREATE", "Role", "Create", "Role", "Create roles"),
    _permission("ROLE_UPDATE", "Role", "Update", "Role", "Update roles"),
    _permission("ROLE_DELETE", "Role", "Delete", "Role", "Delete roles"),
    # Permission catalog and assignments
    _permission(
        "PERMISSION_READ", "Permission", "Read", "Permission", "View permissions and grants"
    ),
    _permission(
        "PERMISSION_CREATE", "Permission", "Create", "Permission", "Create permissions"
    ),
    _permission(
        "PERMISSION_UPDATE", "Permission", "Update", "Permission", "Update permissions"
    ),
    _permission(
        "PERMISSION_DELETE", "Permission", "Delete", "Permission", "Delete permissions"
    ),
    _permission(
        "PERMISSION_ASSIGN",
        "Permission",
        "Assign",
        "Permission",
        "Grant, deny and revoke permissions and roles",
    ),
    # HR records
    _permission("EMPLOYEE_READ", "Employee", "Read", "Employee", "View employees"),
    _permission("EMPLOYEE_CREATE", "Employee", "Create", "Employee", "Create employees"),
    _permission("EMPLOYEE_UPDATE", "Employee", "Update", "Employee", "Update employees"),
    _permission("EMPLOYEE_DELETE", "Employee", "Delete", "Employee", "Delete employees"),
    _permission(
        "ATTENDANCE_READ", "Attendance", "Read", "AttendanceLog", "View attendance logs"
    ),
    _permission("REPORT_VIEW", "Report", "View", "Report", "View attendance reports"),
    # System
    _permission(
        "SYSTEM_MAINTENANCE",
        "System",
        "Maintain",
        "System",
        "Run access control maintenance tasks",
    ),
]
