# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Default roles seeded on first run."""

from .permissions import CORE_PERMISSIONS

# Admin always gets every core permission
ADMIN_PERMISSIONS = [p["code"] for p in CORE_PERMISSIONS]

# Only Admin is a system role (is_system=True) and cannot be modified.
# The other roles are regular roles and can be fully managed via the API.
DEFAULT_ROLES = [
    {
        "name": "Admin",
        "is_system": True,
        "description": "Grants every permission in the system.",
        "permissions": ADMIN_PERMISSIONS,
    },
    {
        "name": "IT",
        "is_system": False,
        "description": "Manages user accounts, roles and the permission catalog.",
        "permissions": [
            "USER_READ",
            "USER_CREATE",
            "USER_UPDATE",
            "USER_DELETE",
            "ROLE_READ",
            "ROLE_CREATE",
            "ROLE_UPDATE",
            "ROLE_DELETE",
            "PERMISSION_READ",
            "PERMISSION_CREATE",
            "PERMISSION_UPDATE",
            "PERMISSION_DELETE",
            "PERMISSION_ASSIGN",
            "SYSTEM_MAINTENANCE",
        ],
    },
    {
        "name": "HR Manager",
        "is_system": False,
        "description": "Manages employee records and reviews access assignments.",
        "permissions": [
            "USER_READ",
            "ROLE_READ",
            "PERMISSION_READ",
            "EMPLOYEE_READ",
            "EMPLOYEE_CREATE",
            "EMPLOYEE_UPDATE",
            "EMPLOYEE_DELETE",
            "ATTENDANCE_READ",
            "REPORT_VIEW",
        ],
    },
    {
        "name": "HR",
        "is_system": False,
        "description": "Maintains employee records.",
        "permissions": [
            "USER_READ",
            "EMPLOYEE_READ",
            "EMPLOYEE_CREATE",
            "EMPLOYEE_UPDATE",
            "ATTENDANCE_READ",
        ],
    },
]
