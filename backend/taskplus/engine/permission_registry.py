"""Permission Registry - Static permission catalog and role presets

The catalog is seeded into the `permissions` and `roles` collections; after
seeding the collections are the source of truth and roles may be edited by
administrators.
"""
from typing import Dict, List

from ..domain.models import Permission, Role


# ============================================================================
# Permission Catalog
# ============================================================================

PERMISSION_GROUPS: Dict[str, List[tuple]] = {
    "Dashboards": [
        ("dashboard.view", "View dashboards"),
    ],
    "Management": [
        ("management.view", "View management area"),
        ("management.departments", "Manage departments"),
        ("management.sections", "Manage sections"),
        ("management.employees", "Manage employees"),
        ("management.users", "Manage users"),
        ("management.permissions", "Manage permissions"),
    ],
    "Customer Support": [
        ("support.tickets", "Work on support tickets"),
        ("support.tickets.delete", "Delete support tickets"),
        ("support.followups", "Handle customer follow-ups"),
        ("support.reviews", "Perform QA reviews"),
    ],
    "Tasks": [
        ("tasks.view", "View tasks"),
        ("tasks.mine", "View own tasks"),
        ("tasks.create", "Create tasks"),
        ("tasks.edit", "Edit tasks"),
        ("tasks.delete", "Delete tasks"),
    ],
    "Operations": [
        ("operations.calendar", "View operations calendar"),
        ("operations.notifications", "View operations notifications"),
    ],
    "Content": [
        ("content.ideas", "Manage content ideas"),
        ("content.scripts", "Manage scripts"),
        ("content.production", "Manage production"),
        ("content.social", "Manage social media"),
        ("content.library", "Browse content library"),
    ],
    "Reports": [
        ("reports.support", "Support reports"),
        ("reports.content", "Content reports"),
        ("reports.operations", "Operations reports"),
        ("reports.custom", "Custom reports"),
    ],
    "Settings": [
        ("settings.profile", "Edit own profile"),
        ("settings.system", "System settings"),
        ("settings.access.manage", "Manage user access"),
    ],
}


def get_permission_catalog() -> List[Permission]:
    """All seeded permissions, in catalog order"""
    return [
        Permission(key=key, label=label, group=group)
        for group, entries in PERMISSION_GROUPS.items()
        for key, label in entries
    ]


def all_permission_keys() -> List[str]:
    return [permission.key for permission in get_permission_catalog()]


# ============================================================================
# Role Presets
# ============================================================================

ROLE_PRESETS: Dict[str, Dict[str, object]] = {
    "manager": {
        "label": "Manager",
        "description": "Department manager",
        "permissions": [
            "dashboard.view",
            "management.view", "management.departments",
            "management.sections", "management.employees",
            "support.tickets", "support.followups", "support.reviews",
            "tasks.view", "tasks.mine", "tasks.create", "tasks.edit",
            "operations.calendar", "operations.notifications",
            "reports.support", "reports.content", "reports.operations", "reports.custom",
            "content.ideas", "content.scripts", "content.production",
            "content.social", "content.library",
            "settings.profile",
        ],
    },
    "supervisor": {
        "label": "Supervisor",
        "description": "Support supervisor",
        "permissions": [
            "dashboard.view",
            "support.tickets", "support.followups", "support.reviews",
            "tasks.view", "tasks.mine",
            "operations.calendar",
            "reports.support", "reports.operations",
            "settings.profile",
        ],
    },
    "agent": {
        "label": "Support Agent",
        "description": "Handles customer tickets",
        "permissions": ["dashboard.view", "support.tickets", "settings.profile"],
    },
    "followup": {
        "label": "Follow-up Agent",
        "description": "Calls customers back after resolution",
        "permissions": ["dashboard.view", "support.followups", "settings.profile"],
    },
    "digitalmedia": {
        "label": "Digital Media",
        "description": "Content production team",
        "permissions": [
            "dashboard.view",
            "content.ideas", "content.scripts", "content.production",
            "content.social", "content.library",
            "settings.profile",
        ],
    },
}


def get_role_presets() -> List[Role]:
    """Seeded roles; `admin` always carries the full catalog"""
    roles = [
        Role(
            key="admin",
            label="Administrator",
            description="Full access",
            permissions=all_permission_keys(),
        )
    ]
    for key, preset in ROLE_PRESETS.items():
        roles.append(Role(key=key, **preset))
    return roles
