"""
Role Permissions Configuration
Single source of truth for the role -> resource -> capability matrix.
Used by the permission resolver at runtime and by the seed script that
populates the system_settings store.
"""

ROLES = ["admin", "manager", "staff", "customer"]

RESOURCES = ["Complaints", "Users", "Reports", "Settings", "Analytics", "Permissions"]

CAPABILITIES = ["view", "create", "edit", "delete"]

# Key of the system_settings row holding an admin-edited copy of the matrix
ROLE_PERMISSIONS_SETTING_KEY = "role_permissions"

# Grants per role; resources left out get no capabilities
_ROLE_GRANTS = {
    "admin": {
        "Complaints": ["view", "create", "edit", "delete"],
        "Users": ["view", "create", "edit", "delete"],
        "Reports": ["view", "create", "edit", "delete"],
        "Settings": ["view", "create", "edit", "delete"],
        "Analytics": ["view", "create", "edit", "delete"],
        "Permissions": ["view", "create", "edit", "delete"],
    },
    "manager": {
        "Complaints": ["view", "create", "edit"],
        "Users": ["view"],
        "Reports": ["view", "create", "edit"],
        "Analytics": ["view"],
    },
    "staff": {
        "Complaints": ["view", "create", "edit"],
        "Reports": ["view"],
    },
    "customer": {
        "Complaints": ["view", "create"],
    },
}


def build_permission_record(resource: str, granted=()):
    """Return a {resource, view, create, edit, delete} record"""
    record = {"resource": resource}
    for capability in CAPABILITIES:
        record[capability] = capability in granted
    return record


def get_default_role_permissions():
    """
    Returns the default matrix, one record per resource for every role, in RESOURCES order.
    Format: {
        "admin": [
            {"resource": "Complaints", "view": True, "create": True, "edit": True, "delete": True},
            ...
        ],
        ...
    }
    """
    matrix = {}
    for role in ROLES:
        grants = _ROLE_GRANTS.get(role, {})
        matrix[role] = [
            build_permission_record(resource, grants.get(resource, ()))
            for resource in RESOURCES
        ]
    return matrix


def get_permission_matrix():
    """Return the system_settings record the seed script writes"""
    return {
        "key": ROLE_PERMISSIONS_SETTING_KEY,
        "value": get_default_role_permissions(),
    }


DEFAULT_ROLE_PERMISSIONS = get_default_role_permissions()
