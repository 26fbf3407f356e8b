import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from fastapi import HTTPException
from supabase import Client

from app.config.permissions_config import (
    DEFAULT_ROLE_PERMISSIONS,
    RESOURCES,
    ROLE_PERMISSIONS_SETTING_KEY,
    ROLES,
    get_default_role_permissions,
)
from app.modules.permissions.schemas import Permission

logger = logging.getLogger(__name__)


def parse_matrix(value: Any) -> Dict[str, List[Permission]]:
    """Validate a stored {role: [record, ...]} matrix. Raises ValueError on a malformed value."""
    if not isinstance(value, dict):
        raise ValueError("role permissions must be an object keyed by role")
    matrix = {}
    for role, records in value.items():
        if not isinstance(records, list):
            raise ValueError(f"permissions for role {role} must be a list")
        matrix[role] = [Permission.model_validate(record) for record in records]
    return matrix


def default_matrix() -> Dict[str, List[Permission]]:
    return parse_matrix(get_default_role_permissions())


class PermissionResolver:
    """
    Answers view/create/edit/delete questions for a (role, resource) pair.

    The table is copied into immutable records at construction time. Roles
    match exactly, resources case-insensitively; any miss resolves to a
    record with every capability False.
    """

    def __init__(self, role_permissions: Optional[Mapping[str, Iterable[Any]]] = None):
        if role_permissions is None:
            role_permissions = DEFAULT_ROLE_PERMISSIONS
        self._tables: Dict[str, Tuple[Permission, ...]] = {}
        self._index: Dict[str, Dict[str, Permission]] = {}
        for role, records in role_permissions.items():
            permissions = tuple(
                record if isinstance(record, Permission) else Permission.model_validate(record)
                for record in records
            )
            index: Dict[str, Permission] = {}
            for permission in permissions:
                # first entry wins on duplicate resources
                index.setdefault(permission.resource.lower(), permission)
            self._tables[role] = permissions
            self._index[role] = index

    @property
    def roles(self) -> List[str]:
        return list(self._tables)

    def permissions_for(self, role: Optional[str]) -> List[Permission]:
        if not role:
            return []
        return list(self._tables.get(role, ()))

    def matrix(self) -> Dict[str, List[Permission]]:
        return {role: list(permissions) for role, permissions in self._tables.items()}

    def resolve(self, role: Optional[str], resource: Optional[str]) -> Permission:
        if not role or not resource:
            return Permission(resource=resource or "")
        match = self._index.get(role, {}).get(resource.lower())
        return match if match is not None else Permission(resource=resource)

    def can_view(self, role: Optional[str], resource: Optional[str]) -> bool:
        return self.resolve(role, resource).view

    def can_create(self, role: Optional[str], resource: Optional[str]) -> bool:
        return self.resolve(role, resource).create

    def can_edit(self, role: Optional[str], resource: Optional[str]) -> bool:
        return self.resolve(role, resource).edit

    def can_delete(self, role: Optional[str], resource: Optional[str]) -> bool:
        return self.resolve(role, resource).delete

    def has_capability(self, role: Optional[str], resource: Optional[str], capability: str) -> bool:
        return bool(getattr(self.resolve(role, resource), capability, False))


default_resolver = PermissionResolver()


def resolve(role: Optional[str], resource: Optional[str]) -> Permission:
    return default_resolver.resolve(role, resource)


def can_view(role: Optional[str], resource: Optional[str]) -> bool:
    return default_resolver.can_view(role, resource)


def can_create(role: Optional[str], resource: Optional[str]) -> bool:
    return default_resolver.can_create(role, resource)


def can_edit(role: Optional[str], resource: Optional[str]) -> bool:
    return default_resolver.can_edit(role, resource)


def can_delete(role: Optional[str], resource: Optional[str]) -> bool:
    return default_resolver.can_delete(role, resource)


class PermissionSettingsService:
    """Role permissions kept in the system_settings table"""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def load_matrix(self) -> Dict[str, List[Permission]]:
        """Stored matrix, or the defaults when the row is missing, malformed or unreadable"""
        try:
            result = self.supabase.table("system_settings")\
                .select("value")\
                .eq("key", ROLE_PERMISSIONS_SETTING_KEY)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Error loading role permissions, using defaults: {e}")
            return default_matrix()

        if not result.data:
            logger.info("No role permissions stored, using defaults")
            return default_matrix()

        try:
            return parse_matrix(result.data[0].get("value"))
        except ValueError as e:
            logger.warning(f"Invalid role permissions stored, using defaults: {e}")
            return default_matrix()

    def save_role_permissions(
        self,
        role: str,
        permissions: List[Permission],
        updated_by: Optional[str] = None
    ) -> List[Permission]:
        """Replace one role's permissions; resources not given get no capabilities"""
        if role not in ROLES:
            raise HTTPException(status_code=400, detail=f"Unknown role: {role}")

        canonical = {resource.lower(): resource for resource in RESOURCES}
        by_resource: Dict[str, Permission] = {}
        for permission in permissions:
            name = canonical.get(permission.resource.lower())
            if name is None:
                raise HTTPException(status_code=400, detail=f"Unknown resource: {permission.resource}")
            by_resource[name] = permission.model_copy(update={"resource": name})

        role_permissions = [
            by_resource.get(resource, Permission(resource=resource))
            for resource in RESOURCES
        ]

        matrix = self.load_matrix()
        matrix[role] = role_permissions
        value = {
            name: [permission.model_dump() for permission in records]
            for name, records in matrix.items()
        }
        self.write_matrix(value, updated_by)
        logger.info(f"Saved permissions for role {role}")
        return role_permissions

    def write_matrix(self, value: Dict[str, Any], updated_by: Optional[str] = None):
        """Insert or update the role_permissions row with a raw {role: [record, ...]} value"""
        row = {
            "value": value,
            "updated_at": datetime.now(timezone.utc).isoformat(),
            "updated_by": updated_by,
        }
        try:
            existing = self.supabase.table("system_settings")\
                .select("id")\
                .eq("key", ROLE_PERMISSIONS_SETTING_KEY)\
                .execute()

            if existing.data:
                self.supabase.table("system_settings")\
                    .update(row)\
                    .eq("key", ROLE_PERMISSIONS_SETTING_KEY)\
                    .execute()
            else:
                self.supabase.table("system_settings")\
                    .insert({"key": ROLE_PERMISSIONS_SETTING_KEY, **row})\
                    .execute()
        except Exception as e:
            logger.error(f"Error saving role permissions: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to save permissions: {str(e)}")
