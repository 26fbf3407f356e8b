"""
Core dependencies for route protection and permission checking
"""

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.config.permissions_config import CAPABILITIES
from app.config.settings import settings
from app.database.supabase_client import get_supabase, get_service_supabase
from app.modules.auth.service import AuthService
from app.modules.permissions.service import (
    PermissionResolver,
    PermissionSettingsService,
    default_resolver,
)
from supabase import Client
from typing import Optional
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    return auth_service.get_current_user(credentials.credentials)


def get_user_role(
    user_data: dict = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[str]:
    """Role of the authenticated actor, from user_roles"""
    return auth_service.get_user_role(user_data["id"], default_role=settings.default_role)


def get_permission_resolver(supabase: Client = Depends(get_service_supabase)) -> PermissionResolver:
    """Static matrix by default; the system_settings copy when permissions_source=settings_store.
    Reads with the same service-role client the update route writes with."""
    if settings.use_settings_store:
        return PermissionResolver(PermissionSettingsService(supabase).load_matrix())
    return default_resolver


def require_capability(resource: str, capability: str):
    """Factory function to create a capability check dependency, e.g. require_capability("Permissions", "edit")"""
    if capability not in CAPABILITIES:
        raise ValueError(f"Unknown capability: {capability}")

    def check_capability(
        user_data: dict = Depends(get_current_user),
        role: Optional[str] = Depends(get_user_role),
        resolver: PermissionResolver = Depends(get_permission_resolver)
    ) -> dict:
        """Dependency to check if the actor's role grants the capability"""
        if not resolver.has_capability(role, resource, capability):
            logger.info(f"Denied {resource}:{capability} to user {user_data['id']} (role {role})")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required: {resource}:{capability}"
            )
        return {**user_data, "role": role}
    return check_capability
