from fastapi import APIRouter, Depends, Request
from app.core.limiter import limiter, default_limit
from app.database.supabase_client import get_service_supabase
from app.modules.permissions.schemas import (
    Permission, RolePermissionsUpdate, RolePermissionsResponse,
    PermissionEnvelope, MatrixResponse
)
from app.modules.permissions.service import PermissionResolver, PermissionSettingsService
from app.core.dependencies import (
    get_current_user,
    get_user_role,
    get_permission_resolver,
    require_capability,
)
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/permissions", tags=["permissions"])


def get_permission_settings_service(supabase: Client = Depends(get_service_supabase)) -> PermissionSettingsService:
    return PermissionSettingsService(supabase)


@router.get("/me", response_model=PermissionEnvelope)
@limiter.limit(default_limit)
async def get_my_permissions(
    request: Request,
    user_data: Dict = Depends(get_current_user),
    role: Optional[str] = Depends(get_user_role),
    resolver: PermissionResolver = Depends(get_permission_resolver)
):
    """Permissions of the authenticated actor's role"""
    return {
        "success": True,
        "data": RolePermissionsResponse(role=role, permissions=resolver.permissions_for(role)),
    }


@router.get("", response_model=MatrixResponse)
@limiter.limit(default_limit)
async def get_permission_matrix(
    request: Request,
    user_data: Dict = Depends(require_capability("Permissions", "view")),
    resolver: PermissionResolver = Depends(get_permission_resolver)
):
    """Full role -> resource -> capability matrix"""
    return {"success": True, "data": resolver.matrix()}


@router.get("/{role}", response_model=PermissionEnvelope)
@limiter.limit(default_limit)
async def get_role_permissions(
    request: Request,
    role: str,
    user_data: Dict = Depends(require_capability("Permissions", "view")),
    resolver: PermissionResolver = Depends(get_permission_resolver)
):
    """Permissions of one role; empty for an unknown role"""
    return {
        "success": True,
        "data": RolePermissionsResponse(role=role, permissions=resolver.permissions_for(role)),
    }


@router.get("/{role}/{resource}", response_model=PermissionEnvelope)
@limiter.limit(default_limit)
async def resolve_permission(
    request: Request,
    role: str,
    resource: str,
    user_data: Dict = Depends(require_capability("Permissions", "view")),
    resolver: PermissionResolver = Depends(get_permission_resolver)
):
    """Resolved capabilities of a role on a resource (case-insensitive)"""
    permission: Permission = resolver.resolve(role, resource)
    return {"success": True, "data": permission}


@router.put("/{role}", response_model=PermissionEnvelope)
@limiter.limit(default_limit)
async def update_role_permissions(
    request: Request,
    role: str,
    update: RolePermissionsUpdate,
    user_data: Dict = Depends(require_capability("Permissions", "edit")),
    service: PermissionSettingsService = Depends(get_permission_settings_service)
):
    """Save a role's permissions into the settings store (admins only with the default matrix)"""
    permissions = service.save_role_permissions(role, update.permissions, updated_by=user_data["id"])
    return {
        "success": True,
        "data": RolePermissionsResponse(role=role, permissions=permissions),
    }
