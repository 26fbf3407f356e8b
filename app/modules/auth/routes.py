from fastapi import APIRouter, Depends, Request
from app.core.limiter import limiter, default_limit
from app.core.dependencies import get_current_user, get_user_role, get_permission_resolver
from app.modules.auth.schemas import CurrentUserResponse
from app.modules.permissions.service import PermissionResolver
from typing import Dict, Optional

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me", response_model=CurrentUserResponse)
@limiter.limit(default_limit)
async def get_me(
    request: Request,
    current_user: Dict = Depends(get_current_user),
    role: Optional[str] = Depends(get_user_role),
    resolver: PermissionResolver = Depends(get_permission_resolver),
):
    """Get current authenticated user, their role and permissions (for frontend UI)."""
    return {**current_user, "role": role, "permissions": resolver.permissions_for(role)}
