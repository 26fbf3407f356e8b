from pydantic import BaseModel, ConfigDict
from typing import Dict, List, Optional, Any


class Permission(BaseModel):
    model_config = ConfigDict(frozen=True)

    resource: str
    view: bool = False
    create: bool = False
    edit: bool = False
    delete: bool = False


class RolePermissionsUpdate(BaseModel):
    permissions: List[Permission]


class RolePermissionsResponse(BaseModel):
    role: Optional[str] = None
    permissions: List[Permission]


class PermissionEnvelope(BaseModel):
    success: bool = True
    data: Any = None


class MatrixResponse(BaseModel):
    success: bool = True
    data: Dict[str, List[Permission]]
