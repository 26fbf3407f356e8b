from pydantic import BaseModel
from typing import Any, Dict, List, Optional

from app.modules.permissions.schemas import Permission


class CurrentUserResponse(BaseModel):
    id: str
    email: Optional[str] = None
    user_metadata: Dict[str, Any] = {}
    app_metadata: Dict[str, Any] = {}
    role: Optional[str] = None
    permissions: List[Permission] = []
