from pydantic import BaseModel, Field
from typing import Any, Dict, Literal, Optional, Union


class ProxyRequest(BaseModel):
    method: str
    path: str
    query_params: Dict[str, str] = Field(default_factory=dict)
    body: Optional[Union[bytes, str]] = None  # raw bytes from HTTP, decoded as UTF-8 JSON


class UpstreamEnvelope(BaseModel):
    path: str
    action: Literal["get", "create", "update", "delete"]
    data: Any = None


class ProxyResponse(BaseModel):
    status_code: int
    headers: Dict[str, str]
    body: str = ""
