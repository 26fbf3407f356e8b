from fastapi import APIRouter, Depends, Request, Response
from app.config.settings import settings
from app.core.limiter import limiter, default_limit
from app.modules.proxy.schemas import ProxyRequest
from app.modules.proxy.service import GasProxy, extract_api_path

# Mounted under settings.proxy_mount_prefix in main.py
router = APIRouter(tags=["proxy"])

# Every standard verb reaches GasProxy, which answers the ones it does not map with a 400
PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "DELETE", "OPTIONS", "PATCH", "TRACE", "CONNECT"]


def get_gas_proxy() -> GasProxy:
    return GasProxy(gas_url=settings.gas_url, timeout=settings.gas_timeout)


@router.api_route("", methods=PROXY_METHODS, include_in_schema=False)
@router.api_route("/{api_path:path}", methods=PROXY_METHODS)
@limiter.limit(default_limit)
async def proxy_to_gas(
    request: Request,
    proxy: GasProxy = Depends(get_gas_proxy)
):
    """Forward any request under the mount prefix to the Apps Script backend"""
    body = await request.body()
    proxy_request = ProxyRequest(
        method=request.method,
        path=extract_api_path(request.url.path, settings.proxy_mount_prefix),
        query_params=dict(request.query_params),
        body=body or None,
    )
    result = await proxy.handle(proxy_request)
    return Response(content=result.body, status_code=result.status_code, headers=result.headers)
