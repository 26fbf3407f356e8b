import logging
from datetime import datetime, timezone
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.config.settings import settings
from app.core.limiter import limiter
from app.modules.auth import routes as auth_routes
from app.modules.permissions import routes as permissions_routes
from app.modules.proxy import routes as proxy_routes
from app.modules.proxy.service import CORS_HEADERS

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

ACCESS_CONTROL_HEADERS = {
    name: value for name, value in CORS_HEADERS.items() if name.lower().startswith("access-control-")
}

app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    # Answered outside the middleware stack, so CORS headers are set here
    detail = "Internal server error" if settings.is_production else str(exc)
    return JSONResponse(status_code=500, content={"detail": detail}, headers=ACCESS_CONTROL_HEADERS)


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


class CORSHeadersMiddleware:
    """
    Adds the proxy's fixed CORS header set to every response that lacks it.
    Preflights outside the proxy prefix are answered here; the proxy answers its own.
    """

    cors_headers = [(name.lower().encode(), value.encode()) for name, value in ACCESS_CONTROL_HEADERS.items()]

    def __init__(self, app, proxy_prefix: str):
        self.app = app
        self.proxy_prefix = proxy_prefix.rstrip("/")

    def _is_proxied(self, path: str) -> bool:
        return path == self.proxy_prefix or path.startswith(self.proxy_prefix + "/")

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        if scope["method"] == "OPTIONS" and not self._is_proxied(scope["path"]):
            await send({
                "type": "http.response.start",
                "status": 200,
                "headers": [*self.cors_headers, (b"content-length", b"0")],
            })
            await send({"type": "http.response.body", "body": b""})
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                present = {name.lower() for name, _ in message["headers"]}
                message["headers"].extend(
                    header for header in self.cors_headers if header[0] not in present
                )
            await send(message)

        await self.app(scope, receive, send_with_headers)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(CORSHeadersMiddleware, proxy_prefix=settings.proxy_mount_prefix)

# Include module routes
app.include_router(auth_routes.router, prefix="/api/v1")
app.include_router(permissions_routes.router, prefix="/api/v1")
app.include_router(proxy_routes.router, prefix=settings.proxy_mount_prefix)


@app.on_event("startup")
async def startup_event():
    logger.info("Application startup")
    logger.info(f"GAS_URL: {'configured' if settings.gas_url else 'not set'}")
    logger.info(f"Proxy mounted at {settings.proxy_mount_prefix}, permissions source: {settings.permissions_source}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutdown")


@app.get("/health")
@limiter.exempt
async def health():
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "message": "GAS Proxy Server is running",
        "gas_url_configured": bool(settings.gas_url),
    }


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness check: extend here with Supabase/GAS checks if needed."""
    return {"status": "ready"}
