from slowapi import Limiter
from slowapi.util import get_remote_address
from app.config.settings import settings


def default_limit() -> str:
    """Read per request so RATE_LIMIT changes apply without re-decorating routes"""
    return settings.rate_limit


# Routes opt in with @limiter.limit(default_limit); endpoints must take a `request: Request`
limiter = Limiter(key_func=get_remote_address)
