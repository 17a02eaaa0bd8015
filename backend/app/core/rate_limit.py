"""
Fixed-window rate limiting backed by Redis.

Usage:
    @router.get("/blogs", dependencies=[Depends(throttle("blogs.index", 60))])
    async def list_blogs(...):
        ...

Each (scope, client) pair gets ``limit`` requests per ``window`` seconds. When
Redis is unreachable the request is allowed and a warning is logged.
"""

import logging
import time
from fastapi import Depends, Request

from backend.app.core.config import settings
from backend.app.core.exceptions import RateLimitError
from backend.app.core.redis_client import get_redis

logger = logging.getLogger(__name__)


def client_identifier(request: Request) -> str:
    """
    Address the quota is counted against.

    ``X-Forwarded-For`` is only honoured when the direct peer is one of
    ``settings.trusted_proxies``; the client is then the right-most hop that
    is not itself a trusted proxy.
    """
    peer = request.client.host if request.client else "unknown"
    forwarded = request.headers.get("X-Forwarded-For")
    if not forwarded or peer not in settings.trusted_proxies:
        return peer

    hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
    for hop in reversed(hops):
        if hop not in settings.trusted_proxies:
            return hop
    return hops[0] if hops else peer


def throttle(scope: str, limit: int, window: int = 60):
    """
    Dependency factory for per-endpoint request quotas.

    Args:
        scope: Name of the protected endpoint group
        limit: Requests allowed per window
        window: Window length in seconds

    Raises:
        RateLimitError (429) once the window's quota is exhausted
    """
    async def rate_limiter(request: Request, redis=Depends(get_redis)) -> None:
        if not settings.rate_limit_enabled:
            return

        now = int(time.time())
        window_start = now - now % window
        key = f"ratelimit:{scope}:{client_identifier(request)}:{window_start}"

        try:
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, window)
        except Exception as e:
            logger.warning(f"Rate limiter unavailable for {scope}, allowing request: {e}")
            return

        if count > limit:
            raise RateLimitError(retry_after=window_start + window - now)

    return rate_limiter
