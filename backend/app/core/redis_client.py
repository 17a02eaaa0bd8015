"""
Redis connection used for rate-limit counters.

The cache store keeps its own connection on a separate database
(``CACHE_REDIS_URL``) so flushing the cache never resets throttle windows.
"""

import logging
import redis.asyncio as redis
from backend.app.core.config import settings

logger = logging.getLogger(__name__)

redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def get_redis():
    """FastAPI dependency returning the shared rate-limit connection."""
    return redis_client


async def ping_redis() -> bool:
    """
    Check that the rate-limit Redis answers.

    Returns:
        True if the server replied to PING, False otherwise
    """
    try:
        return bool(await redis_client.ping())
    except Exception as e:
        logger.warning(f"Redis ping failed: {e}")
        return False


async def close_redis() -> None:
    await redis_client.aclose()
