"""
Redis client initialization and connection management.

The client is created lazily on first use, so the default in-memory OTP
store never opens a connection.
"""

from typing import Optional
import redis.asyncio as redis
from bus_booking.app.core.config import settings
from bus_booking.app.core.logging import get_logger

logger = get_logger(__name__)

_redis_client: Optional[redis.Redis] = None


def get_redis_client() -> redis.Redis:
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.redis_url,
            decode_responses=settings.redis_decode_responses,
        )
    return _redis_client


async def ping_redis() -> bool:
    """
    Test Redis connection.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        return await get_redis_client().ping()
    except (redis.RedisError, OSError) as e:
        logger.warning(f"Redis ping failed: {e}")
        return False


async def close_redis() -> None:
    global _redis_client
    if _redis_client is not None:
        await _redis_client.close()
        _redis_client = None
