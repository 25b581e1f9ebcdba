"""
Redis client initialization and connection management.

Redis backs token revocation (logout and user deactivation). The client
is created lazily by redis-py; nothing connects until the first command.
"""

import logging
import redis.asyncio as redis
from ambureview.app.core.config import settings

logger = logging.getLogger(__name__)


# Create async Redis client
redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def get_redis():
    """
    Get Redis client instance.

    This can be used as a FastAPI dependency if needed.
    """
    return redis_client


async def ping_redis() -> bool:
    """
    Test Redis connection.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        return await redis_client.ping()
    except Exception as e:
        logger.warning("Redis ping failed: %s", e)
        return False


async def close_redis():
    try:
        await redis_client.aclose()
    except Exception as e:
        logger.warning("Redis close failed: %s", e)
