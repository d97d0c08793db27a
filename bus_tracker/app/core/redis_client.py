"""
Redis client initialization and connection management.

This module provides the Redis client used by the location relay.
"""

import redis.asyncio as redis
from bus_tracker.app.core.config import settings


def create_redis_client():
    """
    Create an async Redis client from settings.

    The connection is lazy; nothing is contacted until the first command.
    """
    return redis.from_url(
        settings.redis_url,
        decode_responses=settings.redis_decode_responses,
    )


async def ping_redis(client) -> bool:
    """
    Test Redis connection.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        return await client.ping()
    except Exception:
        return False
