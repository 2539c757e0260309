# app/infrastructure/cache/redis_client.py

import logging

import redis.asyncio as redis

from app.core.config import settings

logger = logging.getLogger("redis_client")

redis_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """Process-wide client for the session store, created on first use."""
    global redis_client
    if redis_client is None:
        redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)
    return redis_client


async def close_redis_client() -> None:
    global redis_client
    if redis_client is None:
        return
    try:
        await redis_client.aclose()
    except Exception:
        logger.exception("Error closing Redis client")
    finally:
        redis_client = None
