# scripts/reset_db.py

import asyncio
import os
import sys
from loguru import logger

# Ensure project root (the folder containing 'app') is on sys.path
CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(CURRENT_DIR)
if PROJECT_ROOT not in sys.path:
    sys.path.append(PROJECT_ROOT)

from app.core.db import engine
from app.core.logging_config import setup_logging
from app.infrastructure.cache.redis_client import close_redis_client, get_redis_client
from app.core.config import settings
from app.infrastructure.db import models  # noqa: F401
from app.infrastructure.db.base import Base


async def reset_db():
    logger.info("Resetting transactions schema (drop_all + create_all)...")

    async with engine.begin() as conn:
        logger.info("Dropping all tables...")
        await conn.run_sync(Base.metadata.drop_all)

        logger.info("Creating all tables from current models...")
        await conn.run_sync(Base.metadata.create_all)

    await engine.dispose()
    logger.success("DB reset complete: all tables dropped and recreated.")


async def clear_sessions():
    client = get_redis_client()
    removed = 0
    async for key in client.scan_iter(match=f"{settings.USSD_SESSION_KEY_PREFIX}*", count=100):
        await client.delete(key)
        removed += 1
    await close_redis_client()
    logger.success("Removed {} USSD session(s) from Redis.", removed)


async def main():
    setup_logging()
    await reset_db()
    if "--keep-sessions" not in sys.argv:
        await clear_sessions()


if __name__ == "__main__":
    asyncio.run(main())
