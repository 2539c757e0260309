# app/api/deps.py
"""
Shared FastAPI dependencies used across multiple route modules.

Every route gets its collaborators from here so tests can swap them out
through ``app.dependency_overrides`` without touching Redis or Postgres.
"""

import logging

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.routes.ussd_handlers import MainMenuHandler, build_main_menu
from app.core.db import get_db
from app.infrastructure.cache.redis_client import get_redis_client
from app.infrastructure.cache.session_cache import UssdSessionCache
from app.infrastructure.db.repositories import TransactionRepository

logger = logging.getLogger("api.deps")


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------

def get_session_cache() -> UssdSessionCache:
    """Session store over the shared Redis client."""
    return UssdSessionCache(client=get_redis_client())


async def get_transaction_repository(
    db: AsyncSession = Depends(get_db),
) -> TransactionRepository:
    return TransactionRepository(db)


# ---------------------------------------------------------------------------
# USSD menu tree
# ---------------------------------------------------------------------------

async def get_main_menu(
    transactions: TransactionRepository = Depends(get_transaction_repository),
) -> MainMenuHandler:
    """Menu tree bound to this request's transaction store."""
    return build_main_menu(transactions)
