# app/infrastructure/cache/session_cache.py
"""
Redis-backed store for USSD session state, one key per phone number.

The payload is the JSON of the concrete state model with a ``$stateType``
discriminator written first, so a base-shape session and each extended
shape come back as the class they were saved as.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict

import redis.asyncio as redis
from pydantic import ValidationError

from app.core.config import settings
from app.domain.models.ussd import (
    AddTransactionState,
    MenuName,
    TransactionHistoryState,
    UssdState,
)

logger = logging.getLogger("session_cache")

# ---------------------------------------------------------------------------
# Key layout, TTL & shape registry
# ---------------------------------------------------------------------------
SESSION_KEY_PREFIX = settings.USSD_SESSION_KEY_PREFIX
SESSION_TTL_SECONDS = settings.USSD_SESSION_TTL_SECONDS   # idle expiry, refreshed on every save

STATE_TYPE_PROPERTY = "$stateType"

STATE_TYPE_REGISTRY: Dict[str, type[UssdState]] = {
    "UssdState": UssdState,
    "AddTransactionState": AddTransactionState,
    "TransactionHistoryState": TransactionHistoryState,
}


def new_session(phone_number: str, session_id: str | None = None) -> UssdState:
    """Return a fresh base-shape session sitting at the top menu."""
    return UssdState(
        phone_number=phone_number,
        session_id=session_id,
        current_menu=MenuName.MAIN_MENU,
        current_step=0,
    )


def serialize_state(state: UssdState) -> str:
    """Dump ``state`` as JSON tagged with its concrete shape."""
    type_name = type(state).__name__
    if type_name not in STATE_TYPE_REGISTRY:
        raise ValueError(f"Unregistered session state type: {type_name}")
    payload: Dict[str, Any] = {STATE_TYPE_PROPERTY: type_name}
    payload.update(state.model_dump(mode="json"))
    return json.dumps(payload)


def deserialize_state(raw: str | bytes) -> UssdState | None:
    """Restore a state saved by :func:`serialize_state`.

    Unknown discriminators fall back to the base shape; anything that does
    not parse is reported as ``None`` (no session).
    """
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Discarding unparsable session payload")
        return None
    if not isinstance(payload, dict):
        logger.warning("Discarding non-object session payload")
        return None

    type_name = payload.pop(STATE_TYPE_PROPERTY, None)
    state_cls = STATE_TYPE_REGISTRY.get(type_name, UssdState) if isinstance(type_name, str) else UssdState

    try:
        return state_cls.model_validate(payload)
    except ValidationError as exc:
        logger.warning("Discarding invalid session payload (%s): %s", type_name, exc.error_count())
        return None


class UssdSessionCache:
    def __init__(
        self,
        redis_url: str | None = None,
        *,
        client: redis.Redis | None = None,
        ttl_seconds: int = SESSION_TTL_SECONDS,
        key_prefix: str = SESSION_KEY_PREFIX,
    ):
        if client is None:
            if not redis_url:
                raise RuntimeError("REDIS_URL is not set")
            client = redis.from_url(redis_url, decode_responses=True)
        self._r = client
        self._ttl = ttl_seconds
        self._prefix = key_prefix

    def _key(self, phone_number: str) -> str:
        return f"{self._prefix}{phone_number}"

    async def get_state(self, phone_number: str) -> UssdState | None:
        raw = await self._r.get(self._key(phone_number))
        if not raw:
            return None
        return deserialize_state(raw)

    async def save_state(self, phone_number: str, state: UssdState) -> None:
        state.last_updated = datetime.now(timezone.utc)
        await self._r.set(
            self._key(phone_number),
            serialize_state(state),
            ex=self._ttl,
        )

    async def clear_state(self, phone_number: str) -> None:
        await self._r.delete(self._key(phone_number))

    async def ping(self) -> bool:
        return bool(await self._r.ping())
