# app/api/routes/ussd_handlers/service.py
"""
One USSD round trip: load the caller's session (or start one), route the
request through the main menu, then persist the new state on CON or drop
it on END.  Always returns a well-formed response.
"""

from __future__ import annotations

import logging

from app.domain.models.ussd import UssdRequest, UssdResponse, UssdState
from app.infrastructure.cache.session_cache import UssdSessionCache, new_session

from .base import GENERIC_ERROR
from .main_menu import MainMenuHandler

logger = logging.getLogger("ussd_handlers.service")


class InvalidUssdRequest(ValueError):
    """Raised for requests that must be rejected before any state is touched."""


async def load_or_create_state(session_cache: UssdSessionCache, request: UssdRequest) -> UssdState:
    state = await session_cache.get_state(request.phone_number)
    if state is None:
        return new_session(request.phone_number, request.session_id)

    if request.session_id and request.session_id.strip():
        state.session_id = request.session_id
    return state


async def process_ussd_request(
    request: UssdRequest,
    *,
    session_cache: UssdSessionCache,
    main_menu: MainMenuHandler,
) -> UssdResponse:
    if not request.phone_number or not request.phone_number.strip():
        raise InvalidUssdRequest("Phone number is required")

    phone = request.phone_number

    try:
        state = await load_or_create_state(session_cache, request)
    except Exception:
        logger.exception("Session load failed. phone=%s session_id=%s", phone, request.session_id)
        return UssdResponse.end(GENERIC_ERROR)

    result = await main_menu.handle(request, state)
    response = result.response

    if response.is_end:
        try:
            await session_cache.clear_state(phone)
        except Exception:
            # The entry still expires on its own TTL
            logger.exception("Session clear failed. phone=%s session_id=%s", phone, request.session_id)
        return response

    try:
        await session_cache.save_state(phone, result.state)
    except Exception:
        logger.exception(
            "Session save failed. phone=%s session_id=%s menu=%s step=%s",
            phone,
            request.session_id,
            result.state.current_menu.value,
            result.state.current_step,
        )
        return UssdResponse.end(GENERIC_ERROR)

    return response
