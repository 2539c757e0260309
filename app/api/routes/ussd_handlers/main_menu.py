# app/api/routes/ussd_handlers/main_menu.py
"""
Top-level USSD router.

At the top menu it renders the three options or switches into the chosen
menu; inside a menu it hands the request to that menu's handler.  When a
handler navigates back to the top, the top menu is rendered in the same
round trip.
"""

from __future__ import annotations

import logging
from typing import Mapping

from app.core.config import settings
from app.domain.models.ussd import (
    HandlerResult,
    MenuName,
    UssdRequest,
    UssdResponse,
    UssdState,
)

from .base import GENERIC_ERROR, BaseMenuHandler, is_blank

logger = logging.getLogger("ussd_handlers.main_menu")

MAIN_MENU_TEXT = (
    f"Welcome to {settings.USSD_APP_TITLE}\n\n"
    "1. Add transaction\n"
    "2. Transaction history\n"
    "3. Account balance\n\n"
    "Select an option:"
)
INVALID_MAIN_MENU_OPTION = "Invalid option. Please select 1, 2, or 3:"

MENU_OPTIONS = {
    "1": MenuName.ADD_TRANSACTION,
    "2": MenuName.TRANSACTION_HISTORY,
    "3": MenuName.ACCOUNT_BALANCE,
}


class MainMenuHandler:
    def __init__(self, handlers: Mapping[MenuName, BaseMenuHandler]) -> None:
        self.handlers = dict(handlers)

    async def handle(self, request: UssdRequest, state: UssdState) -> HandlerResult:
        # Work on a copy; the caller's object is never mutated
        state = state.model_copy(deep=True)
        try:
            return await self._route(request, state)
        except Exception:
            logger.exception(
                "Exception in main menu. phone=%s session_id=%s menu=%s step=%s input=%r",
                request.phone_number,
                request.session_id,
                state.current_menu.value,
                state.current_step,
                request.input,
            )
            return HandlerResult(UssdResponse.end(GENERIC_ERROR), state)

    async def _route(self, request: UssdRequest, state: UssdState) -> HandlerResult:
        if state.current_menu != MenuName.MAIN_MENU:
            result = await self._dispatch(request, state)

            # Handler navigated back to the top: show the menu right away
            if result.state.current_menu == MenuName.MAIN_MENU and not result.response.is_end:
                return await self._route(request.with_input(""), result.state)
            return result

        # Leaving a menu discards its extended fields
        if type(state) is not UssdState:
            state = UssdState(**state.base_fields())

        if is_blank(request.input):
            state.current_step = 0
            return HandlerResult(UssdResponse.cont(MAIN_MENU_TEXT), state)

        menu = MENU_OPTIONS.get(request.input.strip())
        state.current_step = 0
        if menu is None:
            return HandlerResult(UssdResponse.cont(INVALID_MAIN_MENU_OPTION), state)

        state.current_menu = menu
        # The selection digit is not input for the sub-menu
        return await self._dispatch(request.with_input(""), state)

    async def _dispatch(self, request: UssdRequest, state: UssdState) -> HandlerResult:
        handler = self.handlers.get(state.current_menu)
        if handler is None:
            logger.warning("No handler for menu %s; resetting to main menu", state.current_menu)
            state.current_menu = MenuName.MAIN_MENU
            state.current_step = 0
            return HandlerResult(UssdResponse.cont(""), state)
        return await handler.handle(request, state)
