# app/api/routes/ussd_handlers/base.py
"""
Shared step machinery for multi-step USSD menus.

A concrete handler declares:

* ``menu``          -- the :class:`MenuName` it owns
* ``steps``         -- ordered step names; a step index is a position here
* ``state_class``   -- the session shape it works on
* one coroutine per step name, registered in ``_routines``
* ``step_prompt`` / ``clear_step_data`` / ``clear_menu_data`` / ``finish``

Control tokens (``#`` back, ``##`` main menu) are resolved here, before any
step-specific parsing, so every menu navigates the same way.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Awaitable, Callable, Dict, Sequence

from app.core.config import settings
from app.domain.models.ussd import (
    HandlerResult,
    MenuName,
    UssdRequest,
    UssdResponse,
    UssdState,
)

logger = logging.getLogger("ussd_handlers.base")

BACK_COMMAND = "#"
MAIN_MENU_COMMAND = "##"
NEXT_PAGE_COMMAND = "*"
PREVIOUS_PAGE_COMMAND = "**"

VISUAL_DIVIDER = "─────────────────────"
DEFAULT_PROMPT = "Continue:"

SIGN_OFF = f"Thank you for using {settings.USSD_APP_TITLE}!"
GENERIC_ERROR = f"An error occurred. Please dial again to restart.\n\n{SIGN_OFF}"

StepRoutine = Callable[[UssdRequest, UssdState], Awaitable[HandlerResult]]


def format_money(amount) -> str:
    value = amount if isinstance(amount, Decimal) else Decimal(str(amount or 0))
    return f"${value:.2f}"


def is_blank(text: str | None) -> bool:
    return text is None or not text.strip()


class BaseMenuHandler(ABC):
    menu: MenuName
    steps: Sequence[str] = ()
    state_class: type[UssdState] = UssdState
    first_step: int = 0
    # When the step after the last input step is terminal, either show it
    # (a confirmation screen) or finish straight away.
    confirm_before_finish: bool = False

    def __init__(self) -> None:
        self._routines: Dict[str, StepRoutine] = {}

    # ── step arithmetic ─────────────────────────────────────

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    def step_index(self, name: str) -> int:
        return list(self.steps).index(name)

    def step_name(self, step: int) -> str | None:
        if 0 <= step < self.total_steps:
            return self.steps[step]
        return None

    def next_step(self, step: int) -> int:
        if 0 <= step < self.total_steps - 1:
            return step + 1
        return step

    def previous_step(self, step: int) -> int:
        if step > self.first_step:
            return step - 1
        return self.first_step

    def is_first_step(self, step: int) -> bool:
        return step == self.first_step

    def is_last_step(self, step: int) -> bool:
        return step == self.total_steps - 1

    # ── rendering ───────────────────────────────────────────

    def navigation_options(self, step: int) -> str:
        if step <= self.first_step:
            return f"\n\n{MAIN_MENU_COMMAND} Main Menu"
        return f"\n\n{BACK_COMMAND} Back\n{MAIN_MENU_COMMAND} Main Menu"

    def prompt_for_step(self, step: int, state: UssdState) -> str:
        name = self.step_name(step)
        if name is None:
            return DEFAULT_PROMPT
        return self.step_prompt(name, state)

    @abstractmethod
    def step_prompt(self, name: str, state: UssdState) -> str:
        """Prompt text for a step that is known to exist."""

    def show_step(self, state: UssdState, step: int | None = None) -> HandlerResult:
        step = state.current_step if step is None else step
        body = f"{self.prompt_for_step(step, state)}{self.navigation_options(step)}"
        return HandlerResult(UssdResponse.cont(body), state)

    def show_error(self, state: UssdState, step: int, message: str) -> HandlerResult:
        return HandlerResult(
            UssdResponse.cont(f"{message}{self.navigation_options(step)}"),
            state,
        )

    @staticmethod
    def back_to_main_menu(state: UssdState) -> HandlerResult:
        # Empty CON: the main menu notices the menu switch and renders itself
        return HandlerResult(UssdResponse.cont(""), state)

    @staticmethod
    def end(state: UssdState, message: str) -> HandlerResult:
        return HandlerResult(UssdResponse.end(message), state)

    # ── navigation ──────────────────────────────────────────

    def handle_navigation(self, text: str, state: UssdState, step: int) -> None:
        """Apply ``#`` / ``##`` to ``state``. Anything else is left alone."""
        token = (text or "").strip()

        if token == MAIN_MENU_COMMAND or (token == BACK_COMMAND and self.is_first_step(step)):
            self.clear_menu_data(state)
            state.current_menu = MenuName.MAIN_MENU
            state.current_step = 0
            return

        if token == BACK_COMMAND:
            state.current_step = self.previous_step(step)
            self.clear_step_data(state, step)

    def left_step(self, state: UssdState, step: int) -> bool:
        return state.current_step != step or state.current_menu != self.menu

    def after_navigation(self, state: UssdState) -> HandlerResult:
        if state.current_menu != self.menu:
            return self.back_to_main_menu(state)
        return self.show_step(state)

    def preprocess(
        self,
        request: UssdRequest,
        state: UssdState,
        step: int,
        prompt: str,
    ) -> HandlerResult | None:
        """Common front half of a step.

        Empty input re-renders ``prompt``; a control token re-renders the
        step (or menu) it led to.  ``None`` means the step should parse the
        input itself.
        """
        if is_blank(request.input):
            return HandlerResult(
                UssdResponse.cont(f"{prompt}{self.navigation_options(step)}"),
                state,
            )

        self.handle_navigation(request.input, state, step)
        if self.left_step(state, step):
            return self.after_navigation(state)

        return None

    # ── state data ──────────────────────────────────────────

    def ensure_state(self, state: UssdState) -> UssdState:
        """Coerce ``state`` into this menu's shape (first entry to the menu)."""
        if type(state) is self.state_class:
            return state
        return self.state_class(**state.base_fields())

    def clear_step_data(self, state: UssdState, step: int) -> None:
        """Forget what ``step`` captured (back navigation)."""

    def clear_menu_data(self, state: UssdState) -> None:
        """Forget everything this menu captured (completion / main menu)."""

    # ── flow ────────────────────────────────────────────────

    @abstractmethod
    async def finish(self, state: UssdState) -> HandlerResult:
        """Complete the flow and END the session."""

    async def complete_step(self, step: int, state: UssdState) -> HandlerResult:
        if self.is_last_step(step):
            return await self.finish(state)

        next_step = self.next_step(step)
        state.current_step = next_step

        if self.is_last_step(next_step) and not self.confirm_before_finish:
            return await self.finish(state)

        return self.show_step(state, next_step)

    async def handle(self, request: UssdRequest, state: UssdState) -> HandlerResult:
        # A navigation command already sent us to the main menu
        if state.current_menu == MenuName.MAIN_MENU:
            return self.back_to_main_menu(state)

        try:
            state = self.ensure_state(state)
            routine = self._routines.get(self.step_name(state.current_step) or "")
            if routine is None:
                logger.warning(
                    "No step %s in %s (phone=%s)",
                    state.current_step, self.menu.value, request.phone_number,
                )
                return self.end(state, GENERIC_ERROR)
            return await routine(request, state)
        except Exception:
            logger.exception(
                "Exception in %s handler. phone=%s session_id=%s menu=%s step=%s input=%r",
                self.menu.value,
                request.phone_number,
                request.session_id,
                state.current_menu.value,
                state.current_step,
                request.input,
            )
            return self.end(state, GENERIC_ERROR)
