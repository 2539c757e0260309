# tests/test_navigation.py
"""Tests for the shared step machinery in ussd_handlers/base.py."""

from decimal import Decimal

import pytest

from app.api.routes.ussd_handlers.base import (
    GENERIC_ERROR,
    BaseMenuHandler,
    format_money,
    is_blank,
)
from app.domain.models.ussd import (
    HandlerResult,
    MenuName,
    UssdRequest,
    UssdResponse,
    UssdState,
)


class ThreeStepHandler(BaseMenuHandler):
    """Minimal handler: FIRST -> SECOND -> DONE (terminal)."""

    menu = MenuName.ADD_TRANSACTION
    steps = ("FIRST", "SECOND", "DONE")

    def __init__(self, confirm=False, explode=False):
        super().__init__()
        self.confirm_before_finish = confirm
        self.explode = explode
        self.finished = 0
        self.cleared_steps = []
        self.menu_cleared = 0
        self._routines = {
            "FIRST": self._step,
            "SECOND": self._step,
            "DONE": self._step,
        }

    def step_prompt(self, name, state):
        return f"Prompt {name}"

    async def _step(self, request, state):
        if self.explode:
            raise RuntimeError("boom")
        step = state.current_step
        early = self.preprocess(request, state, step, self.prompt_for_step(step, state))
        if early is not None:
            return early
        return await self.complete_step(step, state)

    async def finish(self, state):
        self.finished += 1
        return self.end(state, "done")

    def clear_step_data(self, state, step):
        self.cleared_steps.append(step)

    def clear_menu_data(self, state):
        self.menu_cleared += 1


def _state(step=0, menu=MenuName.ADD_TRANSACTION):
    return UssdState(phone_number="+254700000001", session_id="s1", current_menu=menu, current_step=step)


def _request(text=""):
    return UssdRequest(phone_number="+254700000001", input=text, session_id="s1")


# ---------------------------------------------------------------------------
# Step arithmetic
# ---------------------------------------------------------------------------

def test_next_step_clamps_at_last():
    h = ThreeStepHandler()
    assert h.next_step(0) == 1
    assert h.next_step(1) == 2
    assert h.next_step(2) == 2


def test_previous_step_clamps_at_first():
    h = ThreeStepHandler()
    assert h.previous_step(2) == 1
    assert h.previous_step(0) == 0


def test_first_and_last_step():
    h = ThreeStepHandler()
    assert h.is_first_step(0)
    assert not h.is_first_step(1)
    assert h.is_last_step(2)
    assert not h.is_last_step(1)
    assert h.total_steps == 3


def test_navigation_options_by_step():
    h = ThreeStepHandler()
    assert h.navigation_options(0) == "\n\n## Main Menu"
    assert h.navigation_options(1) == "\n\n# Back\n## Main Menu"


def test_prompt_for_unknown_step_is_default():
    h = ThreeStepHandler()
    assert h.prompt_for_step(7, _state()) == "Continue:"
    assert h.prompt_for_step(-1, _state()) == "Continue:"
    assert h.prompt_for_step(1, _state()) == "Prompt SECOND"


def test_format_helpers():
    assert format_money(12.5) == "$12.50"
    assert format_money(None) == "$0.00"
    assert format_money(Decimal("12345678901234567.89")) == "$12345678901234567.89"
    assert format_money(Decimal("15.5")) == "$15.50"
    assert is_blank("   ")
    assert is_blank(None)
    assert not is_blank(" 1 ")


# ---------------------------------------------------------------------------
# Control tokens
# ---------------------------------------------------------------------------

def test_home_token_goes_to_main_menu_from_any_step():
    h = ThreeStepHandler()
    state = _state(step=1)
    h.handle_navigation("##", state, 1)
    assert state.current_menu == MenuName.MAIN_MENU
    assert state.current_step == 0
    assert h.menu_cleared == 1


def test_back_on_first_step_goes_to_main_menu():
    h = ThreeStepHandler()
    state = _state(step=0)
    h.handle_navigation("#", state, 0)
    assert state.current_menu == MenuName.MAIN_MENU
    assert state.current_step == 0


def test_back_elsewhere_steps_back_and_clears_step_left():
    h = ThreeStepHandler()
    state = _state(step=2)
    h.handle_navigation("#", state, 2)
    assert state.current_menu == MenuName.ADD_TRANSACTION
    assert state.current_step == 1
    assert h.cleared_steps == [2]


def test_other_input_leaves_state_alone():
    h = ThreeStepHandler()
    state = _state(step=1)
    h.handle_navigation("5", state, 1)
    assert state.current_step == 1
    assert state.current_menu == MenuName.ADD_TRANSACTION
    assert h.cleared_steps == []


# ---------------------------------------------------------------------------
# Flow
# ---------------------------------------------------------------------------

def test_empty_input_rerenders_prompt(event_loop):
    h = ThreeStepHandler()
    result = event_loop.run_until_complete(h.handle(_request(""), _state(step=1)))
    assert result.response.type == "CON"
    assert result.response.message == "Prompt SECOND\n\n# Back\n## Main Menu"


def test_reaching_terminal_step_finishes_immediately(event_loop):
    h = ThreeStepHandler()
    result = event_loop.run_until_complete(h.handle(_request("ok"), _state(step=1)))
    assert result.response.is_end
    assert h.finished == 1


def test_confirm_before_finish_shows_terminal_step(event_loop):
    h = ThreeStepHandler(confirm=True)
    result = event_loop.run_until_complete(h.handle(_request("ok"), _state(step=1)))
    assert result.response.type == "CON"
    assert result.response.message.startswith("Prompt DONE")
    assert result.state.current_step == 2
    assert h.finished == 0


def test_back_renders_previous_step(event_loop):
    h = ThreeStepHandler()
    result = event_loop.run_until_complete(h.handle(_request("#"), _state(step=1)))
    assert result.response.message == "Prompt FIRST\n\n## Main Menu"
    assert result.state.current_step == 0


def test_home_returns_empty_con_for_main_menu(event_loop):
    h = ThreeStepHandler()
    result = event_loop.run_until_complete(h.handle(_request("##"), _state(step=1)))
    assert result.response == UssdResponse.cont("")
    assert result.state.current_menu == MenuName.MAIN_MENU


def test_unknown_step_ends_with_generic_error(event_loop):
    h = ThreeStepHandler()
    result = event_loop.run_until_complete(h.handle(_request("1"), _state(step=9)))
    assert result.response.is_end
    assert result.response.message == GENERIC_ERROR


def test_step_exception_ends_with_generic_error(event_loop):
    h = ThreeStepHandler(explode=True)
    result = event_loop.run_until_complete(h.handle(_request("1"), _state(step=0)))
    assert isinstance(result, HandlerResult)
    assert result.response.is_end
    assert result.response.message == (
        "An error occurred. Please dial again to restart.\n\nThank you for using Expenses App!"
    )


def test_handle_on_main_menu_state_is_noop(event_loop):
    h = ThreeStepHandler()
    result = event_loop.run_until_complete(h.handle(_request("1"), _state(menu=MenuName.MAIN_MENU)))
    assert result.response.message == ""
    assert not result.response.is_end
