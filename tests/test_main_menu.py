# tests/test_main_menu.py
"""Tests for the top-level router (ussd_handlers/main_menu.py)."""

from unittest.mock import AsyncMock, MagicMock

from app.api.routes.ussd_handlers import HANDLER_REGISTRY, build_main_menu
from app.api.routes.ussd_handlers.main_menu import (
    INVALID_MAIN_MENU_OPTION,
    MAIN_MENU_TEXT,
    MainMenuHandler,
)
from app.domain.models.ussd import (
    AddTransactionState,
    MenuName,
    TransactionHistoryState,
    UssdRequest,
    UssdState,
)

PHONE = "+254700000004"


def _request(text=""):
    return UssdRequest(phone_number=PHONE, input=text, session_id="s4")


def _state(menu=MenuName.MAIN_MENU, step=0):
    return UssdState(phone_number=PHONE, session_id="s4", current_menu=menu, current_step=step)


def test_registry_covers_every_sub_menu():
    assert set(HANDLER_REGISTRY) == {
        MenuName.ADD_TRANSACTION,
        MenuName.TRANSACTION_HISTORY,
        MenuName.ACCOUNT_BALANCE,
    }


def test_main_menu_text():
    assert MAIN_MENU_TEXT == (
        "Welcome to Expenses App\n\n"
        "1. Add transaction\n2. Transaction history\n3. Account balance\n\n"
        "Select an option:"
    )


def test_empty_input_shows_main_menu(event_loop, store):
    menu = build_main_menu(store)
    result = event_loop.run_until_complete(menu.handle(_request(""), _state()))
    assert result.response.type == "CON"
    assert result.response.message == MAIN_MENU_TEXT


def test_invalid_choice(event_loop, store):
    menu = build_main_menu(store)
    result = event_loop.run_until_complete(menu.handle(_request("9"), _state()))
    assert result.response.type == "CON"
    assert result.response.message == INVALID_MAIN_MENU_OPTION
    assert result.state.current_menu == MenuName.MAIN_MENU


def test_choice_enters_sub_menu_with_empty_input(event_loop, store):
    menu = build_main_menu(store)
    result = event_loop.run_until_complete(menu.handle(_request("1"), _state()))
    assert isinstance(result.state, AddTransactionState)
    assert result.state.current_menu == MenuName.ADD_TRANSACTION
    assert result.response.message.startswith("Select transaction type:")


def test_balance_choice_ends_in_one_round_trip(event_loop, store):
    menu = build_main_menu(store)
    result = event_loop.run_until_complete(menu.handle(_request("3"), _state()))
    assert result.response.is_end
    assert result.response.message.startswith("Account Balance:")


def test_home_from_sub_menu_renders_main_menu_and_drops_extension(event_loop, store):
    menu = build_main_menu(store)
    state = TransactionHistoryState(
        phone_number=PHONE,
        current_menu=MenuName.TRANSACTION_HISTORY,
        transaction_page=2,
    )

    result = event_loop.run_until_complete(menu.handle(_request("##"), state))

    assert result.response.type == "CON"
    assert result.response.message == MAIN_MENU_TEXT
    assert type(result.state) is UssdState
    assert result.state.current_menu == MenuName.MAIN_MENU


def test_caller_state_is_not_mutated(event_loop, store):
    menu = build_main_menu(store)
    state = _state()
    event_loop.run_until_complete(menu.handle(_request("1"), state))
    assert state.current_menu == MenuName.MAIN_MENU
    assert type(state) is UssdState


def test_missing_handler_resets_to_main_menu(event_loop):
    menu = MainMenuHandler({})
    result = event_loop.run_until_complete(menu.handle(_request("2"), _state()))
    assert result.state.current_menu == MenuName.MAIN_MENU
    assert result.response.message == ""


def test_router_fault_becomes_generic_end(event_loop):
    broken = MagicMock()
    broken.handle = AsyncMock(side_effect=RuntimeError("boom"))
    menu = MainMenuHandler({MenuName.ADD_TRANSACTION: broken})

    result = event_loop.run_until_complete(menu.handle(_request("1"), _state()))

    assert result.response.is_end
    assert result.response.message == (
        "An error occurred. Please dial again to restart.\n\nThank you for using Expenses App!"
    )
