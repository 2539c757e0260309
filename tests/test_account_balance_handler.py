# tests/test_account_balance_handler.py
"""Tests for the account balance menu."""

from unittest.mock import AsyncMock

from app.api.routes.ussd_handlers.account_balance import AccountBalanceHandler
from app.domain.models.ussd import MenuName, UssdRequest, UssdState

PHONE = "+254700000003"


def _state():
    return UssdState(phone_number=PHONE, session_id="s3", current_menu=MenuName.ACCOUNT_BALANCE)


def _request(text=""):
    return UssdRequest(phone_number=PHONE, input=text, session_id="s3")


def test_balance_is_shown_and_session_ends(event_loop, store):
    store.add(type="Income", category="salary", amount="1000.00")
    store.add(type="Expense", category="rent", amount="400.00")
    store.add(type="Expense", category="food", amount="25.50")
    handler = AccountBalanceHandler(store)

    result = event_loop.run_until_complete(handler.handle(_request(""), _state()))

    assert result.response.is_end
    assert result.response.message == (
        "Account Balance:\n"
        "─────────────────────\n"
        "Current Balance: $574.50\n"
        "Total Income: $1000.00\n"
        "Total Expense: $425.50\n"
        "Transactions: 3\n"
        "\n"
        "Thank you for using Expenses App!"
    )


def test_empty_store_shows_zero_balance(event_loop, store):
    handler = AccountBalanceHandler(store)
    result = event_loop.run_until_complete(handler.handle(_request(""), _state()))
    assert "Current Balance: $0.00" in result.response.message
    assert "Transactions: 0" in result.response.message


def test_home_token_leaves_without_loading(event_loop):
    transactions = AsyncMock()
    handler = AccountBalanceHandler(transactions)

    result = event_loop.run_until_complete(handler.handle(_request("##"), _state()))

    assert result.state.current_menu == MenuName.MAIN_MENU
    assert not result.response.is_end
    transactions.aggregate_balance.assert_not_awaited()


def test_aggregation_failure_ends_with_message(event_loop):
    transactions = AsyncMock()
    transactions.aggregate_balance.side_effect = RuntimeError("db down")
    handler = AccountBalanceHandler(transactions)

    result = event_loop.run_until_complete(handler.handle(_request(""), _state()))

    assert result.response.is_end
    assert result.response.message == "Error loading account balance.\n\nPlease try again later."
