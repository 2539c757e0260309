# app/api/routes/ussd_handlers/account_balance.py
"""Account balance flow: a single display step that ENDs on first render."""

from __future__ import annotations

import logging

from app.domain.models.transaction import BalanceResult
from app.domain.models.ussd import HandlerResult, MenuName, UssdRequest, UssdState

from .base import SIGN_OFF, VISUAL_DIVIDER, BaseMenuHandler, format_money, is_blank

logger = logging.getLogger("ussd_handlers.account_balance")

BALANCE_DISPLAY = "BALANCE_DISPLAY"

STEPS = (BALANCE_DISPLAY,)

BALANCE_HEADING = "Account Balance:"
BALANCE_LOAD_ERROR = "Error loading account balance.\n\nPlease try again later."


def format_balance(result: BalanceResult) -> str:
    return (
        f"{VISUAL_DIVIDER}\n"
        f"Current Balance: {format_money(result.balance)}\n"
        f"Total Income: {format_money(result.total_income)}\n"
        f"Total Expense: {format_money(result.total_expense)}\n"
        f"Transactions: {result.transaction_count}"
    )


class AccountBalanceHandler(BaseMenuHandler):
    menu = MenuName.ACCOUNT_BALANCE
    steps = STEPS

    def __init__(self, transactions) -> None:
        super().__init__()
        self.transactions = transactions
        self._routines = {BALANCE_DISPLAY: self._handle_balance_display}

    def step_prompt(self, name: str, state: UssdState) -> str:
        if name == BALANCE_DISPLAY:
            return BALANCE_HEADING
        return "Continue:"

    async def _handle_balance_display(self, request: UssdRequest, state: UssdState) -> HandlerResult:
        step = self.step_index(BALANCE_DISPLAY)
        if not is_blank(request.input):
            self.handle_navigation(request.input, state, step)
            if self.left_step(state, step):
                return self.after_navigation(state)
        # Any other input, or none, shows the balance and ENDs
        return await self.complete_step(step, state)

    async def finish(self, state: UssdState) -> HandlerResult:
        try:
            result = await self.transactions.aggregate_balance()
        except Exception:
            logger.exception(
                "Error loading balance. phone=%s session_id=%s",
                state.phone_number,
                state.session_id,
            )
            return self.end(state, BALANCE_LOAD_ERROR)

        state.current_step = 0
        return self.end(state, f"{BALANCE_HEADING}\n{format_balance(result)}\n\n{SIGN_OFF}")
