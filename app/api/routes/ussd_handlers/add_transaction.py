# app/api/routes/ussd_handlers/add_transaction.py
"""Add-transaction flow.

Steps:
    TRANSACTION_TYPE -> CATEGORY -> AMOUNT -> DESCRIPTION -> CONFIRMATION

The category step pages through the fixed category list (``*`` / ``**``);
numbers are continuous across pages, so "7" always means the seventh
category whichever page it was picked from.
"""

from __future__ import annotations

import logging
import math
from decimal import Decimal, InvalidOperation

from app.domain.models.transaction import (
    AMOUNT_DECIMAL_PLACES,
    AMOUNT_MAX_DIGITS,
    CATEGORIES,
    TransactionType,
)
from app.domain.models.ussd import (
    AddTransactionState,
    HandlerResult,
    MenuName,
    UssdRequest,
    UssdState,
)

from .base import (
    BACK_COMMAND,
    NEXT_PAGE_COMMAND,
    PREVIOUS_PAGE_COMMAND,
    SIGN_OFF,
    VISUAL_DIVIDER,
    BaseMenuHandler,
    format_money,
    is_blank,
)

logger = logging.getLogger("ussd_handlers.add_transaction")

# Step names, in order. Reordering this tuple renumbers the steps.
TRANSACTION_TYPE = "TRANSACTION_TYPE"
CATEGORY = "CATEGORY"
AMOUNT = "AMOUNT"
DESCRIPTION = "DESCRIPTION"
CONFIRMATION = "CONFIRMATION"

STEPS = (TRANSACTION_TYPE, CATEGORY, AMOUNT, DESCRIPTION, CONFIRMATION)

CATEGORIES_PER_PAGE = 5

TYPE_OPTIONS = {
    "1": TransactionType.INCOME.value,
    "2": TransactionType.EXPENSE.value,
}

INVALID_TRANSACTION_TYPE = "Invalid option. Please enter 1 for Income or 2 for Expense:"
INVALID_AMOUNT = "Invalid amount. Please enter a positive number:"
EMPTY_DESCRIPTION = "Description cannot be empty. Please enter a description:"
CREATION_FAILED = "Error creating transaction.\n\nPlease try again later."
ALREADY_ON_LAST_PAGE = "Already on last page."
ALREADY_ON_FIRST_PAGE = "Already on first page."


def total_category_pages() -> int:
    return math.ceil(len(CATEGORIES) / CATEGORIES_PER_PAGE)


def category_list(page: int = 0) -> str:
    """Numbered categories for ``page`` plus the page indicators."""
    start = page * CATEGORIES_PER_PAGE
    end = min(start + CATEGORIES_PER_PAGE, len(CATEGORIES))
    lines = [f"{i + 1}. {CATEGORIES[i]}" for i in range(start, end)]

    pages = total_category_pages()
    if pages > 1:
        if page < pages - 1:
            lines.append(f"{NEXT_PAGE_COMMAND} Next page")
        if page > 0:
            lines.append(f"{PREVIOUS_PAGE_COMMAND} Previous page")
    return "\n".join(lines)


def parse_category(text: str) -> str | None:
    try:
        index = int(text.strip())
    except ValueError:
        return None
    if index < 1 or index > len(CATEGORIES):
        return None
    return CATEGORIES[index - 1]


def parse_amount(text: str) -> Decimal | None:
    try:
        amount = Decimal(text.strip())
    except InvalidOperation:
        return None
    if not amount.is_finite() or amount <= 0:
        return None
    # Must fit the record column exactly, nothing rounded on insert
    if amount.normalize().as_tuple().exponent < -AMOUNT_DECIMAL_PLACES:
        return None
    if amount >= Decimal(10) ** (AMOUNT_MAX_DIGITS - AMOUNT_DECIMAL_PLACES):
        return None
    return amount


def format_transaction(type_: str, category: str, amount, description: str) -> str:
    return (
        f"{VISUAL_DIVIDER}\n"
        f"Type: {type_}\n"
        f"Category: {category}\n"
        f"Amount: {format_money(amount)}\n"
        f"Description: {description}"
    )


class AddTransactionHandler(BaseMenuHandler):
    menu = MenuName.ADD_TRANSACTION
    steps = STEPS
    state_class = AddTransactionState
    confirm_before_finish = True

    def __init__(self, transactions) -> None:
        super().__init__()
        self.transactions = transactions
        self._routines = {
            TRANSACTION_TYPE: self._handle_transaction_type,
            CATEGORY: self._handle_category,
            AMOUNT: self._handle_amount,
            DESCRIPTION: self._handle_description,
            CONFIRMATION: self._handle_confirmation,
        }

    # ── prompts ─────────────────────────────────────────────

    def step_prompt(self, name: str, state: UssdState) -> str:
        if name == TRANSACTION_TYPE:
            return "Select transaction type:\n1. Income\n2. Expense"
        if name == CATEGORY:
            page = getattr(state, "category_page", 0)
            return f"Enter category:\n{category_list(page)}"
        if name == AMOUNT:
            return "Enter amount:"
        if name == DESCRIPTION:
            return "Enter description:"
        if name == CONFIRMATION:
            return self._confirmation_prompt(state)
        return "Continue:"

    def _confirmation_prompt(self, state: UssdState) -> str:
        summary = format_transaction(
            getattr(state, "transaction_type", None),
            getattr(state, "transaction_category", None),
            getattr(state, "transaction_amount", None),
            getattr(state, "transaction_description", None),
        )
        return f"Confirm transaction:\n{summary}\n\nReply with any key to save."

    def navigation_options(self, step: int) -> str:
        # The category picker uses * and **, so only offer Back there
        if self.step_name(step) == CATEGORY:
            return f"\n\n{BACK_COMMAND} Back"
        return super().navigation_options(step)

    # ── steps ───────────────────────────────────────────────

    async def _handle_transaction_type(self, request: UssdRequest, state: AddTransactionState) -> HandlerResult:
        step = self.step_index(TRANSACTION_TYPE)
        early = self.preprocess(request, state, step, self.step_prompt(TRANSACTION_TYPE, state))
        if early is not None:
            return early

        choice = TYPE_OPTIONS.get(request.input.strip())
        if choice is None:
            return self.show_error(state, step, INVALID_TRANSACTION_TYPE)

        state.transaction_type = choice
        return await self.complete_step(step, state)

    async def _handle_category(self, request: UssdRequest, state: AddTransactionState) -> HandlerResult:
        step = self.step_index(CATEGORY)

        if is_blank(request.input):
            return self.show_step(state, step)

        text = request.input.strip()

        self.handle_navigation(text, state, step)
        if self.left_step(state, step):
            state.category_page = 0
            return self.after_navigation(state)

        if text == NEXT_PAGE_COMMAND:
            if state.category_page < total_category_pages() - 1:
                state.category_page += 1
                return self.show_step(state, step)
            return self._category_notice(state, step, ALREADY_ON_LAST_PAGE)

        if text == PREVIOUS_PAGE_COMMAND:
            if state.category_page > 0:
                state.category_page -= 1
                return self.show_step(state, step)
            return self._category_notice(state, step, ALREADY_ON_FIRST_PAGE)

        category = parse_category(text)
        if category is None:
            return self._category_notice(
                state,
                step,
                f"Invalid option. Please enter a number between 1 and {len(CATEGORIES)}:",
                with_heading=False,
            )

        state.transaction_category = category
        state.category_page = 0
        return await self.complete_step(step, state)

    def _category_notice(
        self,
        state: AddTransactionState,
        step: int,
        notice: str,
        *,
        with_heading: bool = True,
    ) -> HandlerResult:
        body = self.step_prompt(CATEGORY, state) if with_heading else category_list(state.category_page)
        sep = "\n\n" if with_heading else "\n"
        return self.show_error(state, step, f"{notice}{sep}{body}")

    async def _handle_amount(self, request: UssdRequest, state: AddTransactionState) -> HandlerResult:
        step = self.step_index(AMOUNT)
        early = self.preprocess(request, state, step, self.step_prompt(AMOUNT, state))
        if early is not None:
            return early

        amount = parse_amount(request.input)
        if amount is None:
            return self.show_error(state, step, INVALID_AMOUNT)

        state.transaction_amount = amount
        return await self.complete_step(step, state)

    async def _handle_description(self, request: UssdRequest, state: AddTransactionState) -> HandlerResult:
        step = self.step_index(DESCRIPTION)
        early = self.preprocess(request, state, step, self.step_prompt(DESCRIPTION, state))
        if early is not None:
            return early

        description = request.input.strip()
        if not description:
            return self.show_error(state, step, EMPTY_DESCRIPTION)

        state.transaction_description = description
        return await self.complete_step(step, state)

    async def _handle_confirmation(self, request: UssdRequest, state: AddTransactionState) -> HandlerResult:
        step = self.step_index(CONFIRMATION)

        # Empty input confirms too; only control tokens are intercepted
        if not is_blank(request.input):
            self.handle_navigation(request.input, state, step)
            if self.left_step(state, step):
                return self.after_navigation(state)

        return await self.complete_step(step, state)

    # ── completion ──────────────────────────────────────────

    async def finish(self, state: AddTransactionState) -> HandlerResult:
        try:
            record = await self.transactions.create(
                state.transaction_type,
                state.transaction_category,
                state.transaction_amount,
                state.transaction_description or "",
            )
        except Exception:
            logger.exception(
                "Error creating transaction. phone=%s session_id=%s type=%s category=%s amount=%s description=%r",
                state.phone_number,
                state.session_id,
                state.transaction_type,
                state.transaction_category,
                state.transaction_amount,
                state.transaction_description,
            )
            return self.end(state, CREATION_FAILED)

        self.clear_menu_data(state)
        state.current_step = 0

        summary = format_transaction(record.type, record.category, record.amount, record.description)
        return self.end(state, f"Transaction created successfully!\n\n{summary}\n\n{SIGN_OFF}")

    # ── state data ──────────────────────────────────────────

    def clear_step_data(self, state: UssdState, step: int) -> None:
        if not isinstance(state, AddTransactionState):
            return
        name = self.step_name(step)
        if name == TRANSACTION_TYPE:
            state.transaction_type = None
        elif name == CATEGORY:
            state.transaction_category = None
            state.category_page = 0
        elif name == AMOUNT:
            state.transaction_amount = None
        elif name == DESCRIPTION:
            state.transaction_description = None
        # CONFIRMATION captures nothing

    def clear_menu_data(self, state: UssdState) -> None:
        if not isinstance(state, AddTransactionState):
            return
        state.transaction_type = None
        state.transaction_category = None
        state.transaction_amount = None
        state.transaction_description = None
        state.category_page = 0
