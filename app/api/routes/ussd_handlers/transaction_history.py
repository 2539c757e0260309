# app/api/routes/ussd_handlers/transaction_history.py
"""Transaction history flow.

Steps:
    TRANSACTION_LIST    paged list, newest first; ``*`` / ``**`` change page,
                         a row number opens that transaction
    TRANSACTION_DETAIL  terminal, shows the selected transaction and ENDs

Row numbers run on from the page offset (page 2 starts at 6).  The
row-number → id map shown to the user is kept in the session and rebuilt
every time a page is rendered.
"""

from __future__ import annotations

import logging
import math

from app.domain.models.transaction import TransactionFilters
from app.domain.models.ussd import (
    HandlerResult,
    MenuName,
    TransactionHistoryState,
    UssdRequest,
    UssdResponse,
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

logger = logging.getLogger("ussd_handlers.transaction_history")

TRANSACTION_LIST = "TRANSACTION_LIST"
TRANSACTION_DETAIL = "TRANSACTION_DETAIL"

STEPS = (TRANSACTION_LIST, TRANSACTION_DETAIL)

TRANSACTIONS_PER_PAGE = 5

LIST_HEADING = "Transaction History:"
DETAIL_HEADING = "Transaction Details:"

TRANSACTION_NOT_FOUND = "Transaction not found."
ALREADY_ON_LAST_PAGE = "Already on last page."
ALREADY_ON_FIRST_PAGE = "Already on first page."
INVALID_OPTION = "Invalid option."
NO_TRANSACTIONS_FOUND = "No transactions found."


def total_pages(total_count: int) -> int:
    return math.ceil(total_count / TRANSACTIONS_PER_PAGE)


def format_date(value) -> str:
    if value is None:
        return "-"
    # e.g. "Jan 05, 2025 3:07 PM"
    hour = value.hour % 12 or 12
    return f"{value:%b %d, %Y} {hour}:{value:%M %p}"


def format_detail(record) -> str:
    return (
        f"{VISUAL_DIVIDER}\n"
        f"Type: {record.type}\n"
        f"Category: {record.category}\n"
        f"Amount: {format_money(record.amount)}\n"
        f"Description: {record.description}\n"
        f"Date: {format_date(record.created_at)}"
    )


class TransactionHistoryHandler(BaseMenuHandler):
    menu = MenuName.TRANSACTION_HISTORY
    steps = STEPS
    state_class = TransactionHistoryState

    def __init__(self, transactions) -> None:
        super().__init__()
        self.transactions = transactions
        self._routines = {
            TRANSACTION_LIST: self._handle_list,
            TRANSACTION_DETAIL: self._handle_detail,
        }

    def step_prompt(self, name: str, state: UssdState) -> str:
        if name == TRANSACTION_LIST:
            return LIST_HEADING
        if name == TRANSACTION_DETAIL:
            return DETAIL_HEADING
        return "Continue:"

    def navigation_options(self, step: int) -> str:
        # The list renders its own "# Back" under the page indicators
        if self.step_name(step) == TRANSACTION_LIST:
            return ""
        return super().navigation_options(step)

    # ── data ────────────────────────────────────────────────

    async def _load_page(self, state: TransactionHistoryState):
        filters = TransactionFilters(
            page=state.transaction_page + 1,
            page_size=TRANSACTIONS_PER_PAGE,
            sort_by="created_at",
            sort_descending=True,
        )
        return await self.transactions.list_page(filters)

    async def _load_selected(self, state: TransactionHistoryState):
        if is_blank(state.selected_transaction_id):
            return None
        return await self.transactions.get_by_id(state.selected_transaction_id)

    @staticmethod
    def _cache_rows(state: TransactionHistoryState, records) -> None:
        start = state.transaction_page * TRANSACTIONS_PER_PAGE
        state.displayed_transactions = {
            start + i + 1: str(record.id) for i, record in enumerate(records)
        }

    # ── rendering ───────────────────────────────────────────

    def _format_list(self, state: TransactionHistoryState, records, total_count: int) -> str:
        if not records:
            return f"{NO_TRANSACTIONS_FOUND}\n\n{BACK_COMMAND} Back"

        start = state.transaction_page * TRANSACTIONS_PER_PAGE
        rows = [
            f"{start + i + 1}. {record.type}: {format_money(record.amount)}"
            for i, record in enumerate(records)
        ]

        indicators = []
        pages = total_pages(total_count)
        if pages > 1:
            if state.transaction_page < pages - 1:
                indicators.append(f"{NEXT_PAGE_COMMAND} Next page")
            if state.transaction_page > 0:
                indicators.append(f"{PREVIOUS_PAGE_COMMAND} Previous page")
        indicators.append(f"{BACK_COMMAND} Back")

        return "\n".join(rows) + "\n\n" + "\n".join(indicators)

    def _render_list(
        self,
        state: TransactionHistoryState,
        records,
        total_count: int,
        notice: str | None = None,
    ) -> HandlerResult:
        self._cache_rows(state, records)
        body = f"{LIST_HEADING}\n{self._format_list(state, records, total_count)}"
        if notice:
            body = f"{notice}\n\n{body}"
        return HandlerResult(UssdResponse.cont(body), state)

    async def _show_list(self, state: TransactionHistoryState, notice: str | None = None) -> HandlerResult:
        records, total_count = await self._load_page(state)
        # Rows may have been deleted since the page number was stored
        if not records and state.transaction_page > 0:
            state.transaction_page = max(total_pages(total_count) - 1, 0)
            records, total_count = await self._load_page(state)
        return self._render_list(state, records, total_count, notice)

    # ── steps ───────────────────────────────────────────────

    async def _handle_list(self, request: UssdRequest, state: TransactionHistoryState) -> HandlerResult:
        step = self.step_index(TRANSACTION_LIST)

        if is_blank(request.input):
            return await self._show_list(state)

        text = request.input.strip()

        self.handle_navigation(text, state, step)
        if self.left_step(state, step):
            state.transaction_page = 0
            return self.after_navigation(state)

        if text == NEXT_PAGE_COMMAND:
            records, total_count = await self._load_page(state)
            if state.transaction_page < total_pages(total_count) - 1:
                state.transaction_page += 1
                return await self._show_list(state)
            return self._render_list(state, records, total_count, ALREADY_ON_LAST_PAGE)

        if text == PREVIOUS_PAGE_COMMAND:
            if state.transaction_page > 0:
                state.transaction_page -= 1
                return await self._show_list(state)
            return await self._show_list(state, ALREADY_ON_FIRST_PAGE)

        selected_id = self._parse_selection(text, state)
        if selected_id is None:
            valid = sorted(state.displayed_transactions)
            if valid:
                notice = f"{INVALID_OPTION} Valid selections: {', '.join(str(n) for n in valid)}"
            else:
                notice = INVALID_OPTION
            return await self._show_list(state, notice)

        state.selected_transaction_id = selected_id
        return await self.complete_step(step, state)

    @staticmethod
    def _parse_selection(text: str, state: TransactionHistoryState) -> str | None:
        try:
            number = int(text)
        except ValueError:
            return None
        return state.displayed_transactions.get(number)

    async def _handle_detail(self, request: UssdRequest, state: TransactionHistoryState) -> HandlerResult:
        step = self.step_index(TRANSACTION_DETAIL)
        if not is_blank(request.input):
            self.handle_navigation(request.input, state, step)
            if self.left_step(state, step):
                return await self._after_detail_navigation(state)
        return await self.finish(state)

    async def _after_detail_navigation(self, state: TransactionHistoryState) -> HandlerResult:
        if state.current_menu != self.menu:
            return self.back_to_main_menu(state)
        return await self._show_list(state)

    # ── completion ──────────────────────────────────────────

    async def finish(self, state: TransactionHistoryState) -> HandlerResult:
        record = await self._load_selected(state)
        if record is None:
            # Deleted since it was listed: back to the list, not an error
            logger.info(
                "Selected transaction %s no longer exists (phone=%s)",
                state.selected_transaction_id,
                state.phone_number,
            )
            state.selected_transaction_id = None
            state.current_step = self.step_index(TRANSACTION_LIST)
            return await self._show_list(state, TRANSACTION_NOT_FOUND)

        self.clear_menu_data(state)
        state.current_step = 0

        return self.end(state, f"{DETAIL_HEADING}\n{format_detail(record)}\n\n{SIGN_OFF}")

    # ── state data ──────────────────────────────────────────

    def clear_step_data(self, state: UssdState, step: int) -> None:
        if not isinstance(state, TransactionHistoryState):
            return
        name = self.step_name(step)
        if name == TRANSACTION_LIST:
            state.transaction_page = 0
            state.displayed_transactions = {}
        elif name == TRANSACTION_DETAIL:
            state.selected_transaction_id = None

    def clear_menu_data(self, state: UssdState) -> None:
        if not isinstance(state, TransactionHistoryState):
            return
        state.transaction_page = 0
        state.selected_transaction_id = None
        state.displayed_transactions = {}
