# app/api/routes/ussd_handlers/__init__.py
"""
USSD menu handlers.

Each menu is a :class:`~.base.BaseMenuHandler` subclass that owns an ordered
list of steps.  ``HANDLER_REGISTRY`` maps a menu identifier to its handler
class; :func:`build_main_menu` instantiates every handler once against a
transaction store and wires them under the top-level router.

Handler contract::

    async def handle(request: UssdRequest, state: UssdState) -> HandlerResult

The returned ``HandlerResult.state`` is what gets persisted when the
response is CON.
"""

from __future__ import annotations

from app.domain.models.ussd import MenuName

from .account_balance import AccountBalanceHandler
from .add_transaction import AddTransactionHandler
from .base import BaseMenuHandler
from .main_menu import MainMenuHandler
from .service import InvalidUssdRequest, process_ussd_request
from .transaction_history import TransactionHistoryHandler

HANDLER_REGISTRY: dict[MenuName, type[BaseMenuHandler]] = {
    MenuName.ADD_TRANSACTION: AddTransactionHandler,
    MenuName.TRANSACTION_HISTORY: TransactionHistoryHandler,
    MenuName.ACCOUNT_BALANCE: AccountBalanceHandler,
}


def build_main_menu(transactions) -> MainMenuHandler:
    """Top-level router with one handler per menu, all sharing ``transactions``."""
    handlers = {menu: cls(transactions) for menu, cls in HANDLER_REGISTRY.items()}
    return MainMenuHandler(handlers)


__all__ = [
    "HANDLER_REGISTRY",
    "build_main_menu",
    "BaseMenuHandler",
    "MainMenuHandler",
    "AddTransactionHandler",
    "TransactionHistoryHandler",
    "AccountBalanceHandler",
    "InvalidUssdRequest",
    "process_ussd_request",
]
