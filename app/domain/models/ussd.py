# app/domain/models/ussd.py
"""
USSD wire models and the polymorphic session state.

``UssdState`` is the base shape stored per phone number.  Menus that need
extra fields subclass it; the concrete class is recorded next to the payload
by the session cache so it can be restored without the caller knowing which
shape to expect.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MenuName(str, Enum):
    MAIN_MENU = "MainMenu"
    ADD_TRANSACTION = "AddTransaction"
    TRANSACTION_HISTORY = "TransactionHistory"
    ACCOUNT_BALANCE = "AccountBalance"


class UssdRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    phone_number: str = Field(default="", alias="phoneNumber")
    input: str = ""
    session_id: Optional[str] = Field(default=None, alias="sessionId")

    def with_input(self, text: str) -> "UssdRequest":
        """Copy of this request carrying different input (used for re-dispatch)."""
        return self.model_copy(update={"input": text})


class UssdResponse(BaseModel):
    message: str = ""
    type: str = "CON"  # CON or END

    @classmethod
    def cont(cls, message: str) -> "UssdResponse":
        return cls(message=message, type="CON")

    @classmethod
    def end(cls, message: str) -> "UssdResponse":
        return cls(message=message, type="END")

    @property
    def is_end(self) -> bool:
        return self.type == "END"


class UssdState(BaseModel):
    phone_number: str = ""
    session_id: Optional[str] = None
    current_menu: MenuName = MenuName.MAIN_MENU
    current_step: int = 0
    created_at: datetime = Field(default_factory=_utcnow)
    last_updated: datetime = Field(default_factory=_utcnow)

    def base_fields(self) -> dict:
        """Fields of the base shape only, for building a differently-extended state."""
        return {name: getattr(self, name) for name in UssdState.model_fields}


class AddTransactionState(UssdState):
    transaction_type: Optional[str] = None
    transaction_category: Optional[str] = None
    transaction_amount: Optional[Decimal] = None
    transaction_description: Optional[str] = None
    category_page: int = 0  # 0-based


class TransactionHistoryState(UssdState):
    transaction_page: int = 0  # 0-based
    selected_transaction_id: Optional[str] = None
    # display number -> transaction id, valid only for the page it was built from
    displayed_transactions: dict[int, str] = Field(default_factory=dict)


@dataclass
class HandlerResult:
    """What every handler returns: the response plus the state to carry forward."""

    response: UssdResponse
    state: UssdState
