from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class TransactionType(str, Enum):
    INCOME = "Income"
    EXPENSE = "Expense"


# Closed, ordered vocabulary shared by the USSD category picker and the API.
CATEGORIES: list[str] = [
    "salary",
    "food",
    "rent",
    "utilities",
    "transportation",
    "entertainment",
    "shopping",
    "healthcare",
    "education",
    "other",
]

SORTABLE_FIELDS = ("created_at", "amount", "type", "category")

# Column is Numeric(12, 2): at most 10 whole digits and 2 decimal places
AMOUNT_MAX_DIGITS = 12
AMOUNT_DECIMAL_PLACES = 2


class TransactionFilters(BaseModel):
    type: Optional[TransactionType] = None
    category: Optional[str] = None

    # 1-based page number
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=10, ge=1, le=100)

    sort_by: str = "created_at"
    sort_descending: bool = True  # newest first


class BalanceResult(BaseModel):
    balance: Decimal = Field(default=Decimal("0"))
    total_income: Decimal = Field(default=Decimal("0"))
    total_expense: Decimal = Field(default=Decimal("0"))
    transaction_count: int = 0
