# app/api/v1/schemas/transactions.py
"""Request and response schemas for transaction endpoints."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.domain.models.transaction import (
    AMOUNT_DECIMAL_PLACES,
    AMOUNT_MAX_DIGITS,
    CATEGORIES,
    TransactionType,
)


def _check_category(value: str) -> str:
    name = value.strip().lower()
    if name not in CATEGORIES:
        raise ValueError(f"category must be one of: {', '.join(CATEGORIES)}")
    return name


class TransactionCreate(BaseModel):
    """Record a new income or expense."""

    type: TransactionType
    category: str = Field(min_length=1, max_length=50)
    amount: Decimal = Field(gt=0, max_digits=AMOUNT_MAX_DIGITS, decimal_places=AMOUNT_DECIMAL_PLACES)
    description: str = Field(default="", max_length=500)

    @field_validator("category")
    @classmethod
    def category_in_vocabulary(cls, v: str) -> str:
        return _check_category(v)


class TransactionUpdate(BaseModel):
    """Editable fields; the amount of a recorded transaction is fixed."""

    type: TransactionType
    category: str = Field(min_length=1, max_length=50)
    description: str = Field(default="", max_length=500)

    @field_validator("category")
    @classmethod
    def category_in_vocabulary(cls, v: str) -> str:
        return _check_category(v)


class TransactionDetail(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    type: str
    category: str
    amount: Decimal
    description: str
    created_at: datetime | None
    updated_at: datetime | None
