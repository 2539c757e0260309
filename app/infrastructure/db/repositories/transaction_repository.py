# app/infrastructure/db/repositories/transaction_repository.py

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.models.transaction import (
    SORTABLE_FIELDS,
    BalanceResult,
    TransactionFilters,
    TransactionType,
)
from app.infrastructure.db.models import Transaction


class TransactionRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ---------- small helpers ----------

    @staticmethod
    def _to_decimal(value, default: str = "0.00") -> Decimal:
        """
        Safely convert incoming float/str/Decimal/None to Decimal.
        """
        if value is None:
            return Decimal(default)

        if isinstance(value, Decimal):
            return value

        try:
            return Decimal(str(value))
        except (InvalidOperation, TypeError, ValueError):
            return Decimal(default)

    @staticmethod
    def _apply_filters(stmt, filters: TransactionFilters | None):
        if filters is None:
            return stmt
        if filters.type:
            stmt = stmt.where(Transaction.type == TransactionType(filters.type).value)
        if filters.category:
            stmt = stmt.where(Transaction.category == filters.category)
        return stmt

    @staticmethod
    def _sort_column(sort_by: str | None):
        name = (sort_by or "created_at").strip().lower()
        if name not in SORTABLE_FIELDS:
            name = "created_at"
        return getattr(Transaction, name)

    # ---------- main methods ----------

    async def create(
        self,
        type: str,
        category: str,
        amount,
        description: str | None = None,
    ) -> Transaction:
        now = datetime.now(timezone.utc)
        record = Transaction(
            type=TransactionType(type).value,
            category=category,
            amount=self._to_decimal(amount),
            description=description or "",
            created_at=now,
            updated_at=now,
        )
        self.db.add(record)
        await self.db.commit()
        await self.db.refresh(record)
        return record

    async def get_by_id(self, transaction_id: str) -> Transaction | None:
        stmt = select(Transaction).where(Transaction.id == transaction_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_all(self) -> list[Transaction]:
        stmt = select(Transaction).order_by(Transaction.created_at.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_page(self, filters: TransactionFilters) -> tuple[list[Transaction], int]:
        """Return one page of transactions matching ``filters`` and the total match count."""
        q = self._apply_filters(select(Transaction), filters)

        count_q = select(func.count()).select_from(q.subquery())
        total = (await self.db.execute(count_q)).scalar() or 0

        column = self._sort_column(filters.sort_by)
        order = column.desc() if filters.sort_descending else column.asc()
        # id as tie-breaker keeps page boundaries stable for equal timestamps
        q = (
            q.order_by(order, Transaction.id.asc())
            .offset((filters.page - 1) * filters.page_size)
            .limit(filters.page_size)
        )
        result = await self.db.execute(q)
        return list(result.scalars().all()), int(total)

    async def aggregate_balance(self, filters: TransactionFilters | None = None) -> BalanceResult:
        income = func.coalesce(
            func.sum(case((Transaction.type == TransactionType.INCOME.value, Transaction.amount), else_=0)),
            0,
        )
        expense = func.coalesce(
            func.sum(case((Transaction.type == TransactionType.EXPENSE.value, Transaction.amount), else_=0)),
            0,
        )
        stmt = self._apply_filters(
            select(income.label("income"), expense.label("expense"), func.count(Transaction.id).label("count")),
            filters,
        )
        row = (await self.db.execute(stmt)).one()

        total_income = self._to_decimal(row.income)
        total_expense = self._to_decimal(row.expense)
        return BalanceResult(
            balance=total_income - total_expense,
            total_income=total_income,
            total_expense=total_expense,
            transaction_count=int(row.count or 0),
        )

    async def update(
        self,
        transaction_id: str,
        *,
        type: str,
        category: str,
        description: str | None = None,
    ) -> Transaction | None:
        record = await self.get_by_id(transaction_id)
        if not record:
            return None

        record.type = TransactionType(type).value
        record.category = category
        record.description = description or ""
        record.updated_at = datetime.now(timezone.utc)

        await self.db.commit()
        await self.db.refresh(record)
        return record

    async def delete(self, transaction_id: str) -> bool:
        record = await self.get_by_id(transaction_id)
        if not record:
            return False
        await self.db.delete(record)
        await self.db.commit()
        return True
