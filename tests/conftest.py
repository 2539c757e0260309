"""Shared test fixtures for the Expenses USSD test suite."""

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.domain.models.transaction import BalanceResult, TransactionFilters, TransactionType
from app.infrastructure.cache.session_cache import UssdSessionCache


@pytest.fixture(scope="session")
def event_loop():
    """Use a single event loop for the entire test session."""
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


# ---------------------------------------------------------------------------
# In-memory transaction store (same surface as TransactionRepository)
# ---------------------------------------------------------------------------

BASE_TIME = datetime(2025, 1, 5, 15, 7, tzinfo=timezone.utc)


@dataclass
class FakeTransaction:
    type: str
    category: str
    amount: Decimal
    description: str = ""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime | None = None
    updated_at: datetime | None = None


class FakeTransactionStore:
    def __init__(self):
        self.records: dict[str, FakeTransaction] = {}
        self._clock = 0

    def _tick(self) -> datetime:
        self._clock += 1
        return BASE_TIME + timedelta(minutes=self._clock)

    def add(self, type="Expense", category="food", amount="10.00", description="") -> FakeTransaction:
        now = self._tick()
        record = FakeTransaction(
            type=type,
            category=category,
            amount=Decimal(str(amount)),
            description=description,
            created_at=now,
            updated_at=now,
        )
        self.records[record.id] = record
        return record

    async def create(self, type, category, amount, description=None):
        return self.add(TransactionType(type).value, category, amount, description or "")

    async def get_by_id(self, transaction_id):
        return self.records.get(transaction_id)

    async def list_all(self):
        return sorted(self.records.values(), key=lambda r: r.created_at, reverse=True)

    def _matching(self, filters):
        rows = list(self.records.values())
        if filters is not None and filters.type:
            rows = [r for r in rows if r.type == TransactionType(filters.type).value]
        if filters is not None and filters.category:
            rows = [r for r in rows if r.category == filters.category]
        return rows

    async def list_page(self, filters: TransactionFilters):
        rows = self._matching(filters)
        rows.sort(key=lambda r: getattr(r, filters.sort_by), reverse=filters.sort_descending)
        start = (filters.page - 1) * filters.page_size
        return rows[start:start + filters.page_size], len(rows)

    async def aggregate_balance(self, filters=None):
        rows = self._matching(filters)
        income = sum((r.amount for r in rows if r.type == "Income"), Decimal("0"))
        expense = sum((r.amount for r in rows if r.type == "Expense"), Decimal("0"))
        return BalanceResult(
            balance=income - expense,
            total_income=income,
            total_expense=expense,
            transaction_count=len(rows),
        )

    async def update(self, transaction_id, *, type, category, description=None):
        record = self.records.get(transaction_id)
        if record is None:
            return None
        record.type = TransactionType(type).value
        record.category = category
        record.description = description or ""
        record.updated_at = self._tick()
        return record

    async def delete(self, transaction_id):
        return self.records.pop(transaction_id, None) is not None


# ---------------------------------------------------------------------------
# In-memory Redis double (the subset the session cache uses)
# ---------------------------------------------------------------------------

class FakeRedis:
    def __init__(self):
        self.data: dict[str, str] = {}
        self.expiry: dict[str, int | None] = {}

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        self.data[key] = value
        self.expiry[key] = ex
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.expiry.pop(key, None)
        return removed

    async def ping(self):
        return True

    async def scan_iter(self, match=None, count=None):
        prefix = (match or "*").rstrip("*")
        for key in list(self.data):
            if key.startswith(prefix):
                yield key


@pytest.fixture
def store() -> FakeTransactionStore:
    return FakeTransactionStore()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def session_cache(fake_redis) -> UssdSessionCache:
    return UssdSessionCache(client=fake_redis, ttl_seconds=480, key_prefix="ussd:state:")
