# app/api/v1/routes/transactions.py
"""
Transaction CRUD endpoints (the same records the USSD menus read and write).
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.deps import get_transaction_repository
from app.api.v1.envelope import ok, paginated
from app.api.v1.schemas.transactions import (
    TransactionCreate,
    TransactionDetail,
    TransactionUpdate,
)
from app.domain.models.transaction import SORTABLE_FIELDS, TransactionFilters, TransactionType
from app.infrastructure.db.repositories import TransactionRepository

logger = logging.getLogger("api.v1.transactions")

router = APIRouter(prefix="/transactions", tags=["Transactions"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _to_detail(record) -> dict:
    return TransactionDetail.model_validate(record).model_dump(mode="json")


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found")


# ---------------------------------------------------------------------------
# List transactions (paginated)
# ---------------------------------------------------------------------------

@router.get("", response_model=dict)
async def list_transactions(
    page: int = Query(default=1, ge=1, description="1-based page number"),
    page_size: int = Query(default=10, ge=1, le=100),
    type: TransactionType | None = Query(default=None, description="Filter: Income or Expense"),
    category: str | None = Query(default=None, description="Filter: category name"),
    sort_by: str = Query(default="created_at", description=f"One of: {', '.join(SORTABLE_FIELDS)}"),
    sort_descending: bool = Query(default=True),
    transactions: TransactionRepository = Depends(get_transaction_repository),
):
    """List transactions, newest first unless told otherwise."""
    filters = TransactionFilters(
        type=type,
        category=category,
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        sort_descending=sort_descending,
    )
    records, total = await transactions.list_page(filters)

    return paginated(
        items=[_to_detail(r) for r in records],
        total=total,
        limit=page_size,
        offset=(page - 1) * page_size,
    )


# ---------------------------------------------------------------------------
# All transactions (unpaginated)
# ---------------------------------------------------------------------------

# Declared before /{transaction_id} so "all" is not taken for an id
@router.get("/all", response_model=dict)
async def list_all_transactions(
    transactions: TransactionRepository = Depends(get_transaction_repository),
):
    records = await transactions.list_all()
    return ok(data=[_to_detail(r) for r in records])


# ---------------------------------------------------------------------------
# Get single transaction
# ---------------------------------------------------------------------------

@router.get("/{transaction_id}", response_model=dict)
async def get_transaction(
    transaction_id: str,
    transactions: TransactionRepository = Depends(get_transaction_repository),
):
    record = await transactions.get_by_id(transaction_id)
    if not record:
        raise _not_found()
    return ok(data=_to_detail(record))


# ---------------------------------------------------------------------------
# Create / update / delete
# ---------------------------------------------------------------------------

@router.post("", response_model=dict, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    body: TransactionCreate,
    transactions: TransactionRepository = Depends(get_transaction_repository),
):
    record = await transactions.create(
        body.type.value,
        body.category,
        body.amount,
        body.description,
    )
    logger.info("Transaction %s created via API (%s %s)", record.id, record.type, record.amount)
    return ok(data=_to_detail(record), message="Transaction created")


@router.put("/{transaction_id}", response_model=dict)
async def update_transaction(
    transaction_id: str,
    body: TransactionUpdate,
    transactions: TransactionRepository = Depends(get_transaction_repository),
):
    record = await transactions.update(
        transaction_id,
        type=body.type.value,
        category=body.category,
        description=body.description,
    )
    if not record:
        raise _not_found()
    return ok(data=_to_detail(record), message="Transaction updated")


@router.delete("/{transaction_id}", response_model=dict)
async def delete_transaction(
    transaction_id: str,
    transactions: TransactionRepository = Depends(get_transaction_repository),
):
    deleted = await transactions.delete(transaction_id)
    if not deleted:
        raise _not_found()
    logger.info("Transaction %s deleted via API", transaction_id)
    return ok(message="Transaction deleted")
