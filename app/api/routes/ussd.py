# app/api/routes/ussd.py
"""
USSD gateway endpoint.

The gateway posts one request per keypress round trip; the reply's ``type``
tells it whether to keep the dialog open (``CON``) or close it (``END``).
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.deps import get_main_menu, get_session_cache, get_transaction_repository
from app.api.routes.ussd_handlers import InvalidUssdRequest, MainMenuHandler, process_ussd_request
from app.domain.models.transaction import BalanceResult, TransactionFilters, TransactionType
from app.domain.models.ussd import UssdRequest, UssdResponse
from app.infrastructure.cache.session_cache import UssdSessionCache
from app.infrastructure.db.repositories import TransactionRepository

logger = logging.getLogger("api.ussd")

router = APIRouter(prefix="/api/ussd", tags=["ussd"])


@router.post("", response_model=UssdResponse)
async def handle_ussd(
    body: UssdRequest,
    session_cache: UssdSessionCache = Depends(get_session_cache),
    main_menu: MainMenuHandler = Depends(get_main_menu),
):
    try:
        return await process_ussd_request(body, session_cache=session_cache, main_menu=main_menu)
    except InvalidUssdRequest as e:
        logger.warning("Rejected USSD request: %s", e)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/balance", response_model=BalanceResult)
async def get_balance(
    type: TransactionType | None = Query(default=None, description="Filter: Income or Expense"),
    category: str | None = Query(default=None, description="Filter: category name"),
    transactions: TransactionRepository = Depends(get_transaction_repository),
):
    """Aggregate balance across all transactions, optionally filtered."""
    filters = TransactionFilters(type=type, category=category)
    return await transactions.aggregate_balance(filters)
