"""
Account balance endpoints
=========================

GET  /api/v1/user/balance -- balance plus the most recent transactions
POST /api/v1/user/balance -- instant deposit (card / bank)
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_current_user, get_db
from src.api.middleware import limiter
from src.api.schemas import (
    BalanceResponse,
    DepositRequest,
    DepositResponse,
    TransactionResponse,
)
from src.config import settings
from src.security import Caller
from src.services.ledger import LedgerService

router = APIRouter(prefix="/user", tags=["account"])


@router.get("/balance", response_model=BalanceResponse, summary="Get account balance")
@limiter.limit(settings.rate_limit)
async def get_balance(
    request: Request,
    caller: Caller = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    balance, recent = await LedgerService(db).balance_summary(caller)
    return BalanceResponse(
        balance=balance,
        transactions=[TransactionResponse.model_validate(t) for t in recent],
    )


@router.post("/balance", response_model=DepositResponse, summary="Add funds")
@limiter.limit(settings.rate_limit)
async def add_funds(
    request: Request,
    body: DepositRequest,
    caller: Caller = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await LedgerService(db).deposit_funds(
        caller, body.amount, body.payment_method, reference=body.reference
    )
    return DepositResponse(
        new_balance=result.new_balance,
        transaction=TransactionResponse.model_validate(result.transaction),
    )
