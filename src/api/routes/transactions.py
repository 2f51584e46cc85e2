"""
Transaction endpoints
=====================

GET   /api/v1/transactions       -- caller's transactions, newest first
POST  /api/v1/transactions       -- request a deposit (pending admin review)
GET   /api/v1/transactions/{id}  -- one transaction (owner or admin)
PATCH /api/v1/transactions/{id}  -- admin review: approve / reject / complete / fail
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_current_user, get_db, require_roles
from src.api.middleware import limiter
from src.api.schemas import (
    DepositRequest,
    TransactionResponse,
    TransactionReviewRequest,
    TransactionReviewResponse,
)
from src.config import settings
from src.domain.enums import UserRole
from src.security import Caller
from src.services.ledger import LedgerService

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get(
    "",
    response_model=list[TransactionResponse],
    summary="List the caller's transactions",
)
@limiter.limit(settings.rate_limit)
async def list_transactions(
    request: Request,
    caller: Caller = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await LedgerService(db).list_transactions(caller)


@router.post(
    "",
    status_code=201,
    response_model=TransactionResponse,
    summary="Request a deposit",
    responses={201: {"description": "Deposit queued; balance changes on approval."}},
)
@limiter.limit(settings.rate_limit)
async def request_deposit(
    request: Request,
    body: DepositRequest,
    caller: Caller = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await LedgerService(db).request_deposit(
        caller, body.amount, body.payment_method, reference=body.reference
    )


@router.get(
    "/{transaction_id}",
    response_model=TransactionResponse,
    summary="Get a transaction",
)
@limiter.limit(settings.rate_limit)
async def get_transaction(
    request: Request,
    transaction_id: int,
    caller: Caller = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await LedgerService(db).get_transaction(transaction_id, caller)


@router.patch(
    "/{transaction_id}",
    response_model=TransactionReviewResponse,
    summary="Review a pending transaction (admin)",
    description=(
        "Closes a pending transaction. Approving a deposit credits the "
        "owner's balance in the same atomic unit; a second review of the "
        "same transaction is rejected with 409 and changes nothing."
    ),
)
@limiter.limit(settings.rate_limit)
async def review_transaction(
    request: Request,
    transaction_id: int,
    body: TransactionReviewRequest,
    caller: Caller = Depends(require_roles(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    result = await LedgerService(db).review_transaction(
        transaction_id, caller, body.status, admin_notes=body.admin_notes
    )
    if result.balance_updated:
        message = "Transaction approved and balance updated"
    else:
        message = f"Transaction {body.status.value} successfully"
    return TransactionReviewResponse(
        message=message,
        balance_updated=result.balance_updated,
        new_balance=result.new_balance,
        transaction=TransactionResponse.model_validate(result.transaction),
    )
