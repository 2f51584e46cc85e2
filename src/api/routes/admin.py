"""
Admin / observability endpoints
===============================

GET /api/v1/admin/transactions -- review queue, optionally filtered by status
GET /api/v1/admin/health       -- simple health check
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, require_roles
from src.api.middleware import limiter
from src.api.schemas import HealthResponse, TransactionResponse
from src.config import settings
from src.domain.enums import TransactionStatus, UserRole
from src.infrastructure.repositories import TransactionRepository
from src.security import Caller

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/transactions",
    response_model=list[TransactionResponse],
    summary="List transactions for admin review",
)
@limiter.limit(settings.rate_limit)
async def list_transactions_for_review(
    request: Request,
    status: Optional[TransactionStatus] = None,
    caller: Caller = Depends(require_roles(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    return await TransactionRepository(db).list_by_status(status)


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()
