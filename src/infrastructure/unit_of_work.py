"""
Unit of Work -- the atomic boundary for ledger writes.

Usage::

    async with UnitOfWork(session) as uow:
        await uow.users.debit_if_sufficient(...)
        await uow.transactions.create(...)

Leaving the block normally commits; any exception rolls the whole unit
back.  Driver / ORM errors are re-raised as ``StorageFailure`` so callers
see a generic failure instead of database internals.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .repositories import BookingRepository, TransactionRepository, UserRepository
from src.domain.exceptions import StorageFailure

logger = logging.getLogger(__name__)


class UnitOfWork:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.users = UserRepository(session)
        self.bookings = BookingRepository(session)
        self.transactions = TransactionRepository(session)

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            await self.session.rollback()
            if isinstance(exc, SQLAlchemyError):
                logger.error("Ledger unit rolled back after storage error", exc_info=exc)
                raise StorageFailure() from exc
            return False

        try:
            await self.session.commit()
        except SQLAlchemyError as err:
            await self.session.rollback()
            logger.exception("Ledger unit failed to commit")
            raise StorageFailure() from err
        return False
