"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.  Balance and status mutations are issued as
single conditional ``UPDATE ... RETURNING`` statements so the guard and the
write happen in one round trip inside the caller's transaction.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import BookingModel, TransactionModel, UserModel
from src.domain.enums import (
    OPEN_TRANSACTION_STATUSES,
    BookingStatus,
    BookingType,
    PaymentStatus,
    TransactionStatus,
    TransactionType,
)


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: int) -> Optional[UserModel]:
        return await self.session.get(UserModel, user_id, populate_existing=True)

    async def debit_if_sufficient(
        self, user_id: int, amount: float
    ) -> Optional[float]:
        """Subtract *amount* only if the balance covers it.

        Returns the new balance, or ``None`` when the user is missing or
        the balance is too low.
        """
        result = await self.session.execute(
            update(UserModel)
            .where(UserModel.id == user_id, UserModel.account_balance >= amount)
            .values(account_balance=UserModel.account_balance - amount)
            .returning(UserModel.account_balance)
        )
        return result.scalar_one_or_none()

    async def credit(self, user_id: int, amount: float) -> Optional[float]:
        """Atomically add *amount*; returns the new balance or ``None``."""
        result = await self.session.execute(
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(account_balance=UserModel.account_balance + amount)
            .returning(UserModel.account_balance)
        )
        return result.scalar_one_or_none()


class BookingRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, booking: BookingModel) -> BookingModel:
        self.session.add(booking)
        await self.session.flush()
        return booking

    async def get_by_id(self, booking_id: int) -> Optional[BookingModel]:
        return await self.session.get(BookingModel, booking_id, populate_existing=True)

    async def list_bookings(
        self,
        *,
        client_id: int | None = None,
        participant_id: int | None = None,
        status: BookingStatus | None = None,
        booking_type: BookingType | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[BookingModel], int]:
        """Newest-first page of bookings plus the unpaged total."""
        query = select(BookingModel)
        if client_id is not None:
            query = query.where(BookingModel.client_id == client_id)
        if participant_id is not None:
            query = query.where(
                (BookingModel.client_id == participant_id)
                | (BookingModel.pilot_id == participant_id)
            )
        if status is not None:
            query = query.where(BookingModel.status == status)
        if booking_type is not None:
            query = query.where(BookingModel.booking_type == booking_type)

        total = await self.session.execute(
            select(func.count()).select_from(query.subquery())
        )
        result = await self.session.execute(
            query.order_by(BookingModel.created_at.desc(), BookingModel.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total.scalar() or 0

    async def transition_payment_status(
        self,
        booking_id: int,
        *,
        from_statuses: Iterable[PaymentStatus],
        to: PaymentStatus,
    ) -> bool:
        """Move ``payment_status`` to *to* only from one of *from_statuses*.

        Moving towards PAID or PROCESSING also requires the booking not to
        be cancelled.  Returns ``False`` when no row matched.
        """
        query = update(BookingModel).where(
            BookingModel.id == booking_id,
            BookingModel.payment_status.in_(list(from_statuses)),
        )
        if to in (PaymentStatus.PAID, PaymentStatus.PROCESSING):
            query = query.where(BookingModel.status != BookingStatus.CANCELLED)
        result = await self.session.execute(
            query.values(payment_status=to).returning(BookingModel.id)
        )
        return result.scalar_one_or_none() is not None

    async def add_refund_if_within_price(
        self, booking_id: int, amount: float
    ) -> Optional[float]:
        """Add *amount* to ``refunded_amount`` of a paid booking.

        Refuses (returns ``None``) if the booking is not PAID or the running
        refund total would exceed ``total_price``.
        """
        result = await self.session.execute(
            update(BookingModel)
            .where(
                BookingModel.id == booking_id,
                BookingModel.payment_status == PaymentStatus.PAID,
                BookingModel.refunded_amount + amount <= BookingModel.total_price,
            )
            .values(refunded_amount=BookingModel.refunded_amount + amount)
            .returning(BookingModel.refunded_amount)
        )
        return result.scalar_one_or_none()


class TransactionRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, transaction: TransactionModel) -> TransactionModel:
        self.session.add(transaction)
        await self.session.flush()
        return transaction

    async def get_by_id(self, transaction_id: int) -> Optional[TransactionModel]:
        return await self.session.get(
            TransactionModel, transaction_id, populate_existing=True
        )

    async def list_for_user(
        self, user_id: int, limit: int | None = None
    ) -> list[TransactionModel]:
        query = (
            select(TransactionModel)
            .where(TransactionModel.user_id == user_id)
            .order_by(TransactionModel.created_at.desc(), TransactionModel.id.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def list_by_status(
        self, status: TransactionStatus | None = None
    ) -> list[TransactionModel]:
        query = select(TransactionModel).order_by(
            TransactionModel.created_at.desc(), TransactionModel.id.desc()
        )
        if status is not None:
            query = query.where(TransactionModel.status == status)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def latest_for_booking(
        self, booking_id: int, tx_type: TransactionType
    ) -> Optional[TransactionModel]:
        result = await self.session.execute(
            select(TransactionModel)
            .where(
                TransactionModel.booking_id == booking_id,
                TransactionModel.type == tx_type,
            )
            .order_by(TransactionModel.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def close_if_open(
        self,
        transaction_id: int,
        *,
        status: TransactionStatus,
        processed_by: int,
        processed_at: datetime,
        admin_notes: str | None = None,
    ) -> bool:
        """Move an open transaction to *status*.

        The ``WHERE status IN (open)`` clause is the idempotency guard: a
        second call for the same row matches nothing and returns ``False``.
        """
        values = {
            "status": status,
            "processed_by": processed_by,
            "processed_at": processed_at,
        }
        if admin_notes is not None:
            values["admin_notes"] = admin_notes
        result = await self.session.execute(
            update(TransactionModel)
            .where(
                TransactionModel.id == transaction_id,
                TransactionModel.status.in_(list(OPEN_TRANSACTION_STATUSES)),
            )
            .values(**values)
            .returning(TransactionModel.id)
        )
        return result.scalar_one_or_none() is not None
