"""
Balance Ledger
==============

Moves money between a user's ``account_balance`` and the append-only
``transactions`` log.  Every mutating operation runs inside one
``UnitOfWork``: the balance change and the matching transaction write
commit together or not at all.

Concurrency safety
------------------
* **Balance debits** are a conditional ``UPDATE ... WHERE balance >= amount``;
  two concurrent payments can never overdraw the account.
* **Booking payment** moves ``payment_status`` only out of ``pending`` and
  only on a booking that is not cancelled, so a booking is charged at most
  once and never by two methods.  A refunded booking cannot be paid again.
* **Transaction review** updates ``WHERE status = pending``; a retried or
  concurrent approval matches no row and cannot credit a deposit twice.

Operations
----------
* ``pay_booking``        -- settle a booking from balance or start a transfer
* ``review_transaction`` -- admin closes a pending transaction
* ``request_deposit``    -- queue a deposit for admin review
* ``deposit_funds``      -- instant top-up
* ``refund_booking``     -- admin refund to wallet or original method
* ``refund_status``      -- refunded and remaining amounts of a booking
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.enums import (
    SETTLED_STATUSES,
    TERMINAL_TRANSACTION_STATUSES,
    BookingStatus,
    PaymentMethod,
    PaymentStatus,
    TransactionStatus,
    TransactionType,
    UserRole,
    can_transition,
)
from src.domain.exceptions import (
    AlreadyPaid,
    BookingNotFound,
    BookingNotPayable,
    Forbidden,
    InsufficientBalance,
    InvalidStateTransition,
    InvalidTransactionRequest,
    PaymentInProgress,
    RefundNotAllowed,
    TransactionAlreadyProcessed,
    TransactionNotFound,
    UnsupportedPaymentMethod,
    UserNotFound,
)
from src.infrastructure.models import BookingModel, TransactionModel
from src.infrastructure.repositories import (
    BookingRepository,
    TransactionRepository,
    UserRepository,
)
from src.infrastructure.unit_of_work import UnitOfWork
from src.security import Caller, ensure_role

logger = logging.getLogger(__name__)

DEPOSIT_REQUEST_METHODS = frozenset(
    {PaymentMethod.CARD, PaymentMethod.BANK, PaymentMethod.BANK_TRANSFER}
)
INSTANT_DEPOSIT_METHODS = frozenset({PaymentMethod.CARD, PaymentMethod.BANK})
REFUND_METHODS = frozenset({"original", "wallet"})
RECENT_TRANSACTIONS_LIMIT = 10


# ── Results ───────────────────────────────────────────────────────────


@dataclass
class PaymentResult:
    transaction: TransactionModel
    payment_status: PaymentStatus
    new_balance: Optional[float] = None


@dataclass
class ReviewResult:
    transaction: TransactionModel
    balance_updated: bool = False
    new_balance: Optional[float] = None


@dataclass
class DepositResult:
    transaction: TransactionModel
    new_balance: float


@dataclass
class RefundResult:
    transaction: TransactionModel
    refunded_amount: float
    total_refunded: float
    payment_status: PaymentStatus
    new_balance: Optional[float] = None


@dataclass
class RefundStatus:
    booking_id: int
    status: str
    refunded_amount: float
    total_price: float
    remaining_amount: float
    payment_status: PaymentStatus
    last_refund: Optional[TransactionModel] = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _ensure_payable(booking: BookingModel) -> None:
    """Only a live booking with ``payment_status`` PENDING accepts a payment."""
    if booking.payment_status == PaymentStatus.PAID:
        raise AlreadyPaid()
    if (
        booking.payment_status == PaymentStatus.REFUNDED
        or booking.status == BookingStatus.CANCELLED
    ):
        raise BookingNotPayable()
    if booking.payment_status == PaymentStatus.PROCESSING:
        raise PaymentInProgress()


async def _raise_payment_conflict(uow: UnitOfWork, booking_id: int) -> None:
    booking = await uow.bookings.get_by_id(booking_id)
    if booking is None:
        raise BookingNotFound()
    _ensure_payable(booking)
    raise AlreadyPaid()


def _payment_method(value) -> PaymentMethod:
    try:
        return PaymentMethod(value)
    except ValueError:
        raise UnsupportedPaymentMethod() from None


# ── Service ───────────────────────────────────────────────────────────


class LedgerService:
    """Ledger operations bound to one request-scoped session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # -- payments --------------------------------------------------------

    async def pay_booking(
        self,
        booking_id: int,
        caller: Caller,
        payment_method: str | PaymentMethod,
        reference: str | None = None,
    ) -> PaymentResult:
        async with UnitOfWork(self.session) as uow:
            booking = await uow.bookings.get_by_id(booking_id)
            if booking is None:
                raise BookingNotFound()
            if booking.client_id != caller.user_id:
                raise Forbidden("You can only pay for your own bookings")
            _ensure_payable(booking)

            method = _payment_method(payment_method)
            if method == PaymentMethod.ACCOUNT_BALANCE:
                return await self._pay_from_balance(uow, booking, caller, reference)
            if method == PaymentMethod.BANK_TRANSFER:
                return await self._start_bank_transfer(uow, booking, caller, reference)
            raise UnsupportedPaymentMethod()

    async def _pay_from_balance(
        self,
        uow: UnitOfWork,
        booking: BookingModel,
        caller: Caller,
        reference: str | None,
    ) -> PaymentResult:
        amount = booking.total_price

        new_balance = await uow.users.debit_if_sufficient(caller.user_id, amount)
        if new_balance is None:
            if await uow.users.get_by_id(caller.user_id) is None:
                raise UserNotFound()
            logger.warning(
                "Balance payment rejected: user=%s booking=%s amount=%.2f",
                caller.user_id, booking.id, amount,
            )
            raise InsufficientBalance()

        # A concurrent payment, transfer or cancellation may have landed
        # since the read above
        if not await uow.bookings.transition_payment_status(
            booking.id, from_statuses={PaymentStatus.PENDING}, to=PaymentStatus.PAID
        ):
            await _raise_payment_conflict(uow, booking.id)

        transaction = await uow.transactions.create(
            TransactionModel(
                user_id=caller.user_id,
                booking_id=booking.id,
                type=TransactionType.PAYMENT,
                amount=-amount,
                payment_method=PaymentMethod.ACCOUNT_BALANCE,
                status=TransactionStatus.COMPLETED,
                reference=reference or f"Flight payment - Booking {booking.id}",
                processed_at=_utcnow(),
            )
        )
        logger.info(
            "Booking %s paid from balance by user %s (%.2f, new balance %.2f)",
            booking.id, caller.user_id, amount, new_balance,
        )
        return PaymentResult(
            transaction=transaction,
            payment_status=PaymentStatus.PAID,
            new_balance=new_balance,
        )

    async def _start_bank_transfer(
        self,
        uow: UnitOfWork,
        booking: BookingModel,
        caller: Caller,
        reference: str | None,
    ) -> PaymentResult:
        if not await uow.bookings.transition_payment_status(
            booking.id,
            from_statuses={PaymentStatus.PENDING},
            to=PaymentStatus.PROCESSING,
        ):
            await _raise_payment_conflict(uow, booking.id)

        transaction = await uow.transactions.create(
            TransactionModel(
                user_id=caller.user_id,
                booking_id=booking.id,
                type=TransactionType.PAYMENT,
                amount=booking.total_price,
                payment_method=PaymentMethod.BANK_TRANSFER,
                status=TransactionStatus.PENDING,
                reference=reference or f"Booking payment - {booking.id}",
            )
        )
        logger.info(
            "Bank transfer initiated for booking %s by user %s",
            booking.id, caller.user_id,
        )
        return PaymentResult(
            transaction=transaction, payment_status=PaymentStatus.PROCESSING
        )

    # -- admin review ----------------------------------------------------

    async def review_transaction(
        self,
        transaction_id: int,
        caller: Caller,
        status: str | TransactionStatus,
        admin_notes: str | None = None,
    ) -> ReviewResult:
        ensure_role(caller, {UserRole.ADMIN})
        try:
            new_status = TransactionStatus(status)
        except ValueError:
            raise InvalidStateTransition(f"Unknown status: {status}") from None
        if new_status not in TERMINAL_TRANSACTION_STATUSES:
            raise InvalidStateTransition(
                f"Cannot move a transaction to {new_status.value}"
            )

        async with UnitOfWork(self.session) as uow:
            transaction = await uow.transactions.get_by_id(transaction_id)
            if transaction is None:
                raise TransactionNotFound()
            if not can_transition(TransactionStatus(transaction.status), new_status):
                raise TransactionAlreadyProcessed()

            tx_type = TransactionType(transaction.type)
            owner_id = transaction.user_id
            amount = transaction.amount

            closed = await uow.transactions.close_if_open(
                transaction_id,
                status=new_status,
                processed_by=caller.user_id,
                processed_at=_utcnow(),
                admin_notes=admin_notes,
            )
            if not closed:
                raise TransactionAlreadyProcessed()
            # The bulk update bypasses the loaded object; reload the reviewed row
            await uow.session.refresh(transaction)

            result = ReviewResult(transaction=transaction)
            if new_status == TransactionStatus.APPROVED and tx_type == TransactionType.DEPOSIT:
                new_balance = await uow.users.credit(owner_id, amount)
                if new_balance is None:
                    raise UserNotFound()
                result.balance_updated = True
                result.new_balance = new_balance
            elif (
                tx_type == TransactionType.PAYMENT
                and transaction.booking_id is not None
                and transaction.payment_method == PaymentMethod.BANK_TRANSFER
            ):
                await self._settle_bank_transfer(uow, transaction.booking_id, new_status)

        logger.info(
            "Transaction %s %s by admin %s (balance_updated=%s)",
            transaction_id, new_status.value, caller.user_id, result.balance_updated,
        )
        return result

    @staticmethod
    async def _settle_bank_transfer(
        uow: UnitOfWork, booking_id: int, new_status: TransactionStatus
    ) -> None:
        settled = new_status in SETTLED_STATUSES
        moved = await uow.bookings.transition_payment_status(
            booking_id,
            from_statuses={PaymentStatus.PROCESSING},
            to=PaymentStatus.PAID if settled else PaymentStatus.PENDING,
        )
        if settled and not moved:
            logger.warning(
                "Approved transfer did not settle booking %s: it is no longer "
                "awaiting the transfer",
                booking_id,
            )

    # -- deposits --------------------------------------------------------

    async def request_deposit(
        self,
        caller: Caller,
        amount: float,
        payment_method: str | PaymentMethod,
        reference: str | None = None,
    ) -> TransactionModel:
        """Queue a deposit; the balance moves only when an admin approves it."""
        if amount <= 0:
            raise InvalidTransactionRequest("Invalid amount")
        method = _payment_method(payment_method)
        if method not in DEPOSIT_REQUEST_METHODS:
            raise UnsupportedPaymentMethod()

        async with UnitOfWork(self.session) as uow:
            transaction = await uow.transactions.create(
                TransactionModel(
                    user_id=caller.user_id,
                    type=TransactionType.DEPOSIT,
                    amount=amount,
                    payment_method=method,
                    status=TransactionStatus.PENDING,
                    reference=reference,
                )
            )
        logger.info("Deposit of %.2f requested by user %s", amount, caller.user_id)
        return transaction

    async def deposit_funds(
        self,
        caller: Caller,
        amount: float,
        payment_method: str | PaymentMethod,
        reference: str | None = None,
    ) -> DepositResult:
        if amount <= 0:
            raise InvalidTransactionRequest("Invalid amount")
        method = _payment_method(payment_method)
        if method not in INSTANT_DEPOSIT_METHODS:
            raise UnsupportedPaymentMethod("Invalid payment method")

        async with UnitOfWork(self.session) as uow:
            transaction = await uow.transactions.create(
                TransactionModel(
                    user_id=caller.user_id,
                    type=TransactionType.DEPOSIT,
                    amount=amount,
                    payment_method=method,
                    status=TransactionStatus.COMPLETED,
                    reference=reference,
                    processed_at=_utcnow(),
                )
            )
            new_balance = await uow.users.credit(caller.user_id, amount)
            if new_balance is None:
                raise UserNotFound()

        logger.info(
            "Deposit of %.2f credited to user %s (new balance %.2f)",
            amount, caller.user_id, new_balance,
        )
        return DepositResult(transaction=transaction, new_balance=new_balance)

    # -- refunds ---------------------------------------------------------

    async def refund_booking(
        self,
        booking_id: int,
        caller: Caller,
        amount: float | None = None,
        reason: str | None = None,
        refund_method: str = "original",
    ) -> RefundResult:
        ensure_role(caller, {UserRole.ADMIN})
        if refund_method not in REFUND_METHODS:
            raise UnsupportedPaymentMethod("Unsupported refund method")

        async with UnitOfWork(self.session) as uow:
            booking = await uow.bookings.get_by_id(booking_id)
            if booking is None:
                raise BookingNotFound()
            if booking.payment_status == PaymentStatus.REFUNDED:
                raise RefundNotAllowed("Booking has already been refunded")
            if booking.payment_status != PaymentStatus.PAID:
                raise RefundNotAllowed("Booking has not been paid yet")

            remaining = booking.total_price - booking.refunded_amount
            refund_amount = remaining if amount is None else amount
            if refund_amount <= 0:
                raise RefundNotAllowed("Refund amount must be positive")

            total_refunded = await uow.bookings.add_refund_if_within_price(
                booking.id, refund_amount
            )
            if total_refunded is None:
                raise RefundNotAllowed("Refund amount cannot exceed booking price")
            await uow.session.refresh(booking)

            if total_refunded >= booking.total_price:
                booking.payment_status = PaymentStatus.REFUNDED
                booking.status = BookingStatus.CANCELLED

            wallet = refund_method == "wallet"
            suffix = f" - {reason}" if reason else ""
            transaction = await uow.transactions.create(
                TransactionModel(
                    user_id=booking.client_id,
                    booking_id=booking.id,
                    type=TransactionType.REFUND,
                    amount=refund_amount,
                    payment_method=(
                        PaymentMethod.ACCOUNT_BALANCE
                        if wallet
                        else PaymentMethod.BANK_TRANSFER
                    ),
                    status=TransactionStatus.COMPLETED,
                    reference=f"Refund: {booking.id}{suffix}",
                    processed_by=caller.user_id,
                    processed_at=_utcnow(),
                )
            )

            new_balance = None
            if wallet:
                new_balance = await uow.users.credit(booking.client_id, refund_amount)
                if new_balance is None:
                    raise UserNotFound()

            payment_status = PaymentStatus(booking.payment_status)

        logger.info(
            "Booking %s refunded %.2f via %s by admin %s",
            booking_id, refund_amount, refund_method, caller.user_id,
        )
        return RefundResult(
            transaction=transaction,
            refunded_amount=refund_amount,
            total_refunded=total_refunded,
            payment_status=payment_status,
            new_balance=new_balance,
        )

    async def refund_status(self, booking_id: int, caller: Caller) -> RefundStatus:
        """How much of a booking has been refunded and how much is left."""
        booking = await BookingRepository(self.session).get_by_id(booking_id)
        if booking is None:
            raise BookingNotFound()
        if not caller.is_admin and booking.client_id != caller.user_id:
            raise Forbidden()

        if booking.payment_status == PaymentStatus.REFUNDED:
            status = "refunded"
        elif booking.refunded_amount > 0:
            status = "partial"
        else:
            status = "none"

        return RefundStatus(
            booking_id=booking.id,
            status=status,
            refunded_amount=booking.refunded_amount,
            total_price=booking.total_price,
            remaining_amount=round(booking.total_price - booking.refunded_amount, 2),
            payment_status=PaymentStatus(booking.payment_status),
            last_refund=await TransactionRepository(self.session).latest_for_booking(
                booking.id, TransactionType.REFUND
            ),
        )

    # -- reads -----------------------------------------------------------

    async def balance_summary(
        self, caller: Caller
    ) -> tuple[float, list[TransactionModel]]:
        user = await UserRepository(self.session).get_by_id(caller.user_id)
        if user is None:
            raise UserNotFound()
        recent = await TransactionRepository(self.session).list_for_user(
            caller.user_id, limit=RECENT_TRANSACTIONS_LIMIT
        )
        return user.account_balance, recent

    async def list_transactions(self, caller: Caller) -> list[TransactionModel]:
        return await TransactionRepository(self.session).list_for_user(caller.user_id)

    async def get_transaction(
        self, transaction_id: int, caller: Caller
    ) -> TransactionModel:
        transaction = await TransactionRepository(self.session).get_by_id(
            transaction_id
        )
        if transaction is None:
            raise TransactionNotFound()
        if not caller.is_admin and transaction.user_id != caller.user_id:
            raise Forbidden()
        return transaction
