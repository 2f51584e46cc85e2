"""Domain enumerations and state-transition rules."""

import enum


class UserRole(str, enum.Enum):
    CLIENT = "client"
    PILOT = "pilot"
    ADMIN = "admin"


class BookingType(str, enum.Enum):
    TRANSPORT = "transport"
    EXPERIENCE = "experience"


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    ASSIGNED = "assigned"
    ACCEPTED = "accepted"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    PAID = "paid"
    REFUNDED = "refunded"


class TransactionType(str, enum.Enum):
    PAYMENT = "payment"
    REFUND = "refund"
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    APPROVED = "approved"
    REJECTED = "rejected"
    FAILED = "failed"


class PaymentMethod(str, enum.Enum):
    CARD = "card"
    BANK = "bank"
    BANK_TRANSFER = "bank_transfer"
    ACCOUNT_BALANCE = "account_balance"


# State machine: maps current status -> set of valid next statuses.
# PENDING is the only open status; everything else is final.
TRANSACTION_TRANSITIONS: dict[TransactionStatus, set[TransactionStatus]] = {
    TransactionStatus.PENDING: {
        TransactionStatus.COMPLETED,
        TransactionStatus.APPROVED,
        TransactionStatus.REJECTED,
        TransactionStatus.FAILED,
    },
    TransactionStatus.COMPLETED: set(),
    TransactionStatus.APPROVED: set(),
    TransactionStatus.REJECTED: set(),
    TransactionStatus.FAILED: set(),
}

OPEN_TRANSACTION_STATUSES = frozenset(
    status for status, nxt in TRANSACTION_TRANSITIONS.items() if nxt
)
TERMINAL_TRANSACTION_STATUSES = frozenset(
    status for status, nxt in TRANSACTION_TRANSITIONS.items() if not nxt
)

# Statuses that settle a pending payment / credit a pending deposit
SETTLED_STATUSES = frozenset({TransactionStatus.APPROVED, TransactionStatus.COMPLETED})


def can_transition(current: TransactionStatus, new: TransactionStatus) -> bool:
    return new in TRANSACTION_TRANSITIONS.get(current, set())
