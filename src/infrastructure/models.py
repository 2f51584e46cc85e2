"""
SQLAlchemy ORM models.

Tables
------
* ``users``         -- clients, pilots and admins; owns ``account_balance``
* ``bookings``      -- charter bookings with price and payment status
* ``transactions``  -- append-only ledger of payments, refunds, deposits
  and withdrawals

Indexes
-------
* **B-Tree** on ``(user_id, created_at)`` and ``(client_id, created_at)``
  for the newest-first listings, plus ``status`` / ``booking_id`` for the
  admin review queue and booking look-ups.

Amounts are stored signed: balance payments are written as negative
``payment`` rows, credits as positive rows.
"""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)

from .database import Base
from src.domain.enums import (
    BookingStatus,
    BookingType,
    PaymentMethod,
    PaymentStatus,
    TransactionStatus,
    TransactionType,
    UserRole,
)


def _enum(enum_cls):
    # Persist the lowercase values, not the member names
    return Enum(
        enum_cls,
        values_callable=lambda members: [m.value for m in members],
        native_enum=False,
        length=20,
    )


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False)
    full_name = Column(String(120), nullable=True)
    phone = Column(String(40), nullable=True)
    role = Column(_enum(UserRole), default=UserRole.CLIENT, nullable=False)
    account_balance = Column(Float, default=0.0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (Index("idx_users_role", "role"),)
    __mapper_args__ = {"eager_defaults": True}


class BookingModel(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    pilot_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    booking_type = Column(_enum(BookingType), nullable=False)
    status = Column(
        _enum(BookingStatus), default=BookingStatus.PENDING, nullable=False
    )

    # Location codes from the destination table (transport bookings)
    from_location = Column(String(20), nullable=True)
    to_location = Column(String(20), nullable=True)

    scheduled_date = Column(Date, nullable=False)
    scheduled_time = Column(String(10), nullable=False)
    return_date = Column(Date, nullable=True)
    is_round_trip = Column(Boolean, default=False, nullable=False)
    passenger_count = Column(Integer, default=1, nullable=False)
    notes = Column(Text, nullable=True)

    total_price = Column(Float, nullable=False)
    distance_km = Column(Integer, nullable=True)
    payment_status = Column(
        _enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False
    )
    refunded_amount = Column(Float, default=0.0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_bookings_client", "client_id", "created_at"),
        Index("idx_bookings_pilot", "pilot_id", "scheduled_date"),
        Index("idx_bookings_status", "status", "scheduled_date"),
        Index("idx_bookings_type", "booking_type"),
    )
    __mapper_args__ = {"eager_defaults": True}


class TransactionModel(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=True)
    type = Column(_enum(TransactionType), nullable=False)
    amount = Column(Float, nullable=False)
    payment_method = Column(_enum(PaymentMethod), nullable=False)
    status = Column(
        _enum(TransactionStatus), default=TransactionStatus.PENDING, nullable=False
    )
    reference = Column(String(255), nullable=True)
    admin_notes = Column(Text, nullable=True)
    processed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    processed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_transactions_user", "user_id", "created_at"),
        Index("idx_transactions_booking", "booking_id"),
        Index("idx_transactions_status", "status"),
    )
    __mapper_args__ = {"eager_defaults": True}
