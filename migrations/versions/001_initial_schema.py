"""Initial schema: users, bookings and the transactions ledger.

Revision ID: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ── users ─────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("full_name", sa.String(120), nullable=True),
        sa.Column("phone", sa.String(40), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="client"),
        sa.Column(
            "account_balance", sa.Float, nullable=False, server_default="0"
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_users_role", "users", ["role"])

    # ── bookings ──────────────────────────────────────────────────────
    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "client_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column(
            "pilot_id", sa.Integer, sa.ForeignKey("users.id"), nullable=True
        ),
        sa.Column("booking_type", sa.String(20), nullable=False),
        sa.Column(
            "status", sa.String(20), nullable=False, server_default="pending"
        ),
        sa.Column("from_location", sa.String(20), nullable=True),
        sa.Column("to_location", sa.String(20), nullable=True),
        sa.Column("scheduled_date", sa.Date, nullable=False),
        sa.Column("scheduled_time", sa.String(10), nullable=False),
        sa.Column("return_date", sa.Date, nullable=True),
        sa.Column(
            "is_round_trip", sa.Boolean, nullable=False, server_default=sa.false()
        ),
        sa.Column(
            "passenger_count", sa.Integer, nullable=False, server_default="1"
        ),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("total_price", sa.Float, nullable=False),
        sa.Column("distance_km", sa.Integer, nullable=True),
        sa.Column(
            "payment_status",
            sa.String(20),
            nullable=False,
            server_default="pending",
        ),
        sa.Column(
            "refunded_amount", sa.Float, nullable=False, server_default="0"
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("total_price >= 0", name="ck_bookings_price"),
        sa.CheckConstraint("passenger_count >= 1", name="ck_bookings_passengers"),
    )
    op.create_index("idx_bookings_client", "bookings", ["client_id", "created_at"])
    op.create_index("idx_bookings_pilot", "bookings", ["pilot_id", "scheduled_date"])
    op.create_index("idx_bookings_status", "bookings", ["status", "scheduled_date"])
    op.create_index("idx_bookings_type", "bookings", ["booking_type"])

    # ── transactions ──────────────────────────────────────────────────
    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column(
            "booking_id",
            sa.Integer,
            sa.ForeignKey("bookings.id"),
            nullable=True,
        ),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("amount", sa.Float, nullable=False),
        sa.Column("payment_method", sa.String(20), nullable=False),
        sa.Column(
            "status", sa.String(20), nullable=False, server_default="pending"
        ),
        sa.Column("reference", sa.String(255), nullable=True),
        sa.Column("admin_notes", sa.Text, nullable=True),
        sa.Column(
            "processed_by", sa.Integer, sa.ForeignKey("users.id"), nullable=True
        ),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "idx_transactions_user", "transactions", ["user_id", "created_at"]
    )
    op.create_index("idx_transactions_booking", "transactions", ["booking_id"])
    op.create_index("idx_transactions_status", "transactions", ["status"])


def downgrade() -> None:
    op.drop_table("transactions")
    op.drop_table("bookings")
    op.drop_table("users")
