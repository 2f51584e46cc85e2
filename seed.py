"""
Seed script -- populates the database with sample data for reviewers.

Run after migrations:
    python seed.py

Creates:
  - 5 sample users (1 admin, 1 pilot, 3 clients with balances)
  - 5 sample bookings (transport priced by the pricing engine, one experience)
  - ledger history: completed deposits, one balance payment, one pending
    deposit and one pending bank transfer waiting for admin review

Prints a bearer token per user so the API can be exercised from ``/docs``.
"""

import asyncio
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import text

from src.domain.enums import (
    BookingType,
    PaymentMethod,
    PaymentStatus,
    TransactionStatus,
    TransactionType,
    UserRole,
)
from src.domain.pricing import PricingEngine
from src.infrastructure.database import async_session_factory, engine
from src.infrastructure.models import BookingModel, TransactionModel, UserModel
from src.security import create_access_token


USERS = [
    {"email": "admin@example.com", "full_name": "Ana Morales", "role": UserRole.ADMIN, "balance": 0.0},
    {"email": "pilot@example.com", "full_name": "Luis Herrera", "role": UserRole.PILOT, "balance": 0.0},
    {"email": "sofia@example.com", "full_name": "Sofia Castillo", "role": UserRole.CLIENT, "balance": 2500.0},
    {"email": "diego@example.com", "full_name": "Diego Ramirez", "role": UserRole.CLIENT, "balance": 800.0},
    {"email": "maria@example.com", "full_name": "Maria Lopez", "role": UserRole.CLIENT, "balance": 0.0},
]

# (client index, from, to, passengers, round trip, days ahead)
TRANSPORT_BOOKINGS = [
    (2, "GUA", "ANTIGUA", 1, False, 7),
    (2, "GUA", "TIKAL", 3, True, 14),
    (3, "GUA", "ATITLAN", 2, False, 10),
    (4, "FRS", "SEMUC", 1, False, 21),
]


async def seed():
    pricing = PricingEngine()
    now = datetime.now(timezone.utc)

    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(text("SELECT count(*) FROM users"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        # ── Users ─────────────────────────────────────────────────────
        user_models = []
        for u in USERS:
            m = UserModel(
                email=u["email"],
                full_name=u["full_name"],
                role=u["role"],
                account_balance=u["balance"],
            )
            session.add(m)
            user_models.append(m)
        await session.flush()
        print(f"  Created {len(user_models)} users")

        # Opening balances are backed by completed deposits
        for m in user_models:
            if m.account_balance > 0:
                session.add(
                    TransactionModel(
                        user_id=m.id,
                        type=TransactionType.DEPOSIT,
                        amount=m.account_balance,
                        payment_method=PaymentMethod.CARD,
                        status=TransactionStatus.COMPLETED,
                        reference="Opening balance",
                        processed_at=now,
                    )
                )

        # ── Bookings ──────────────────────────────────────────────────
        booking_models = []
        for client_idx, src, dst, pax, round_trip, days in TRANSPORT_BOOKINGS:
            quote = pricing.quote(src, dst, passengers=pax, round_trip=round_trip)
            scheduled = date.today() + timedelta(days=days)
            m = BookingModel(
                client_id=user_models[client_idx].id,
                booking_type=BookingType.TRANSPORT,
                from_location=src,
                to_location=dst,
                scheduled_date=scheduled,
                scheduled_time="09:00",
                return_date=scheduled + timedelta(days=2) if round_trip else None,
                is_round_trip=round_trip,
                passenger_count=pax,
                total_price=float(quote.total_price),
                distance_km=quote.distance_km,
            )
            session.add(m)
            booking_models.append(m)

        experience = BookingModel(
            client_id=user_models[3].id,
            booking_type=BookingType.EXPERIENCE,
            scheduled_date=date.today() + timedelta(days=30),
            scheduled_time="16:30",
            passenger_count=2,
            notes="Sunset volcano tour",
            total_price=1450.0,
        )
        session.add(experience)
        booking_models.append(experience)
        await session.flush()
        print(f"  Created {len(booking_models)} bookings")

        # ── Ledger history ────────────────────────────────────────────
        # Sofia paid her Antigua hop from balance
        paid = booking_models[0]
        paid.payment_status = PaymentStatus.PAID
        user_models[2].account_balance -= paid.total_price
        session.add(
            TransactionModel(
                user_id=user_models[2].id,
                booking_id=paid.id,
                type=TransactionType.PAYMENT,
                amount=-paid.total_price,
                payment_method=PaymentMethod.ACCOUNT_BALANCE,
                status=TransactionStatus.COMPLETED,
                reference=f"Flight payment - Booking {paid.id}",
                processed_at=now,
            )
        )

        # Diego is paying the Atitlan flight by bank transfer
        transfer = booking_models[2]
        transfer.payment_status = PaymentStatus.PROCESSING
        session.add(
            TransactionModel(
                user_id=user_models[3].id,
                booking_id=transfer.id,
                type=TransactionType.PAYMENT,
                amount=transfer.total_price,
                payment_method=PaymentMethod.BANK_TRANSFER,
                status=TransactionStatus.PENDING,
                reference=f"Booking payment - {transfer.id}",
            )
        )

        # Maria is waiting for a deposit approval
        session.add(
            TransactionModel(
                user_id=user_models[4].id,
                type=TransactionType.DEPOSIT,
                amount=1000.0,
                payment_method=PaymentMethod.BANK_TRANSFER,
                status=TransactionStatus.PENDING,
                reference="Wire BI-2231",
            )
        )
        await session.flush()
        print("  Created ledger history (2 pending for admin review)")

        await session.commit()

        print("\nBearer tokens:")
        for m in user_models:
            print(f"  {m.email:<20} {create_access_token(m.id, m.role)}")

        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
