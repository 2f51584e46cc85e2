"""
Booking endpoints
=================

POST /api/v1/bookings               -- create a booking (transport is priced server-side)
GET  /api/v1/bookings               -- list bookings visible to the caller
GET  /api/v1/bookings/{id}          -- booking detail
POST /api/v1/bookings/{id}/pay      -- pay from balance or start a bank transfer
POST /api/v1/bookings/{id}/refund   -- admin refund to wallet or original method
GET  /api/v1/bookings/{id}/refund   -- refund status (owner or admin)
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_current_user, get_db, require_roles
from src.api.middleware import limiter
from src.api.schemas import (
    BookingCreateRequest,
    BookingListResponse,
    BookingResponse,
    PayBookingRequest,
    PaymentResponse,
    RefundRequest,
    RefundResponse,
    RefundStatusResponse,
    TransactionResponse,
)
from src.config import settings
from src.domain.enums import (
    BookingStatus,
    BookingType,
    PaymentStatus,
    UserRole,
)
from src.domain.exceptions import BookingNotFound, Forbidden, InvalidBookingRequest
from src.domain.pricing import PricingEngine
from src.infrastructure.models import BookingModel
from src.infrastructure.repositories import BookingRepository
from src.security import Caller
from src.services.ledger import LedgerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["bookings"])

pricing_engine = PricingEngine()


@router.post(
    "",
    status_code=201,
    response_model=BookingResponse,
    summary="Create a booking",
)
@limiter.limit(settings.rate_limit)
async def create_booking(
    request: Request,
    body: BookingCreateRequest,
    caller: Caller = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if body.scheduled_date < date.today():
        raise InvalidBookingRequest("Cannot book for past dates")
    if body.return_date and body.return_date < body.scheduled_date:
        raise InvalidBookingRequest("Return date must be on or after departure date")

    distance_km = None
    if body.booking_type == BookingType.TRANSPORT:
        if not body.from_location or not body.to_location:
            raise InvalidBookingRequest("Transport bookings need from/to locations")
        quote = pricing_engine.quote(
            body.from_location,
            body.to_location,
            passengers=body.passenger_count,
            round_trip=body.is_round_trip,
        )
        total_price = float(quote.total_price)
        distance_km = quote.distance_km
    else:
        if body.total_price is None:
            raise InvalidBookingRequest("Experience bookings need a total price")
        total_price = body.total_price

    booking = await BookingRepository(db).create(
        BookingModel(
            client_id=caller.user_id,
            booking_type=body.booking_type,
            status=BookingStatus.PENDING,
            from_location=body.from_location,
            to_location=body.to_location,
            scheduled_date=body.scheduled_date,
            scheduled_time=body.scheduled_time,
            return_date=body.return_date if body.is_round_trip else None,
            is_round_trip=body.is_round_trip,
            passenger_count=body.passenger_count,
            notes=body.notes,
            total_price=total_price,
            distance_km=distance_km,
            payment_status=PaymentStatus.PENDING,
            refunded_amount=0.0,
        )
    )
    logger.info(
        "Booking %s created by user %s (%s, %.2f)",
        booking.id, caller.user_id, body.booking_type.value, total_price,
    )
    return booking


@router.get(
    "",
    response_model=BookingListResponse,
    summary="List bookings (own for clients/pilots, all for admins)",
)
@limiter.limit(settings.rate_limit)
async def list_bookings(
    request: Request,
    status: Optional[BookingStatus] = None,
    booking_type: Optional[BookingType] = Query(None, alias="type"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    caller: Caller = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    filters = {}
    if caller.role == UserRole.CLIENT:
        filters["client_id"] = caller.user_id
    elif caller.role == UserRole.PILOT:
        filters["participant_id"] = caller.user_id

    bookings, total = await BookingRepository(db).list_bookings(
        status=status, booking_type=booking_type, limit=limit, offset=offset, **filters
    )
    return BookingListResponse(
        bookings=[BookingResponse.model_validate(b) for b in bookings],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Get a booking",
)
@limiter.limit(settings.rate_limit)
async def get_booking(
    request: Request,
    booking_id: int,
    caller: Caller = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    booking = await BookingRepository(db).get_by_id(booking_id)
    if booking is None:
        raise BookingNotFound()
    if not caller.is_admin and caller.user_id not in (booking.client_id, booking.pilot_id):
        raise Forbidden()
    return booking


@router.post(
    "/{booking_id}/pay",
    response_model=PaymentResponse,
    summary="Pay for a booking",
    description=(
        "``account_balance`` debits the caller's balance, marks the booking "
        "paid and records a completed payment in one atomic unit. "
        "``bank_transfer`` records a pending payment for admin review."
    ),
)
@limiter.limit(settings.rate_limit)
async def pay_booking(
    request: Request,
    booking_id: int,
    body: PayBookingRequest,
    caller: Caller = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await LedgerService(db).pay_booking(
        booking_id, caller, body.payment_method, reference=body.reference
    )
    paid = result.payment_status == PaymentStatus.PAID
    return PaymentResponse(
        message="Payment successful" if paid else "Bank transfer initiated",
        payment_status=result.payment_status,
        new_balance=result.new_balance,
        transaction=TransactionResponse.model_validate(result.transaction),
    )


@router.post(
    "/{booking_id}/refund",
    response_model=RefundResponse,
    summary="Refund a paid booking (admin)",
)
@limiter.limit(settings.rate_limit)
async def refund_booking(
    request: Request,
    booking_id: int,
    body: RefundRequest,
    caller: Caller = Depends(require_roles(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    result = await LedgerService(db).refund_booking(
        booking_id,
        caller,
        amount=body.amount,
        reason=body.reason,
        refund_method=body.refund_method,
    )
    return RefundResponse(
        booking_id=booking_id,
        amount=result.refunded_amount,
        method=body.refund_method,
        total_refunded=result.total_refunded,
        payment_status=result.payment_status,
        new_balance=result.new_balance,
        transaction=TransactionResponse.model_validate(result.transaction),
    )


@router.get(
    "/{booking_id}/refund",
    response_model=RefundStatusResponse,
    summary="Refund status of a booking",
)
@limiter.limit(settings.rate_limit)
async def get_refund_status(
    request: Request,
    booking_id: int,
    caller: Caller = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    status = await LedgerService(db).refund_status(booking_id, caller)
    return RefundStatusResponse.model_validate(status)
