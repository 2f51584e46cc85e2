"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from src.domain.enums import (
    BookingStatus,
    BookingType,
    PaymentMethod,
    PaymentStatus,
    TransactionStatus,
    TransactionType,
)


# ── Requests ──────────────────────────────────────────────────────────


class PriceQuoteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_code: str = Field(..., alias="from", min_length=1)
    to_code: str = Field(..., alias="to", min_length=1)
    passengers: int = Field(1, ge=1)
    round_trip: bool = Field(False, alias="roundTrip")


class BookingCreateRequest(BaseModel):
    booking_type: BookingType
    from_location: Optional[str] = None
    to_location: Optional[str] = None
    scheduled_date: date
    scheduled_time: str = Field(..., min_length=1, max_length=10)
    return_date: Optional[date] = None
    is_round_trip: bool = False
    passenger_count: int = Field(1, ge=1)
    notes: Optional[str] = None
    total_price: Optional[float] = Field(
        None,
        ge=0,
        description="Required for experience bookings; transport bookings are priced server-side.",
    )


class PayBookingRequest(BaseModel):
    payment_method: str = Field(..., min_length=1)
    reference: Optional[str] = Field(None, max_length=255)


class RefundRequest(BaseModel):
    amount: Optional[float] = Field(None, gt=0)
    reason: Optional[str] = None
    refund_method: Literal["original", "wallet"] = "original"


class DepositRequest(BaseModel):
    amount: float = Field(..., gt=0)
    payment_method: str = Field(..., min_length=1)
    reference: Optional[str] = Field(None, max_length=255)


class TransactionReviewRequest(BaseModel):
    status: TransactionStatus
    admin_notes: Optional[str] = None


# ── Responses ─────────────────────────────────────────────────────────


class PriceBreakdownResponse(BaseModel):
    tier_base_price: float
    per_km_rate: float
    distance_cost: int
    passenger_modifier: str
    round_trip_discount: str

    model_config = {"from_attributes": True}


class PriceQuoteResponse(BaseModel):
    from_name: str
    to_name: str
    distance_km: int
    distance_unit: str = "km"
    passengers: int
    round_trip: bool
    base_price: int
    total_price: int
    price_per_passenger: int
    breakdown: PriceBreakdownResponse

    model_config = {"from_attributes": True}


class DestinationResponse(BaseModel):
    code: str
    name: str
    latitude: float
    longitude: float

    model_config = {"from_attributes": True}


class PricingTierResponse(BaseModel):
    max_km: Union[Literal["Unlimited"], float]
    base_price: float
    per_km: float


class DestinationsResponse(BaseModel):
    destinations: list[DestinationResponse]
    pricing_tiers: list[PricingTierResponse]


class BookingResponse(BaseModel):
    id: int
    client_id: int
    pilot_id: Optional[int] = None
    booking_type: BookingType
    status: BookingStatus
    from_location: Optional[str] = None
    to_location: Optional[str] = None
    scheduled_date: date
    scheduled_time: str
    return_date: Optional[date] = None
    is_round_trip: bool
    passenger_count: int
    notes: Optional[str] = None
    total_price: float
    distance_km: Optional[int] = None
    payment_status: PaymentStatus
    refunded_amount: float = 0.0
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class BookingListResponse(BaseModel):
    bookings: list[BookingResponse]
    total: int
    limit: int
    offset: int


class TransactionResponse(BaseModel):
    id: int
    user_id: int
    booking_id: Optional[int] = None
    type: TransactionType
    amount: float
    payment_method: PaymentMethod
    status: TransactionStatus
    reference: Optional[str] = None
    admin_notes: Optional[str] = None
    processed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class PaymentResponse(BaseModel):
    success: bool = True
    message: str
    payment_status: PaymentStatus
    new_balance: Optional[float] = None
    transaction: TransactionResponse


class RefundResponse(BaseModel):
    success: bool = True
    message: str = "Refund processed successfully"
    booking_id: int
    amount: float
    method: str
    total_refunded: float
    payment_status: PaymentStatus
    new_balance: Optional[float] = None
    transaction: TransactionResponse


class RefundStatusResponse(BaseModel):
    booking_id: int
    status: str
    refunded_amount: float
    total_price: float
    remaining_amount: float
    payment_status: PaymentStatus
    last_refund: Optional[TransactionResponse] = None

    model_config = {"from_attributes": True}


class TransactionReviewResponse(BaseModel):
    success: bool = True
    message: str
    balance_updated: bool
    new_balance: Optional[float] = None
    transaction: TransactionResponse


class BalanceResponse(BaseModel):
    balance: float
    transactions: list[TransactionResponse]


class DepositResponse(BaseModel):
    success: bool = True
    new_balance: float
    transaction: TransactionResponse


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
