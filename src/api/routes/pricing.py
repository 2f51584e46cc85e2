"""
Pricing endpoints
=================

POST /api/v1/pricing/calculate    -- quote a point-to-point flight
GET  /api/v1/pricing/destinations -- known location codes and the tier table
"""

import math

from fastapi import APIRouter, Request

from src.api.middleware import limiter
from src.api.schemas import (
    DestinationResponse,
    DestinationsResponse,
    ErrorResponse,
    PriceQuoteRequest,
    PriceQuoteResponse,
    PricingTierResponse,
)
from src.config import settings
from src.domain.pricing import PricingEngine

router = APIRouter(prefix="/pricing", tags=["pricing"])

pricing_engine = PricingEngine()


@router.post(
    "/calculate",
    response_model=PriceQuoteResponse,
    summary="Quote a flight between two destination codes",
    responses={400: {"model": ErrorResponse, "description": "Unknown destination code"}},
)
@limiter.limit(settings.rate_limit)
async def calculate_price(request: Request, body: PriceQuoteRequest):
    quote = pricing_engine.quote(
        body.from_code,
        body.to_code,
        passengers=body.passengers,
        round_trip=body.round_trip,
    )
    return PriceQuoteResponse.model_validate(quote)


@router.get(
    "/destinations",
    response_model=DestinationsResponse,
    summary="List destination codes and pricing tiers",
)
@limiter.limit(settings.rate_limit)
async def list_destinations(request: Request):
    return DestinationsResponse(
        destinations=[
            DestinationResponse.model_validate(d)
            for d in pricing_engine.destinations()
        ],
        pricing_tiers=[
            PricingTierResponse(
                max_km="Unlimited" if math.isinf(t.max_distance_km) else t.max_distance_km,
                base_price=t.base_price,
                per_km=t.per_km_rate,
            )
            for t in pricing_engine.tier_table()
        ],
    )
