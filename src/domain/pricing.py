"""
Tiered Flight Pricing Engine  (Strategy Pattern)
================================================

Formula
-------
Base  = Tier_Base_Price + Distance x Tier_Per_KM_Rate
Total = round(Fare_Strategy(Base) x Passenger_Multiplier)

* **Tier**: first tier (ascending ``max_distance_km``) whose bound covers the
  distance; the last tier is unbounded and catches everything else.
* **Fare_Strategy**: one-way keeps the base, round-trip doubles it and takes
  10 % off.  Applied *before* the passenger multiplier.
* **Passenger_Multiplier** = 1 + (passengers - 1) x 0.2

Only displayed figures are rounded (half-up to the nearest integer); the
unrounded base feeds the multiplier so quotes are reproducible.

Complexity: O(T) per quote where T = number of tiers.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass

from .destinations import DESTINATIONS, Destination, get_destination
from .distance import haversine_km
from .exceptions import InvalidDestination, InvalidPassengerCount

ROUND_TRIP_DISCOUNT = 0.10
EXTRA_PASSENGER_SURCHARGE = 0.20


# ── Value objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class PricingTier:
    max_distance_km: float
    base_price: float
    per_km_rate: float


PRICING_TIERS: tuple[PricingTier, ...] = (
    PricingTier(50, 300, 5),  # short hops
    PricingTier(150, 500, 4),  # medium
    PricingTier(300, 800, 3.5),  # long
    PricingTier(math.inf, 1200, 3),  # very long (catch-all)
)


@dataclass(frozen=True)
class PriceBreakdown:
    tier_base_price: float
    per_km_rate: float
    distance_cost: int
    passenger_modifier: str
    round_trip_discount: str


@dataclass(frozen=True)
class PriceQuote:
    from_name: str
    to_name: str
    distance_km: int
    passengers: int
    round_trip: bool
    base_price: int
    total_price: int
    price_per_passenger: int
    breakdown: PriceBreakdown


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return math.floor(value + 0.5)


# ── Strategy hierarchy ────────────────────────────────────────────────


class FareStrategy(ABC):
    @abstractmethod
    def apply(self, base_price: float) -> float: ...

    @abstractmethod
    def label(self) -> str: ...


class OneWayFare(FareStrategy):
    def apply(self, base_price: float) -> float:
        return base_price

    def label(self) -> str:
        return "N/A"


class RoundTripFare(FareStrategy):
    """Both legs at the one-way price, minus a flat discount."""

    def __init__(self, discount: float = ROUND_TRIP_DISCOUNT):
        self.discount = discount

    def apply(self, base_price: float) -> float:
        return base_price * 2 * (1 - self.discount)

    def label(self) -> str:
        return f"-{round(self.discount * 100)}%"


# ── Pure helpers ──────────────────────────────────────────────────────


def select_tier(
    distance_km: float, tiers: tuple[PricingTier, ...] = PRICING_TIERS
) -> PricingTier:
    for tier in tiers:
        if tier.max_distance_km >= distance_km:
            return tier
    return tiers[-1]


def passenger_multiplier(passengers: int) -> float:
    return 1 + (passengers - 1) * EXTRA_PASSENGER_SURCHARGE


def passenger_modifier_label(passengers: int) -> str:
    if passengers <= 1:
        return "N/A"
    return f"+{(passengers - 1) * round(EXTRA_PASSENGER_SURCHARGE * 100)}%"


def total_price(base_price: float, passengers: int, round_trip: bool) -> int:
    """Apply the fare strategy then the passenger multiplier, rounding once."""
    fare = RoundTripFare() if round_trip else OneWayFare()
    return round_half_up(fare.apply(base_price) * passenger_multiplier(passengers))


# ── Engine facade ─────────────────────────────────────────────────────


class PricingEngine:
    """High-level API used by the pricing and booking routes."""

    def __init__(self, tiers: tuple[PricingTier, ...] = PRICING_TIERS):
        self.tiers = tiers

    @staticmethod
    def _lookup(code: str) -> Destination:
        destination = get_destination(code)
        if destination is None:
            raise InvalidDestination(f"Invalid destination code: {code}")
        return destination

    def quote(
        self,
        from_code: str,
        to_code: str,
        passengers: int = 1,
        round_trip: bool = False,
    ) -> PriceQuote:
        origin = self._lookup(from_code)
        target = self._lookup(to_code)
        if passengers < 1:
            raise InvalidPassengerCount()

        distance = haversine_km(
            origin.latitude, origin.longitude, target.latitude, target.longitude
        )
        tier = select_tier(distance, self.tiers)

        one_way = tier.base_price + distance * tier.per_km_rate
        fare: FareStrategy = RoundTripFare() if round_trip else OneWayFare()
        base_price = fare.apply(one_way)
        total = total_price(one_way, passengers, round_trip)

        return PriceQuote(
            from_name=origin.name,
            to_name=target.name,
            distance_km=round_half_up(distance),
            passengers=passengers,
            round_trip=round_trip,
            base_price=round_half_up(base_price),
            total_price=total,
            price_per_passenger=round_half_up(total / passengers),
            breakdown=PriceBreakdown(
                tier_base_price=tier.base_price,
                per_km_rate=tier.per_km_rate,
                distance_cost=round_half_up(distance * tier.per_km_rate),
                passenger_modifier=passenger_modifier_label(passengers),
                round_trip_discount=fare.label(),
            ),
        )

    @staticmethod
    def destinations() -> list[Destination]:
        return list(DESTINATIONS.values())

    def tier_table(self) -> list[PricingTier]:
        return list(self.tiers)
