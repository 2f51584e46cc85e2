"""Unit tests for the tiered flight pricing engine."""

import itertools
import math

import pytest

from src.domain.destinations import DESTINATIONS
from src.domain.distance import haversine_km
from src.domain.exceptions import InvalidDestination, InvalidPassengerCount
from src.domain.pricing import (
    PRICING_TIERS,
    OneWayFare,
    PricingEngine,
    RoundTripFare,
    passenger_modifier_label,
    passenger_multiplier,
    round_half_up,
    select_tier,
    total_price,
)


def _distance(a: str, b: str) -> float:
    x, y = DESTINATIONS[a], DESTINATIONS[b]
    return haversine_km(x.latitude, x.longitude, y.latitude, y.longitude)


class TestFareStrategies:
    def test_one_way_keeps_base(self):
        assert OneWayFare().apply(400.0) == 400.0
        assert OneWayFare().label() == "N/A"

    def test_round_trip_doubles_minus_ten_percent(self):
        assert RoundTripFare().apply(400.0) == pytest.approx(720.0)
        assert RoundTripFare().label() == "-10%"


class TestPureHelpers:
    def test_select_tier_bounds_are_inclusive(self):
        assert select_tier(0) is PRICING_TIERS[0]
        assert select_tier(50) is PRICING_TIERS[0]
        assert select_tier(50.01) is PRICING_TIERS[1]
        assert select_tier(150) is PRICING_TIERS[1]
        assert select_tier(300) is PRICING_TIERS[2]

    def test_select_tier_catch_all(self):
        assert select_tier(5000) is PRICING_TIERS[-1]
        assert math.isinf(PRICING_TIERS[-1].max_distance_km)

    def test_passenger_multiplier(self):
        assert passenger_multiplier(1) == pytest.approx(1.0)
        assert passenger_multiplier(3) == pytest.approx(1.4)

    def test_passenger_modifier_label(self):
        assert passenger_modifier_label(1) == "N/A"
        assert passenger_modifier_label(2) == "+20%"
        assert passenger_modifier_label(4) == "+60%"

    def test_round_half_up(self):
        assert round_half_up(411.5) == 412
        assert round_half_up(412.5) == 413  # not banker's rounding
        assert round_half_up(411.49) == 411

    def test_total_price_round_trip_then_passengers(self):
        # 405 x 2 x 0.9 = 729, x 1.4 = 1020.6
        assert total_price(405, 3, True) == 1021

    def test_total_price_one_way_single(self):
        assert total_price(405, 1, False) == 405


class TestPricingEngine:
    def setup_method(self):
        self.engine = PricingEngine()

    def test_guatemala_city_to_antigua(self):
        distance = _distance("GUA", "ANTIGUA")
        assert 20 < distance < 24

        quote = self.engine.quote("GUA", "ANTIGUA")
        expected = round_half_up(300 + distance * 5)
        assert quote.total_price == expected
        assert quote.base_price == expected
        assert quote.distance_km == round_half_up(distance)
        assert quote.from_name == "Guatemala City"
        assert quote.to_name == "Antigua Guatemala"
        assert quote.breakdown.tier_base_price == 300
        assert quote.breakdown.per_km_rate == 5
        assert quote.breakdown.passenger_modifier == "N/A"
        assert quote.breakdown.round_trip_discount == "N/A"

    def test_round_trip_with_passengers(self):
        distance = _distance("GUA", "ANTIGUA")
        one_way = 300 + distance * 5

        quote = self.engine.quote("GUA", "ANTIGUA", passengers=3, round_trip=True)
        assert quote.base_price == round_half_up(one_way * 2 * 0.9)
        assert quote.total_price == round_half_up(one_way * 2 * 0.9 * 1.4)
        assert quote.price_per_passenger == round_half_up(quote.total_price / 3)
        assert quote.breakdown.passenger_modifier == "+40%"
        assert quote.breakdown.round_trip_discount == "-10%"

    def test_same_code_is_tier_one_floor(self):
        quote = self.engine.quote("TIKAL", "TIKAL")
        assert quote.distance_km == 0
        assert quote.total_price == 300

    @pytest.mark.parametrize("origin,destination", list(itertools.permutations(DESTINATIONS, 2)))
    def test_quote_is_symmetric(self, origin, destination):
        there = self.engine.quote(origin, destination, passengers=2)
        back = self.engine.quote(destination, origin, passengers=2)
        assert there.total_price == back.total_price
        assert there.distance_km == back.distance_km

    def test_total_monotonic_in_passengers(self):
        totals = [
            self.engine.quote("GUA", "ATITLAN", passengers=n).total_price
            for n in range(1, 7)
        ]
        assert totals == sorted(totals)
        assert len(set(totals)) == len(totals)

    def test_long_route_uses_higher_tier(self):
        distance = _distance("MONTERRICO", "TIKAL")
        tier = select_tier(distance)
        quote = self.engine.quote("MONTERRICO", "TIKAL")
        assert quote.breakdown.tier_base_price == tier.base_price
        assert tier.base_price >= 800

    def test_unknown_code_raises(self):
        with pytest.raises(InvalidDestination) as exc:
            self.engine.quote("GUA", "NOWHERE")
        assert exc.value.message == "Invalid destination code: NOWHERE"
        assert exc.value.status_code == 400

    def test_codes_are_case_sensitive(self):
        with pytest.raises(InvalidDestination):
            self.engine.quote("gua", "ANTIGUA")

    def test_zero_passengers_rejected(self):
        with pytest.raises(InvalidPassengerCount):
            self.engine.quote("GUA", "ANTIGUA", passengers=0)

    def test_destinations_and_tier_table(self):
        codes = {d.code for d in self.engine.destinations()}
        assert codes == {"GUA", "ANTIGUA", "ATITLAN", "TIKAL", "FRS", "SEMUC", "MONTERRICO"}
        assert self.engine.tier_table() == list(PRICING_TIERS)
