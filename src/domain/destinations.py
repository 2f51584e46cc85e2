"""
Static destination coordinate table.

Built once at import time and exposed through a read-only mapping; the
pricing engine never mutates it.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class Destination:
    code: str
    name: str
    latitude: float
    longitude: float


_DESTINATIONS = (
    Destination("GUA", "Guatemala City", 14.5833, -90.5275),
    Destination("ANTIGUA", "Antigua Guatemala", 14.5586, -90.7339),
    Destination("ATITLAN", "Lake Atitlan", 14.6906, -91.2025),
    Destination("TIKAL", "Tikal", 17.2221, -89.6236),
    Destination("FRS", "Flores", 16.9183, -89.8942),
    Destination("SEMUC", "Semuc Champey", 15.4839, -90.2311),
    Destination("MONTERRICO", "Monterrico Beach", 13.9333, -90.8333),
)

DESTINATIONS: Mapping[str, Destination] = MappingProxyType(
    {d.code: d for d in _DESTINATIONS}
)


def get_destination(code: str) -> Destination | None:
    return DESTINATIONS.get(code)
