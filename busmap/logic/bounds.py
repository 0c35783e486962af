"""Viewport bounds covering active vehicle markers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from busmap.logic.polyline import Coordinate


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned lat/lng rectangle."""

    south: float
    west: float
    north: float
    east: float

    @property
    def south_west(self) -> Coordinate:
        return (self.south, self.west)

    @property
    def north_east(self) -> Coordinate:
        return (self.north, self.east)

    def extend(self, point: Coordinate) -> Bounds:
        lat, lng = point
        return Bounds(
            south=min(self.south, lat),
            west=min(self.west, lng),
            north=max(self.north, lat),
            east=max(self.east, lng),
        )

    def contains(self, point: Coordinate) -> bool:
        lat, lng = point
        return self.south <= lat <= self.north and self.west <= lng <= self.east


def compute_bounds(positions: Iterable[Coordinate]) -> Bounds | None:
    """Return the smallest rectangle containing every position, or None if there are none."""
    bounds: Bounds | None = None
    for lat, lng in positions:
        if bounds is None:
            bounds = Bounds(south=lat, west=lng, north=lat, east=lng)
        else:
            bounds = bounds.extend((lat, lng))
    return bounds


__all__ = ["Bounds", "compute_bounds"]
