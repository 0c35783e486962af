"""Great-circle helpers for route stepping."""

from __future__ import annotations

import math

from busmap.logic.polyline import Coordinate

# Spherical earth radius used by web map providers for distance computations.
EARTH_RADIUS_M = 6378137.0


def distance_m(a: Coordinate, b: Coordinate) -> float:
    """Return the haversine distance between two (lat, lng) points in metres."""
    lat1, lng1 = map(math.radians, a)
    lat2, lng2 = map(math.radians, b)
    sin_lat = math.sin((lat2 - lat1) / 2.0)
    sin_lng = math.sin((lng2 - lng1) / 2.0)
    h = sin_lat**2 + math.cos(lat1) * math.cos(lat2) * sin_lng**2
    return 2.0 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(h)))


__all__ = ["EARTH_RADIUS_M", "distance_m"]
