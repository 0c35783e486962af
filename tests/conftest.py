from __future__ import annotations

from concurrent.futures import Future
from datetime import datetime, timezone
import math

import pytest

from busmap.data.directions_client import RouteLeg, RouteResult
from busmap.data.schedule_feed import PlaceRef, ScheduledTrip
from busmap.logic.geo import EARTH_RADIUS_M
from busmap.logic.polyline import encode
from busmap.logic.timers import VirtualTimerQueue
from busmap.rendering.surface import MapCanvas

BASE_TIME = datetime(2026, 10, 18, 8, 0, tzinfo=timezone.utc)
ORIGIN = (30.0, 76.0)


class FakeRouteProvider:
    """Hands out unresolved futures so tests decide when and how each fetch finishes."""

    def __init__(self) -> None:
        self.requests: list[tuple[PlaceRef, PlaceRef, Future]] = []

    def request_route(self, origin: PlaceRef, destination: PlaceRef) -> Future:
        future: Future = Future()
        self.requests.append((origin, destination, future))
        return future

    def resolve(self, index: int, result: RouteResult) -> None:
        self.requests[index][2].set_result(result)

    def fail(self, index: int, exc: Exception) -> None:
        self.requests[index][2].set_exception(exc)


def north_of(point: tuple[float, float], metres: float) -> tuple[float, float]:
    lat, lng = point
    return (lat + math.degrees(metres / EARTH_RADIUS_M), lng)


def make_result(points: list[tuple[float, float]], legs: int = 1) -> RouteResult:
    leg = RouteLeg(
        start_location=points[0],
        end_location=points[-1],
        start_address="Ludhiana Bus Stand",
        end_address="ISBT Sector 43",
    )
    return RouteResult(encoded_polyline=encode(points), legs=[leg] * legs)


def make_trip(trip_id: str = "PB10-1234", start_time: datetime = BASE_TIME) -> ScheduledTrip:
    return ScheduledTrip(
        id=trip_id,
        operator_label="PRTC",
        headsign="Chandigarh",
        start_time=start_time,
        origin=PlaceRef("Ludhiana Bus Stand"),
        destination=PlaceRef("ISBT Sector 43"),
    )


@pytest.fixture()
def provider() -> FakeRouteProvider:
    return FakeRouteProvider()


@pytest.fixture()
def timers() -> VirtualTimerQueue:
    return VirtualTimerQueue()


@pytest.fixture()
def canvas() -> MapCanvas:
    return MapCanvas()


@pytest.fixture()
def three_point_route() -> RouteResult:
    first = north_of(ORIGIN, 1000)
    second = north_of(first, 2000)
    return make_result([ORIGIN, first, second])
