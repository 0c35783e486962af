"""Per-trip route animation: fetch geometry, step a marker along it, clean up."""

from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass
from enum import Enum
import logging
from typing import Callable

from busmap.data.directions_client import RouteFetchError, RouteLeg, RouteProvider, RouteResult
from busmap.data.schedule_feed import ScheduledTrip
from busmap.logic.geo import distance_m
from busmap.logic.polyline import Coordinate, DecodeError, decode
from busmap.logic.timers import TimerHandle, TimerQueue
from busmap.rendering.surface import ICON_END, ICON_START, ICON_VEHICLE, MapSurface

logger = logging.getLogger(__name__)

# Assumed average bus speed of 40 km/h.
AVERAGE_SPEED_MPS = 11.11


class AnimatorPhase(str, Enum):
    INITIALIZING = "initializing"
    ANIMATING = "animating"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class RouteGeometry:
    """Decoded route for one trip."""

    coordinates: tuple[Coordinate, ...]
    origin_label: str
    destination_label: str


def build_geometry(result: RouteResult) -> tuple[RouteGeometry, RouteLeg]:
    """Decode a provider result, rejecting routes with no legs or no points."""
    if not result.legs:
        raise RouteFetchError("No route legs found")
    coordinates = tuple(decode(result.encoded_polyline))
    if not coordinates:
        raise DecodeError("Route polyline has no coordinates")
    leg = result.legs[0]
    geometry = RouteGeometry(
        coordinates=coordinates,
        origin_label=leg.start_address,
        destination_label=leg.end_address,
    )
    return geometry, leg


class RouteAnimator:
    """Animates one scheduled trip along its route.

    Phases run ``INITIALIZING -> ANIMATING -> COMPLETED``; a failed route
    fetch or decode goes to ``FAILED`` instead. Either terminal phase runs
    ``cleanup`` once, which resolves ``completion`` with the final phase.
    """

    def __init__(
        self,
        trip: ScheduledTrip,
        provider: RouteProvider,
        surface: MapSurface,
        timers: TimerQueue,
        *,
        average_speed_mps: float = AVERAGE_SPEED_MPS,
        on_animating: Callable[[RouteAnimator], None] | None = None,
        on_complete: Callable[[RouteAnimator], None] | None = None,
    ) -> None:
        if average_speed_mps <= 0:
            raise ValueError("average_speed_mps must be positive")
        self.trip = trip
        self.geometry: RouteGeometry | None = None
        self.cursor = 0
        self.phase = AnimatorPhase.INITIALIZING
        self.completion: Future[AnimatorPhase] = Future()

        self._provider = provider
        self._surface = surface
        self._timers = timers
        self._speed_mps = average_speed_mps
        self._on_animating = on_animating
        self._pending_timer: TimerHandle | None = None
        self._vehicle_marker: int | None = None
        self._start_marker: int | None = None
        self._end_marker: int | None = None
        self._overlay: int | None = None
        self._requested = False
        self._cleaned_up = False

        if on_complete is not None:
            self.completion.add_done_callback(lambda _future: on_complete(self))

    @property
    def trip_id(self) -> str:
        return self.trip.id

    @property
    def position(self) -> Coordinate | None:
        """Current vehicle marker position, or None when no marker is placed."""
        if self._vehicle_marker is None or self.geometry is None:
            return None
        return self.geometry.coordinates[self.cursor]

    @property
    def pending_timer(self) -> TimerHandle | None:
        return self._pending_timer

    def initialize(self) -> None:
        """Request the route; the animation starts when the response is handled."""
        if self._requested:
            logger.warning("Animator for trip %s was already initialized", self.trip_id)
            return
        self._requested = True
        try:
            future = self._provider.request_route(self.trip.origin, self.trip.destination)
        except Exception as exc:
            self._fail(exc)
            return
        future.add_done_callback(
            lambda done: self._timers.call_soon_threadsafe(self._on_route, done)
        )

    def _on_route(self, future: Future[RouteResult]) -> None:
        if self._cleaned_up:
            logger.debug("Discarding route for trip %s that arrived after cleanup", self.trip_id)
            return
        try:
            geometry, leg = build_geometry(future.result())
        except Exception as exc:
            self._fail(exc)
            return
        self._start(geometry, leg)

    def _start(self, geometry: RouteGeometry, leg: RouteLeg) -> None:
        self.geometry = geometry
        self._overlay = self._surface.render_route(geometry.coordinates)
        self._start_marker = self._surface.place_marker(
            leg.start_location, ICON_START, f"Start: {geometry.origin_label}"
        )
        self._end_marker = self._surface.place_marker(
            leg.end_location, ICON_END, f"End: {geometry.destination_label}"
        )

        self.phase = AnimatorPhase.ANIMATING
        self.cursor = 0
        self._vehicle_marker = self._surface.place_marker(
            geometry.coordinates[0],
            ICON_VEHICLE,
            f"{self.trip.operator_label} ({self.trip.headsign})",
        )
        logger.info(
            "Animation started for trip %s (%d points)", self.trip_id, len(geometry.coordinates)
        )
        if self._on_animating is not None:
            self._on_animating(self)
        self._schedule_next_step()

    def segment_seconds(self, index: int) -> float:
        """Travel time from point ``index`` to ``index + 1`` at the average speed."""
        if self.geometry is None:
            raise RuntimeError("Route geometry is not loaded")
        coordinates = self.geometry.coordinates
        return distance_m(coordinates[index], coordinates[index + 1]) / self._speed_mps

    def _schedule_next_step(self) -> None:
        if self.geometry is None:
            raise RuntimeError("Route geometry is not loaded")
        if self.cursor >= len(self.geometry.coordinates) - 1:
            logger.info("Animation finished for trip %s", self.trip_id)
            self.phase = AnimatorPhase.COMPLETED
            self.cleanup()
            return
        self._pending_timer = self._timers.call_later(self.segment_seconds(self.cursor), self._step)

    def _step(self) -> None:
        self._pending_timer = None
        if self.phase is not AnimatorPhase.ANIMATING or self.geometry is None:
            return
        self.cursor += 1
        self._surface.move_marker(self._vehicle_marker, self.geometry.coordinates[self.cursor])
        self._schedule_next_step()

    def _fail(self, exc: Exception) -> None:
        if isinstance(exc, (RouteFetchError, DecodeError)):
            logger.error("Could not get route for trip %s: %s", self.trip_id, exc)
        else:
            logger.error("Unexpected error fetching route for trip %s", self.trip_id, exc_info=exc)
        self.phase = AnimatorPhase.FAILED
        self.cleanup()

    def cleanup(self) -> None:
        """Remove everything this animator drew and resolve ``completion``; idempotent."""
        if self._cleaned_up:
            return
        self._cleaned_up = True

        # Retired from outside before reaching a terminal phase.
        if self.phase is AnimatorPhase.INITIALIZING:
            self.phase = AnimatorPhase.FAILED
        elif self.phase is AnimatorPhase.ANIMATING:
            self.phase = AnimatorPhase.COMPLETED

        if self._pending_timer is not None:
            self._pending_timer.cancel()
            self._pending_timer = None

        for handle in (self._vehicle_marker, self._start_marker, self._end_marker):
            if handle is not None:
                self._surface.remove_marker(handle)
        self._vehicle_marker = None
        self._start_marker = None
        self._end_marker = None
        if self._overlay is not None:
            self._surface.remove_overlay(self._overlay)
            self._overlay = None

        self.completion.set_result(self.phase)


__all__ = [
    "AVERAGE_SPEED_MPS",
    "AnimatorPhase",
    "RouteAnimator",
    "RouteGeometry",
    "build_geometry",
]
