"""Owned registries for the trip schedule and the active animators."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Iterable

from busmap.data.schedule_feed import ScheduledTrip
from busmap.logic.polyline import Coordinate

if TYPE_CHECKING:
    from busmap.logic.animator import RouteAnimator


class TripSchedule:
    """Loaded trips plus the single writer of their ``started`` flags."""

    def __init__(self, trips: Iterable[ScheduledTrip]) -> None:
        self._trips = list(trips)

    def __len__(self) -> int:
        return len(self._trips)

    def due(self, now: datetime) -> list[ScheduledTrip]:
        """Trips whose start time has passed and that have not been started."""
        return [trip for trip in self._trips if not trip.started and trip.start_time <= now]

    def mark_started(self, trip: ScheduledTrip) -> None:
        if trip.started:
            raise ValueError(f"Trip {trip.id} was already started")
        trip.started = True


class ActiveRegistry:
    """Trip id -> animating RouteAnimator; written only by the scheduler."""

    def __init__(self) -> None:
        self._animators: dict[str, RouteAnimator] = {}

    def add(self, animator: RouteAnimator) -> None:
        if animator.trip_id in self._animators:
            raise ValueError(f"Trip {animator.trip_id} already has an active animator")
        self._animators[animator.trip_id] = animator

    def remove(self, trip_id: str) -> RouteAnimator | None:
        return self._animators.pop(trip_id, None)

    def get(self, trip_id: str) -> RouteAnimator | None:
        return self._animators.get(trip_id)

    def __contains__(self, trip_id: object) -> bool:
        return trip_id in self._animators

    def __len__(self) -> int:
        return len(self._animators)

    def animators(self) -> list[RouteAnimator]:
        return list(self._animators.values())

    def marker_positions(self) -> list[Coordinate]:
        """Positions of every active animator that has a placed marker."""
        positions = []
        for animator in self._animators.values():
            position = animator.position
            if position is not None:
                positions.append(position)
        return positions


__all__ = ["ActiveRegistry", "TripSchedule"]
