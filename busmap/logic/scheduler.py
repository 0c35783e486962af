"""Poll the trip schedule and run one RouteAnimator per due trip."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Callable

from busmap.data.directions_client import RouteProvider
from busmap.logic.animator import AVERAGE_SPEED_MPS, RouteAnimator
from busmap.logic.bounds import Bounds, compute_bounds
from busmap.logic.registry import ActiveRegistry, TripSchedule
from busmap.logic.timers import TimerHandle, TimerQueue
from busmap.rendering.surface import MapSurface

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 30


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AnimationScheduler:
    """Starts animators as their trips fall due and retires them on completion.

    Animators waiting on their route are kept in a pending table and only move
    into the ``ActiveRegistry`` once they start animating, so a trip whose
    route fails never shows up there.
    """

    def __init__(
        self,
        schedule: TripSchedule,
        registry: ActiveRegistry,
        provider: RouteProvider,
        surface: MapSurface,
        timers: TimerQueue,
        *,
        poll_interval_seconds: float = POLL_INTERVAL_SECONDS,
        average_speed_mps: float = AVERAGE_SPEED_MPS,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        if poll_interval_seconds <= 0:
            raise ValueError("poll_interval_seconds must be positive")
        self._schedule = schedule
        self._registry = registry
        self._provider = provider
        self._surface = surface
        self._timers = timers
        self._poll_interval_seconds = poll_interval_seconds
        self._average_speed_mps = average_speed_mps
        self._now = now
        self._pending: dict[str, RouteAnimator] = {}
        self._poll_timer: TimerHandle | None = None
        self._running = False

    @property
    def registry(self) -> ActiveRegistry:
        return self._registry

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def start(self) -> None:
        """Poll once now, then every ``poll_interval_seconds``."""
        if self._running:
            return
        self._running = True
        logger.info("Scheduler started with %d trips", len(self._schedule))
        self._tick()

    def stop(self) -> None:
        """Stop polling and retire every pending and active animator."""
        self._running = False
        if self._poll_timer is not None:
            self._poll_timer.cancel()
            self._poll_timer = None
        for animator in list(self._pending.values()) + self._registry.animators():
            animator.cleanup()
        logger.info("Scheduler stopped")

    def _tick(self) -> None:
        self._poll_timer = None
        if not self._running:
            return
        self.poll()
        self._poll_timer = self._timers.call_later(self._poll_interval_seconds, self._tick)

    def poll(self) -> list[str]:
        """Start an animator for every due trip; return the ids started."""
        now = self._now()
        started: list[str] = []
        for trip in self._schedule.due(now):
            # Flag before the fetch is issued so a re-entrant poll cannot start it twice.
            self._schedule.mark_started(trip)
            logger.info("Trip %s is starting its journey at %s", trip.id, now.isoformat())

            animator = RouteAnimator(
                trip,
                self._provider,
                self._surface,
                self._timers,
                average_speed_mps=self._average_speed_mps,
                on_animating=self._register,
                on_complete=self._retire,
            )
            self._pending[trip.id] = animator
            animator.initialize()
            started.append(trip.id)

        if started:
            self.fit_viewport()
        return started

    def fit_viewport(self) -> Bounds | None:
        bounds = compute_bounds(self._registry.marker_positions())
        if bounds is not None:
            self._surface.fit_viewport(bounds)
        return bounds

    def _register(self, animator: RouteAnimator) -> None:
        self._pending.pop(animator.trip_id, None)
        self._registry.add(animator)

    def _retire(self, animator: RouteAnimator) -> None:
        self._pending.pop(animator.trip_id, None)
        if self._registry.remove(animator.trip_id) is not None:
            logger.info("Animator for trip %s removed from active list", animator.trip_id)
        logger.debug("Trip %s finished as %s", animator.trip_id, animator.phase.value)


__all__ = ["AnimationScheduler", "POLL_INTERVAL_SECONDS", "utc_now"]
