"""Single-threaded timer queue that drives every animation step and poll."""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
import time
from typing import Any, Callable

logger = logging.getLogger(__name__)


class TimerHandle:
    """Cancellable one-shot timer."""

    __slots__ = ("deadline", "_callback", "_args", "_cancelled")

    def __init__(self, deadline: float, callback: Callable[..., Any], args: tuple[Any, ...]) -> None:
        self.deadline = deadline
        self._callback = callback
        self._args = args
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def _run(self) -> None:
        self._callback(*self._args)


class TimerQueue:
    """Heap of one-shot timers run in deadline order on the owning thread.

    Only ``call_soon_threadsafe`` may be used from other threads; everything
    else, including every callback, runs on the thread calling
    ``run_due``/``run_forever``.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._heap: list[tuple[float, int, TimerHandle]] = []
        self._counter = itertools.count()
        self._lock = threading.Lock()
        self._wakeup = threading.Event()

    def time(self) -> float:
        return self._clock()

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        """Schedule ``callback(*args)`` to run ``delay`` seconds from now."""
        handle = TimerHandle(self.time() + max(0.0, delay), callback, args)
        with self._lock:
            heapq.heappush(self._heap, (handle.deadline, next(self._counter), handle))
        self._wakeup.set()
        return handle

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        return self.call_later(0.0, callback, *args)

    def call_soon_threadsafe(self, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        return self.call_soon(callback, *args)

    def next_deadline(self) -> float | None:
        with self._lock:
            while self._heap and self._heap[0][2].cancelled:
                heapq.heappop(self._heap)
            return self._heap[0][0] if self._heap else None

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for _, _, handle in self._heap if not handle.cancelled)

    def run_due(self) -> int:
        """Run every timer whose deadline has passed; return how many ran."""
        ran = 0
        while True:
            with self._lock:
                if not self._heap or self._heap[0][0] > self.time():
                    return ran
                _, _, handle = heapq.heappop(self._heap)
            if handle.cancelled:
                continue
            try:
                handle._run()
            except Exception:
                logger.exception("Timer callback %r failed", handle._callback)
            ran += 1

    def run_forever(self, stop_event: threading.Event, idle_timeout: float = 1.0) -> None:
        """Run timers until ``stop_event`` is set."""
        while not stop_event.is_set():
            self._wakeup.clear()
            self.run_due()
            deadline = self.next_deadline()
            timeout = idle_timeout if deadline is None else max(0.0, deadline - self.time())
            self._wakeup.wait(timeout=min(timeout, idle_timeout))


class VirtualTimerQueue(TimerQueue):
    """Timer queue on a logical clock that only moves through ``advance``."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        super().__init__(clock=lambda: self._now)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing timers deadline by deadline."""
        target = self._now + seconds
        ran = 0
        while True:
            deadline = self.next_deadline()
            if deadline is None or deadline > target:
                break
            self._now = max(self._now, deadline)
            ran += self.run_due()
        self._now = target
        return ran

    def run_pending(self) -> int:
        return self.advance(0.0)


__all__ = ["TimerHandle", "TimerQueue", "VirtualTimerQueue"]
