from __future__ import annotations

import threading

from busmap.logic.timers import TimerQueue, VirtualTimerQueue


def test_timers_fire_in_deadline_order() -> None:
    timers = VirtualTimerQueue()
    fired: list[str] = []
    timers.call_later(5, fired.append, "late")
    timers.call_later(1, fired.append, "early")
    timers.call_later(1, fired.append, "early-second")

    timers.advance(10)

    assert fired == ["early", "early-second", "late"]


def test_advance_stops_before_future_deadline() -> None:
    timers = VirtualTimerQueue()
    fired: list[int] = []
    timers.call_later(30, fired.append, 1)

    timers.advance(29.9)
    assert fired == []

    timers.advance(0.1)
    assert fired == [1]


def test_cancelled_timer_does_not_fire() -> None:
    timers = VirtualTimerQueue()
    fired: list[int] = []
    handle = timers.call_later(1, fired.append, 1)

    handle.cancel()
    timers.advance(5)

    assert fired == []
    assert handle.cancelled
    assert len(timers) == 0


def test_chained_timers_see_their_own_deadline() -> None:
    timers = VirtualTimerQueue()
    seen: list[float] = []

    def _chain(remaining: int) -> None:
        seen.append(timers.time())
        if remaining:
            timers.call_later(2, _chain, remaining - 1)

    timers.call_later(1, _chain, 2)
    timers.advance(100)

    assert seen == [1, 3, 5]
    assert timers.time() == 100


def test_zero_delay_timer_runs_on_next_pass() -> None:
    timers = VirtualTimerQueue()
    fired: list[int] = []
    timers.call_soon(fired.append, 1)

    assert fired == []
    timers.run_pending()
    assert fired == [1]


def test_failing_callback_does_not_stop_queue() -> None:
    timers = VirtualTimerQueue()
    fired: list[int] = []

    def _boom() -> None:
        raise RuntimeError("boom")

    timers.call_later(1, _boom)
    timers.call_later(2, fired.append, 2)
    timers.advance(3)

    assert fired == [2]


def test_run_forever_until_stopped() -> None:
    timers = TimerQueue()
    stop_event = threading.Event()
    fired: list[int] = []

    def _fire_and_stop() -> None:
        fired.append(1)
        stop_event.set()

    timers.call_later(0.01, _fire_and_stop)
    worker = threading.Thread(target=timers.run_forever, args=(stop_event,), daemon=True)
    worker.start()
    worker.join(timeout=2)

    assert fired == [1]
    assert not worker.is_alive()
