"""Run the scheduled bus animation and write preview frames."""

from __future__ import annotations

import argparse
import logging
import sys
import threading

from busmap.config import AppConfig, load_config
from busmap.data.directions_client import DirectionsClient, ThreadedRouteProvider
from busmap.data.schedule_feed import FeedLoadError, load_feed
from busmap.log import configure_logging
from busmap.logic.registry import ActiveRegistry, TripSchedule
from busmap.logic.scheduler import AnimationScheduler
from busmap.logic.timers import TimerQueue
from busmap.rendering import MapCanvas, compose_frame, save_frame

logger = logging.getLogger("busmap.run")


def _schedule_frames(timers: TimerQueue, canvas: MapCanvas, config: AppConfig) -> None:
    def _render() -> None:
        timers.call_later(config.display.frame_interval_seconds, _render)
        image = compose_frame(canvas, config.display.width, config.display.height)
        save_frame(image, config.display.output_path)

    timers.call_soon(_render)


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--config", default="config/config.yaml", help="Path to the YAML config")
    parser.add_argument("--feed", help="Schedule feed path or URL (overrides config)")
    parser.add_argument(
        "--no-frames",
        action="store_true",
        help="Disable writing preview frames",
    )
    args = parser.parse_args()

    config = load_config(args.config)
    configure_logging(config.log)

    feed_source = args.feed or config.schedule.feed
    try:
        trips = load_feed(feed_source)
    except FeedLoadError as exc:
        logger.error("Could not load bus route data: %s", exc)
        print(f"Could not load bus route data from {feed_source}: {exc}", file=sys.stderr)
        return 1

    client = DirectionsClient(
        config.routes.api_key,
        base_url=config.routes.base_url,
        travel_mode=config.routes.travel_mode,
        avoid_tolls=config.routes.avoid_tolls,
        timeout_seconds=config.routes.timeout_seconds,
    )
    provider = ThreadedRouteProvider(client, max_workers=config.routes.max_workers)
    canvas = MapCanvas()
    timers = TimerQueue()
    scheduler = AnimationScheduler(
        TripSchedule(trips),
        ActiveRegistry(),
        provider,
        canvas,
        timers,
        poll_interval_seconds=config.schedule.poll_interval_seconds,
        average_speed_mps=config.animation.average_speed_mps,
    )

    if not args.no_frames:
        _schedule_frames(timers, canvas, config)

    stop_event = threading.Event()
    scheduler.start()
    try:
        timers.run_forever(stop_event)
    except KeyboardInterrupt:
        stop_event.set()
    finally:
        scheduler.stop()
        provider.shutdown()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
