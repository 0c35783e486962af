"""Configuration loader for the bus route animator."""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Any

from dotenv import load_dotenv
import yaml


@dataclass(frozen=True)
class RoutesConfig:
    """Directions provider configuration."""

    api_key: str
    base_url: str
    travel_mode: str
    avoid_tolls: bool
    timeout_seconds: float
    max_workers: int


@dataclass(frozen=True)
class ScheduleConfig:
    """Schedule feed location and polling cadence."""

    feed: str
    poll_interval_seconds: float


@dataclass(frozen=True)
class AnimationConfig:
    """Vehicle stepping configuration."""

    average_speed_mps: float


@dataclass(frozen=True)
class DisplayConfig:
    """Frame output configuration."""

    width: int
    height: int
    frame_interval_seconds: float
    output_path: str


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""

    level: str
    log_dir: str


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration."""

    routes: RoutesConfig
    schedule: ScheduleConfig
    animation: AnimationConfig
    display: DisplayConfig
    log: LoggingConfig


def _require_key(mapping: dict[str, Any], key: str, context: str) -> Any:
    if key not in mapping:
        raise ValueError(f"Missing required key '{key}' in {context} config")
    return mapping[key]


def _require_section(data: dict[str, Any], key: str) -> dict[str, Any]:
    section = _require_key(data, key, key)
    if not isinstance(section, dict):
        raise ValueError(f"'{key}' config must be a mapping")
    return section


def load_config(path: str = "config/config.yaml") -> AppConfig:
    """Load application configuration from a YAML file."""
    load_dotenv()
    api_key = os.environ.get("GOOGLE_MAPS_API_KEY", "")
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except FileNotFoundError as exc:
        raise ValueError(f"Config file not found: {path}") from exc

    if not isinstance(data, dict):
        raise ValueError("Config file must contain a mapping at the top level")

    routes_section = _require_section(data, "routes")
    schedule_section = _require_section(data, "schedule")
    animation_section = _require_section(data, "animation")
    display_section = _require_section(data, "display")
    logging_section = _require_section(data, "logging")

    routes = RoutesConfig(
        api_key=api_key,
        base_url=_require_key(routes_section, "base_url", "routes"),
        travel_mode=routes_section.get("travel_mode", "driving"),
        avoid_tolls=bool(routes_section.get("avoid_tolls", True)),
        timeout_seconds=float(routes_section.get("timeout_seconds", 10)),
        max_workers=int(routes_section.get("max_workers", 4)),
    )

    schedule = ScheduleConfig(
        feed=_require_key(schedule_section, "feed", "schedule"),
        poll_interval_seconds=float(schedule_section.get("poll_interval_seconds", 30)),
    )

    animation = AnimationConfig(
        average_speed_mps=float(_require_key(animation_section, "average_speed_mps", "animation")),
    )

    display = DisplayConfig(
        width=_require_key(display_section, "width", "display"),
        height=_require_key(display_section, "height", "display"),
        frame_interval_seconds=float(display_section.get("frame_interval_seconds", 5)),
        output_path=display_section.get("output_path", "emulator_output/frame.png"),
    )
    if display.frame_interval_seconds <= 0:
        raise ValueError("display.frame_interval_seconds must be positive")

    logging = LoggingConfig(
        level=_require_key(logging_section, "level", "logging"),
        log_dir=_require_key(logging_section, "log_dir", "logging"),
    )

    return AppConfig(
        routes=routes,
        schedule=schedule,
        animation=animation,
        display=display,
        log=logging,
    )
