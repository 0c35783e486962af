"""Schedule feed loading and validation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import json
import logging
from pathlib import Path
from typing import Any

import requests

logger = logging.getLogger(__name__)

FEED_TIMEOUT_SECONDS = 10


class FeedLoadError(Exception):
    """Raised when the schedule feed cannot be read or is not a list of trips."""


@dataclass(frozen=True)
class PlaceRef:
    """Origin or destination of a trip, by name and optionally by coordinates."""

    name: str
    lat: float | None = None
    lng: float | None = None

    def query(self) -> str:
        if self.lat is not None and self.lng is not None:
            return f"{self.lat},{self.lng}"
        return self.name


@dataclass(eq=False)
class ScheduledTrip:
    """Planned departure; ``started`` is flipped once by the schedule owner."""

    id: str
    operator_label: str
    headsign: str
    start_time: datetime
    origin: PlaceRef
    destination: PlaceRef
    started: bool = False


def _require_key(record: dict[str, Any], key: str, *aliases: str) -> Any:
    for name in (key, *aliases):
        if name in record and record[name] not in (None, ""):
            return record[name]
    raise ValueError(f"Missing required field '{key}'")


def _require_str(record: dict[str, Any], key: str, *aliases: str) -> str:
    value = _require_key(record, key, *aliases)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if not isinstance(value, str):
        raise ValueError(f"Field '{key}' must be a string")
    return value


def parse_start_time(value: Any) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as local time."""
    if not isinstance(value, str):
        raise ValueError("Field 'startTime' must be an ISO-8601 string")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise ValueError(f"Invalid startTime '{value}'") from exc
    if parsed.tzinfo is None:
        try:
            return parsed.astimezone()
        except (OverflowError, OSError) as exc:
            raise ValueError(f"Invalid startTime '{value}'") from exc
    return parsed


def _parse_place(value: Any, label: str) -> PlaceRef:
    if isinstance(value, str) and value.strip():
        return PlaceRef(name=value.strip())
    if not isinstance(value, dict):
        raise ValueError(f"Field '{label}' must be a place name or mapping")
    name = _require_str(value, "name", "address")
    lat = value.get("lat", value.get("latitude"))
    lng = value.get("lng", value.get("lon", value.get("longitude")))
    if (lat is None) != (lng is None):
        raise ValueError(f"Field '{label}' must give both lat and lng or neither")
    if lat is None:
        return PlaceRef(name=name)
    try:
        return PlaceRef(name=name, lat=float(lat), lng=float(lng))
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Field '{label}' has non-numeric coordinates") from exc


def parse_trip(record: Any) -> ScheduledTrip:
    """Convert one raw feed record into a ScheduledTrip, raising ValueError if invalid."""
    if not isinstance(record, dict):
        raise ValueError("Trip record must be a mapping")

    route = record.get("route")
    if isinstance(route, dict):
        origin_raw = _require_key(route, "start", "origin")
        destination_raw = _require_key(route, "end", "destination")
    else:
        origin_raw = _require_key(record, "origin")
        destination_raw = _require_key(record, "destination")

    return ScheduledTrip(
        id=_require_str(record, "id", "busNumber", "bus_number"),
        operator_label=_require_str(record, "operator", "operatorLabel"),
        headsign=_require_str(record, "headsign"),
        start_time=parse_start_time(_require_key(record, "startTime", "start_time")),
        origin=_parse_place(origin_raw, "origin"),
        destination=_parse_place(destination_raw, "destination"),
    )


def parse_feed(records: Any) -> list[ScheduledTrip]:
    """Validate every record, skipping (and logging) the invalid ones."""
    if not isinstance(records, list):
        raise FeedLoadError("Schedule feed must contain a JSON array of trips")

    trips: list[ScheduledTrip] = []
    seen_ids: set[str] = set()
    for index, record in enumerate(records):
        try:
            trip = parse_trip(record)
        except ValueError as exc:
            logger.warning("Rejected schedule record #%d: %s", index, exc)
            continue
        if trip.id in seen_ids:
            logger.warning("Rejected schedule record #%d: duplicate trip id %s", index, trip.id)
            continue
        seen_ids.add(trip.id)
        trips.append(trip)

    logger.info("Loaded %d of %d schedule records", len(trips), len(records))
    return trips


def _read_source(source: str) -> str:
    if source.startswith(("http://", "https://")):
        try:
            response = requests.get(source, timeout=FEED_TIMEOUT_SECONDS)
        except requests.RequestException as exc:
            raise FeedLoadError(f"Schedule feed request failed: {exc}") from exc
        if response.status_code != 200:
            raise FeedLoadError(f"Schedule feed request failed: Status {response.status_code}")
        return response.text

    try:
        return Path(source).read_text(encoding="utf-8")
    except OSError as exc:
        raise FeedLoadError(f"Could not read schedule feed {source}: {exc}") from exc


def load_feed(source: str) -> list[ScheduledTrip]:
    """Load trips from a JSON file path or http(s) URL."""
    text = _read_source(source)
    try:
        records = json.loads(text)
    except ValueError as exc:
        raise FeedLoadError(f"Schedule feed {source} is not valid JSON") from exc
    return parse_feed(records)


__all__ = [
    "FeedLoadError",
    "PlaceRef",
    "ScheduledTrip",
    "load_feed",
    "parse_feed",
    "parse_start_time",
    "parse_trip",
]
