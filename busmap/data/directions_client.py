"""Google Directions API client and the threaded route provider built on it."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Protocol

import requests

from busmap.data.schedule_feed import PlaceRef
from busmap.logic.polyline import Coordinate

DIRECTIONS_API_BASE = "https://maps.googleapis.com/maps/api/directions/json"


class RouteFetchError(Exception):
    """Raised when the provider call fails or returns no usable route."""


@dataclass(frozen=True)
class RouteLeg:
    """One origin-to-destination leg of a route."""

    start_location: Coordinate
    end_location: Coordinate
    start_address: str
    end_address: str


@dataclass(frozen=True)
class RouteResult:
    """Provider response: overview polyline plus its legs."""

    encoded_polyline: str
    legs: list[RouteLeg]


class RouteProvider(Protocol):
    def request_route(self, origin: PlaceRef, destination: PlaceRef) -> Future[RouteResult]:
        ...


def _location(raw: Any, field: str) -> Coordinate:
    if not isinstance(raw, dict) or "lat" not in raw or "lng" not in raw:
        raise RouteFetchError(f"Directions leg is missing '{field}'")
    try:
        return (float(raw["lat"]), float(raw["lng"]))
    except (TypeError, ValueError) as exc:
        raise RouteFetchError(f"Directions leg has non-numeric '{field}'") from exc


def _parse_leg(raw: Any) -> RouteLeg:
    if not isinstance(raw, dict):
        raise RouteFetchError("Directions leg must be an object")
    return RouteLeg(
        start_location=_location(raw.get("start_location"), "start_location"),
        end_location=_location(raw.get("end_location"), "end_location"),
        start_address=raw.get("start_address", ""),
        end_address=raw.get("end_address", ""),
    )


class DirectionsClient:
    """Thin wrapper around the Directions API using requests."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DIRECTIONS_API_BASE,
        travel_mode: str = "driving",
        avoid_tolls: bool = True,
        timeout_seconds: float = 10,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self._travel_mode = travel_mode
        self._avoid_tolls = avoid_tolls
        self._timeout_seconds = timeout_seconds

    def get_route(self, origin: PlaceRef, destination: PlaceRef) -> RouteResult:
        """Fetch the first route between two places."""
        params: dict[str, Any] = {
            "origin": origin.query(),
            "destination": destination.query(),
            "mode": self._travel_mode,
            "departure_time": "now",
            "traffic_model": "pessimistic",
            "key": self._api_key,
        }
        if self._avoid_tolls:
            params["avoid"] = "tolls"
        response_json = self._get(params)
        if not isinstance(response_json, dict):
            raise RouteFetchError("Directions response must be a JSON object")

        status = response_json.get("status")
        if status != "OK":
            message = response_json.get("error_message")
            detail = f"status {status}" if not message else f"status {status}: {message}"
            raise RouteFetchError(f"Directions API returned {detail}")

        routes = response_json.get("routes") or []
        if not isinstance(routes, list) or not routes:
            raise RouteFetchError("Directions API returned no routes")
        route = routes[0]
        if not isinstance(route, dict):
            raise RouteFetchError("Directions route must be an object")
        legs_raw = route.get("legs") or []
        if not isinstance(legs_raw, list) or not legs_raw:
            raise RouteFetchError("No route legs found")
        overview = route.get("overview_polyline")
        encoded = overview.get("points") if isinstance(overview, dict) else None
        if not isinstance(encoded, str):
            raise RouteFetchError("Route has no overview polyline")

        return RouteResult(encoded_polyline=encoded, legs=[_parse_leg(leg) for leg in legs_raw])

    def _get(self, params: dict[str, Any]) -> dict[str, Any]:
        try:
            response = requests.get(self._base_url, params=params, timeout=self._timeout_seconds)
        except requests.RequestException as exc:
            raise RouteFetchError(f"Directions request failed: {exc}") from exc

        if response.status_code != 200:
            body_text = response.text.strip()
            detail = f"Status {response.status_code}"
            if body_text:
                detail = f"{detail}, Body: {body_text}"
            raise RouteFetchError(f"Directions request failed: {detail}")

        try:
            return response.json()
        except ValueError as exc:
            raise RouteFetchError("Directions response was not valid JSON") from exc


class ThreadedRouteProvider:
    """Runs blocking ``DirectionsClient`` calls on worker threads."""

    def __init__(self, client: DirectionsClient, max_workers: int = 4) -> None:
        self._client = client
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="route")

    def request_route(self, origin: PlaceRef, destination: PlaceRef) -> Future[RouteResult]:
        return self._executor.submit(self._client.get_route, origin, destination)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)


__all__ = [
    "DIRECTIONS_API_BASE",
    "DirectionsClient",
    "RouteFetchError",
    "RouteLeg",
    "RouteProvider",
    "RouteResult",
    "ThreadedRouteProvider",
]
