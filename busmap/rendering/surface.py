"""Map surface interface and the in-memory canvas behind the frame composer."""

from __future__ import annotations

from dataclasses import dataclass
import itertools
from typing import Protocol, Sequence

from busmap.logic.bounds import Bounds
from busmap.logic.polyline import Coordinate

ICON_START = "start"
ICON_END = "end"
ICON_VEHICLE = "vehicle"


@dataclass
class Marker:
    position: Coordinate
    icon: str
    title: str


@dataclass(frozen=True)
class RouteOverlay:
    coordinates: tuple[Coordinate, ...]


class MapSurface(Protocol):
    """Drawing operations the animation engine needs from a map."""

    def place_marker(self, position: Coordinate, icon: str, title: str) -> int: ...

    def move_marker(self, handle: int, position: Coordinate) -> None: ...

    def remove_marker(self, handle: int) -> None: ...

    def render_route(self, coordinates: Sequence[Coordinate]) -> int: ...

    def remove_overlay(self, handle: int) -> None: ...

    def fit_viewport(self, bounds: Bounds) -> None: ...


class MapCanvas:
    """Keeps markers, route overlays and the viewport in memory.

    Unknown handles raise ``KeyError`` so a double removal shows up as a bug
    instead of passing silently.
    """

    def __init__(self, viewport: Bounds | None = None) -> None:
        self._handles = itertools.count(1)
        self.markers: dict[int, Marker] = {}
        self.overlays: dict[int, RouteOverlay] = {}
        self.viewport = viewport

    def place_marker(self, position: Coordinate, icon: str, title: str) -> int:
        handle = next(self._handles)
        self.markers[handle] = Marker(position=position, icon=icon, title=title)
        return handle

    def move_marker(self, handle: int, position: Coordinate) -> None:
        self.markers[handle].position = position

    def remove_marker(self, handle: int) -> None:
        del self.markers[handle]

    def render_route(self, coordinates: Sequence[Coordinate]) -> int:
        handle = next(self._handles)
        self.overlays[handle] = RouteOverlay(coordinates=tuple(coordinates))
        return handle

    def remove_overlay(self, handle: int) -> None:
        del self.overlays[handle]

    def fit_viewport(self, bounds: Bounds) -> None:
        self.viewport = bounds

    def markers_with_icon(self, icon: str) -> list[Marker]:
        return [marker for marker in self.markers.values() if marker.icon == icon]


__all__ = [
    "ICON_END",
    "ICON_START",
    "ICON_VEHICLE",
    "MapCanvas",
    "MapSurface",
    "Marker",
    "RouteOverlay",
]
