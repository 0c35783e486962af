"""Frame composer for the route map preview."""

from __future__ import annotations

from pathlib import Path

from PIL import Image, ImageDraw

from busmap.logic.bounds import Bounds, compute_bounds
from busmap.logic.polyline import Coordinate
from busmap.rendering.surface import ICON_END, ICON_START, ICON_VEHICLE, MapCanvas

FRAME_WIDTH = 640
FRAME_HEIGHT = 480
FRAME_MARGIN = 16

# Keeps a single-point viewport from collapsing to zero width.
MIN_SPAN_DEGREES = 0.01

COLOR_BACKGROUND = (18, 18, 18)
COLOR_ROUTE = (66, 133, 244)
COLOR_START = (0, 200, 0)
COLOR_END = (200, 0, 0)
COLOR_VEHICLE = (255, 255, 255)
COLOR_VEHICLE_OUTLINE = (220, 180, 0)

ROUTE_WIDTH = 3
STOP_RADIUS = 4
VEHICLE_RADIUS = 6

_MARKER_STYLE = {
    ICON_START: (STOP_RADIUS, COLOR_START, COLOR_START),
    ICON_END: (STOP_RADIUS, COLOR_END, COLOR_END),
    ICON_VEHICLE: (VEHICLE_RADIUS, COLOR_VEHICLE, COLOR_VEHICLE_OUTLINE),
}


def _frame_bounds(canvas: MapCanvas) -> Bounds | None:
    if canvas.viewport is not None:
        return canvas.viewport
    points: list[Coordinate] = [marker.position for marker in canvas.markers.values()]
    for overlay in canvas.overlays.values():
        points.extend(overlay.coordinates)
    return compute_bounds(points)


def _padded(bounds: Bounds) -> Bounds:
    lat_pad = max(0.0, MIN_SPAN_DEGREES - (bounds.north - bounds.south)) / 2
    lng_pad = max(0.0, MIN_SPAN_DEGREES - (bounds.east - bounds.west)) / 2
    return Bounds(
        south=bounds.south - lat_pad,
        west=bounds.west - lng_pad,
        north=bounds.north + lat_pad,
        east=bounds.east + lng_pad,
    )


def project(point: Coordinate, bounds: Bounds, width: int, height: int) -> tuple[int, int]:
    """Map a lat/lng into pixel space for an equirectangular view of ``bounds``."""
    lat, lng = point
    inner_width = width - 2 * FRAME_MARGIN
    inner_height = height - 2 * FRAME_MARGIN
    x = FRAME_MARGIN + (lng - bounds.west) / (bounds.east - bounds.west) * inner_width
    y = FRAME_MARGIN + (bounds.north - lat) / (bounds.north - bounds.south) * inner_height
    return round(x), round(y)


def compose_frame(canvas: MapCanvas, width: int = FRAME_WIDTH, height: int = FRAME_HEIGHT) -> Image.Image:
    """Draw route overlays and markers of ``canvas`` into an RGB frame."""
    if width <= 2 * FRAME_MARGIN or height <= 2 * FRAME_MARGIN:
        raise ValueError(f"Frame must be larger than {2 * FRAME_MARGIN}px, got {width}x{height}.")

    image = Image.new("RGB", (width, height), COLOR_BACKGROUND)
    bounds = _frame_bounds(canvas)
    if bounds is None:
        return image
    bounds = _padded(bounds)
    draw = ImageDraw.Draw(image)

    for overlay in canvas.overlays.values():
        pixels = [project(point, bounds, width, height) for point in overlay.coordinates]
        if len(pixels) > 1:
            draw.line(pixels, fill=COLOR_ROUTE, width=ROUTE_WIDTH)

    # Vehicles last so they sit on top of stops.
    markers = sorted(canvas.markers.values(), key=lambda marker: marker.icon == ICON_VEHICLE)
    for marker in markers:
        radius, fill, outline = _MARKER_STYLE.get(marker.icon, _MARKER_STYLE[ICON_VEHICLE])
        x, y = project(marker.position, bounds, width, height)
        draw.ellipse([x - radius, y - radius, x + radius, y + radius], fill=fill, outline=outline, width=2)

    return image


def save_frame(image: Image.Image, path: str | Path) -> Path:
    """Write a frame as PNG, creating parent directories; returns the path written."""
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(output_path, format="PNG")
    return output_path


__all__ = ["compose_frame", "project", "save_frame"]
