"""Map surface and frame rendering for the route animator."""

from busmap.rendering.composer import compose_frame, save_frame
from busmap.rendering.surface import MapCanvas, MapSurface

__all__ = ["MapCanvas", "MapSurface", "compose_frame", "save_frame"]
