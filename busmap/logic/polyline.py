"""Encoded polyline codec (precision 1e5)."""

from __future__ import annotations

from typing import Iterable

Coordinate = tuple[float, float]

PRECISION = 1e5
_OFFSET = 63
_CHUNK_BITS = 5
_CHUNK_MASK = 0x1F
_CONTINUATION = 0x20


class DecodeError(ValueError):
    """Raised when an encoded polyline is truncated or contains invalid characters."""


def _read_value(encoded: str, index: int) -> tuple[int, int]:
    result = 0
    shift = 0
    while True:
        if index >= len(encoded):
            raise DecodeError(f"Polyline truncated at offset {index}")
        chunk = ord(encoded[index]) - _OFFSET
        if chunk < 0 or chunk > 0x3F:
            raise DecodeError(f"Invalid polyline character {encoded[index]!r} at offset {index}")
        index += 1
        result |= (chunk & _CHUNK_MASK) << shift
        shift += _CHUNK_BITS
        if not chunk & _CONTINUATION:
            break
    delta = ~(result >> 1) if result & 1 else result >> 1
    return delta, index


def decode(encoded: str) -> list[Coordinate]:
    """Decode an encoded polyline into (lat, lng) pairs."""
    points: list[Coordinate] = []
    index = 0
    lat = 0
    lng = 0
    while index < len(encoded):
        dlat, index = _read_value(encoded, index)
        if index >= len(encoded):
            raise DecodeError("Polyline ended after a latitude without a longitude")
        dlng, index = _read_value(encoded, index)
        lat += dlat
        lng += dlng
        points.append((lat / PRECISION, lng / PRECISION))
    return points


def _round(value: float) -> int:
    scaled = abs(value) * PRECISION
    rounded = int(scaled + 0.5)
    return rounded if value >= 0 else -rounded


def _write_value(delta: int, out: list[str]) -> None:
    value = ~(delta << 1) if delta < 0 else delta << 1
    while value >= _CONTINUATION:
        out.append(chr((_CONTINUATION | (value & _CHUNK_MASK)) + _OFFSET))
        value >>= _CHUNK_BITS
    out.append(chr(value + _OFFSET))


def encode(points: Iterable[Coordinate]) -> str:
    """Encode (lat, lng) pairs into a polyline string."""
    out: list[str] = []
    prev_lat = 0
    prev_lng = 0
    for lat, lng in points:
        lat_i = _round(lat)
        lng_i = _round(lng)
        _write_value(lat_i - prev_lat, out)
        _write_value(lng_i - prev_lng, out)
        prev_lat = lat_i
        prev_lng = lng_i
    return "".join(out)


__all__ = ["Coordinate", "DecodeError", "PRECISION", "decode", "encode"]
