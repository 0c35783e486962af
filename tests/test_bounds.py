from __future__ import annotations

import pytest

from busmap.logic.bounds import Bounds, compute_bounds
from busmap.logic.geo import distance_m


def test_compute_bounds_covers_all_positions() -> None:
    bounds = compute_bounds([(10, 10), (20, 20), (0, 30)])

    assert bounds is not None
    assert bounds.south_west == (0, 10)
    assert bounds.north_east == (20, 30)


def test_compute_bounds_single_position() -> None:
    bounds = compute_bounds([(30.9, 75.8)])

    assert bounds == Bounds(south=30.9, west=75.8, north=30.9, east=75.8)


def test_compute_bounds_empty_returns_none() -> None:
    assert compute_bounds([]) is None


def test_bounds_contains_and_extend() -> None:
    bounds = Bounds(south=0, west=0, north=1, east=1)

    assert bounds.contains((0.5, 0.5))
    assert not bounds.contains((2, 0.5))
    assert bounds.extend((2, -1)) == Bounds(south=0, west=-1, north=2, east=1)


def test_distance_zero_for_same_point() -> None:
    assert distance_m((30.0, 76.0), (30.0, 76.0)) == 0.0


def test_distance_one_degree_latitude() -> None:
    # One degree of arc on a 6378137 m sphere.
    assert distance_m((0.0, 0.0), (1.0, 0.0)) == pytest.approx(111319.49, abs=0.01)


def test_distance_is_symmetric() -> None:
    a = (30.9010, 75.8573)
    b = (30.7333, 76.7794)

    assert distance_m(a, b) == pytest.approx(distance_m(b, a))
