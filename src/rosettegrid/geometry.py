"""Geometry helper functions used across the package."""

from __future__ import annotations

import math
from typing import Iterable, List, Sequence

from .constants import ALLOWED_ORDERS
from .diagnostics import invariant
from .models import LatticeCell, Point

TWO_PI = 2.0 * math.pi


def normalize_angle(angle: float) -> float:
    """Wrap *angle* (radians) into the half-open interval ``(-pi, pi]``.

    Non-finite angles are reported and mapped to 0.
    """
    if not invariant(
        math.isfinite(angle),
        "Non-finite angle replaced by 0",
        context={"angle": repr(angle)},
        recoverable=True,
    ):
        return 0.0
    normalized = angle
    if abs(normalized) > 2.0 * TWO_PI:
        normalized = math.remainder(normalized, TWO_PI)
    while normalized > math.pi:
        normalized -= TWO_PI
    while normalized <= -math.pi:
        normalized += TWO_PI
    return normalized


def to_rad(angle_deg: float) -> float:
    return angle_deg * math.pi / 180.0


def to_deg(angle_rad: float) -> float:
    return angle_rad * 180.0 / math.pi


def rotate_point(point: Point, angle: float) -> Point:
    cos_a = math.cos(angle)
    sin_a = math.sin(angle)
    return Point(
        point.x * cos_a - point.y * sin_a,
        point.x * sin_a + point.y * cos_a,
    )


def translate_point(point: Point, dx: float, dy: float) -> Point:
    return Point(point.x + dx, point.y + dy)


def angle_between(a: LatticeCell | Point, b: LatticeCell | Point) -> float:
    """Polar angle of the vector a→b."""
    return math.atan2(b.y - a.y, b.x - a.x)


def euclidean_distance(a: LatticeCell | Point, b: LatticeCell | Point) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


def flatten_points(points: Iterable[Point]) -> List[float]:
    """Return ``[x0, y0, x1, y1, …]`` as expected by polyline renderers."""
    flat: list[float] = []
    for p in points:
        flat.append(p.x)
        flat.append(p.y)
    return flat


def polyline_centroid(points: Sequence[Point]) -> Point:
    """Arithmetic mean of the points; the origin for an empty polyline."""
    if not points:
        return Point(0.0, 0.0)
    n = len(points)
    return Point(sum(p.x for p in points) / n, sum(p.y for p in points) / n)


def snap_order(value: float) -> int:
    """Closest allowed rosette order; the smaller order wins a tie."""
    closest = ALLOWED_ORDERS[0]
    for candidate in ALLOWED_ORDERS:
        if abs(candidate - value) < abs(closest - value):
            closest = candidate
    return closest
