"""Curve sampling: control points → dense polyline.

Three control points describe a quadratic Bézier, four or more a cubic
(only the first four are used).  Sampling is uniform in the curve
parameter ``t`` and an optional signed offset pushes every sample along
the curve's left-hand unit normal ``(-dy, dx) / |d|``.
"""

from __future__ import annotations

from math import comb
from typing import Optional, Sequence, Tuple

import numpy as np

from .diagnostics import invariant
from .models import CurveMode, Point


_EPS = 1e-12

# Fallback normal for a zero-length tangent.
_DEFAULT_NORMAL = np.array([0.0, 1.0])


def _control_array(points: Sequence[Point]) -> np.ndarray:
    return np.array([[p.x, p.y] for p in points], dtype=float)


def _bernstein(degree: int, t: np.ndarray) -> np.ndarray:
    """Bernstein basis matrix of shape ``(len(t), degree + 1)``."""
    one_minus = 1.0 - t
    return np.stack(
        [comb(degree, k) * one_minus ** (degree - k) * t ** k for k in range(degree + 1)],
        axis=1,
    )


def bezier_points(control: np.ndarray, t: np.ndarray) -> np.ndarray:
    """Evaluate the Bézier curve at every parameter in *t*."""
    degree = len(control) - 1
    return _bernstein(degree, t) @ control


def bezier_derivative(control: np.ndarray, t: np.ndarray) -> np.ndarray:
    """First derivative (tangent vectors) at every parameter in *t*."""
    degree = len(control) - 1
    deltas = degree * (control[1:] - control[:-1])
    return _bernstein(degree - 1, t) @ deltas


def curve_normals(control: np.ndarray, t: np.ndarray) -> np.ndarray:
    """Unit left-hand normals; a degenerate tangent maps to ``(0, 1)``."""
    tangents = bezier_derivative(control, t)
    lengths = np.hypot(tangents[:, 0], tangents[:, 1])
    normals = np.empty_like(tangents)
    degenerate = lengths <= _EPS
    safe = np.where(degenerate, 1.0, lengths)
    normals[:, 0] = -tangents[:, 1] / safe
    normals[:, 1] = tangents[:, 0] / safe
    normals[degenerate] = _DEFAULT_NORMAL
    return normals


def bezier_point(points: Sequence[Point], t: float) -> Point:
    """Single point on the curve described by *points* (3 or 4 used)."""
    control = _control_array(points[:4])
    xy = bezier_points(control, np.array([float(t)]))[0]
    return Point(float(xy[0]), float(xy[1]))


def curve_normal(points: Sequence[Point], t: float) -> Point:
    control = _control_array(points[:4])
    n = curve_normals(control, np.array([float(t)]))[0]
    return Point(float(n[0]), float(n[1]))


def _resolve_control(
    points: Sequence[Point], mode: Optional[CurveMode | str]
) -> Optional[Sequence[Point]]:
    if mode is None:
        return points[:3] if len(points) == 3 else points[:4]
    mode = CurveMode(mode)
    if mode is CurveMode.QUADRATIC:
        return points[:3] if len(points) >= 3 else None
    if mode is CurveMode.CUBIC:
        return points[:4] if len(points) >= 4 else None
    raise ValueError(f"Unknown curve mode {mode!r}")


def sample_curve(
    points: Sequence[Point],
    steps: int,
    offset: float = 0.0,
    mode: Optional[CurveMode | str] = None,
) -> Tuple[Point, ...]:
    """Sample *steps* points of the curve defined by *points*.

    Fewer than three control points (or too few for an explicit *mode*)
    are returned unchanged.  A numerical breakdown also falls back to the
    raw control points.
    """
    if steps < 2:
        raise ValueError("steps must be >= 2")

    raw = tuple(points)
    if len(raw) < 3:
        return raw

    control_points = _resolve_control(raw, mode)
    if control_points is None:
        return raw

    control = _control_array(control_points)
    t = np.linspace(0.0, 1.0, steps)
    with np.errstate(all="ignore"):
        sampled = bezier_points(control, t)
        if offset:
            sampled = sampled + offset * curve_normals(control, t)

    if not invariant(
        np.isfinite(sampled).all(),
        "Curve sampling produced non-finite values",
        context={"points": len(raw), "steps": steps, "offset": offset},
        recoverable=True,
    ):
        return raw

    return tuple(Point(float(x), float(y)) for x, y in sampled)
