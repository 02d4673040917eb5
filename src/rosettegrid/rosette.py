"""Rosette replication and motif placement.

A rosette is *order* copies of one or more base polylines, copy ``i``
rotated by ``base_rotation + i * 2π / order``.  With mirror adjacency,
odd copies are flipped about the local y-axis before rotating, giving
the alternating mirror pattern of a kaleidoscope.

Orders that do not divide the lattice symmetry produce irregular (but
still well-defined) patterns; callers usually snap with
:func:`~rosettegrid.geometry.snap_order` first.
"""

from __future__ import annotations

import math
from typing import Iterable, List, Sequence, Tuple

from .geometry import rotate_point
from .models import Point, Polyline, TessellationNodePose


def _check_order(order: int) -> None:
    if order < 2:
        raise ValueError("order must be >= 2")


def build_rosette_curve(
    polyline: Sequence[Point],
    order: int,
    base_rotation: float = 0.0,
    mirror_adjacency: bool = False,
) -> List[Polyline]:
    """Return the *order* replicas of a single polyline, in index order."""
    _check_order(order)
    replicas: list[Polyline] = []
    for index in range(order):
        rotation = base_rotation + index * 2.0 * math.pi / order
        mirrored = mirror_adjacency and index % 2 == 1
        replicas.append(
            tuple(
                rotate_point(Point(-p.x, p.y) if mirrored else p, rotation)
                for p in polyline
            )
        )
    return replicas


def build_rosette(
    polylines: Iterable[Sequence[Point]],
    order: int,
    base_rotation: float = 0.0,
    mirror_adjacency: bool = False,
) -> List[Polyline]:
    """Replicate every base polyline; all replicas of the first come first."""
    _check_order(order)
    curves: list[Polyline] = []
    for polyline in polylines:
        curves.extend(build_rosette_curve(polyline, order, base_rotation, mirror_adjacency))
    return curves


def transform_to_center(curves: Iterable[Sequence[Point]], center: Point) -> List[Polyline]:
    """Translate every point by *center*."""
    return [tuple(Point(center.x + p.x, center.y + p.y) for p in curve) for curve in curves]


def motif_anchor(pose: TessellationNodePose) -> Point:
    """World position of a pose's motif, including the glide shift."""
    axis = pose.folded_axis + math.pi / 2.0
    return Point(
        pose.x + pose.glide_offset * math.cos(axis),
        pose.y + pose.glide_offset * math.sin(axis),
    )


def place_motif(
    curves: Iterable[Sequence[Point]], pose: TessellationNodePose
) -> List[Polyline]:
    """Apply *pose* to local-space curves: mirror, rotate, then translate."""
    anchor = motif_anchor(pose)
    placed: list[Polyline] = []
    for curve in curves:
        pts: list[Point] = []
        for p in curve:
            local = Point(-p.x, p.y) if pose.mirrored else p
            rotated = rotate_point(local, pose.orientation)
            pts.append(Point(anchor.x + rotated.x, anchor.y + rotated.y))
        placed.append(tuple(pts))
    return placed


def place_mechanism(
    curves: Sequence[Sequence[Point]], poses: Iterable[TessellationNodePose]
) -> List[Tuple[str, List[Polyline]]]:
    """Place the same motif on every pose; returns ``(pose id, curves)`` pairs."""
    return [(pose.id, place_motif(curves, pose)) for pose in poses]
