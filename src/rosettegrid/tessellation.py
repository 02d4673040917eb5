"""Tessellation mechanism: link lattice cells into a posed spanning tree.

Architecture
------------
1. Pick the root: the fixed cell if present, else ``"0,0"``, else the
   first cell.
2. Order the remaining cells by the branch policy.
3. Walk that order greedily: each cell hangs off the nearest cell already
   placed (ties → smaller ring).  This is *not* a minimum spanning tree;
   the visual result depends on the exact greedy order, so it must stay
   greedy.
4. Each new link records the petal (rotational sector) of the parent that
   faces the child and the opposite petal on the child.
5. The child's pose folds the parent's orientation per symmetry mode.

The whole build is a pure function of its inputs; identical inputs give
bit-identical output.
"""

from __future__ import annotations

import logging
import math
from functools import cmp_to_key
from typing import Dict, List, Optional, Sequence

import numpy as np
from scipy.spatial.distance import pdist

from .constants import GLIDE_MIN_OFFSET, GLIDE_SPACING_RATIO, ROOT_CELL_ID
from .diagnostics import invariant
from .geometry import TWO_PI, angle_between, euclidean_distance, normalize_angle
from .models import (
    BranchOrder,
    LatticeCell,
    TessellationEdge,
    TessellationMechanism,
    TessellationNodePose,
    TessellationSymmetry,
)

logger = logging.getLogger(__name__)

_TIE_EPS = 1e-6


def _js_round(value: float) -> int:
    """Round half up (toward +inf), e.g. 2.5 → 3 and -2.5 → -2."""
    return math.floor(value + 0.5)


# ═══════════════════════════════════════════════════════════════════
# Building blocks
# ═══════════════════════════════════════════════════════════════════

def estimate_spacing(cells: Sequence[LatticeCell]) -> float:
    """Smallest non-zero pairwise distance between cells (0 when undefined)."""
    if len(cells) < 2:
        return 0.0
    coords = np.array([[cell.x, cell.y] for cell in cells], dtype=float)
    distances = pdist(coords)
    distances = distances[distances > _TIE_EPS]
    if distances.size == 0:
        return 0.0
    spacing = float(distances.min())
    return spacing if math.isfinite(spacing) else 0.0


def _polar_angle(cell: LatticeCell) -> float:
    return math.atan2(cell.y, cell.x)


def _branch_comparator(branch_order: BranchOrder):
    def by_angle(a: LatticeCell, b: LatticeCell) -> float:
        return _polar_angle(a) - _polar_angle(b)

    def ring_first(a: LatticeCell, b: LatticeCell) -> float:
        if a.ring != b.ring:
            return a.ring - b.ring
        return by_angle(a, b)

    def spiral(a: LatticeCell, b: LatticeCell) -> float:
        angle_diff = by_angle(a, b)
        if abs(angle_diff) > _TIE_EPS:
            return angle_diff
        return a.ring - b.ring

    def axis_first(a: LatticeCell, b: LatticeCell) -> float:
        if abs(a.r) != abs(b.r):
            return abs(a.r) - abs(b.r)
        if a.ring != b.ring:
            return a.ring - b.ring
        return by_angle(a, b)

    if branch_order is BranchOrder.RING:
        return ring_first
    if branch_order is BranchOrder.SPIRAL:
        return spiral
    if branch_order is BranchOrder.AXIS_FIRST:
        return axis_first
    raise ValueError(f"Unknown branch order {branch_order!r}")


def sort_cells_by_branch_order(
    cells: Sequence[LatticeCell],
    branch_order: BranchOrder | str,
    root_id: Optional[str] = None,
) -> List[LatticeCell]:
    """Traversal order for *cells*; the root (if present) always comes first.

    *root_id* defaults to ``"0,0"``.  The sort is stable, so cells that
    compare equal keep their input order.
    """
    compare = _branch_comparator(BranchOrder(branch_order))
    if root_id is None:
        root_id = ROOT_CELL_ID

    def root_first(a: LatticeCell, b: LatticeCell) -> float:
        if a.id == root_id:
            return -1
        if b.id == root_id:
            return 1
        return compare(a, b)

    return sorted(cells, key=cmp_to_key(root_first))


def choose_parent(target: LatticeCell, visited: Sequence[LatticeCell]) -> LatticeCell:
    """Nearest visited cell to *target*; near-ties go to the smaller ring."""

    def compare(a: LatticeCell, b: LatticeCell) -> float:
        dist_diff = euclidean_distance(a, target) - euclidean_distance(b, target)
        if abs(dist_diff) > _TIE_EPS:
            return dist_diff
        return a.ring - b.ring

    if not visited:
        return target
    return sorted(visited, key=cmp_to_key(compare))[0]


def petal_index(angle: float, order: int) -> int:
    """Rotational sector of *order* sectors that contains *angle*."""
    wrapped = angle % TWO_PI
    return _js_round(wrapped / TWO_PI * order) % order


def opposite_petal(petal: int, order: int) -> int:
    return (petal + _js_round(order / 2)) % order


def fold_orientation(
    parent_orientation: float,
    depth: int,
    symmetry: TessellationSymmetry | str,
    inter_cell_rotation: float,
) -> float:
    """Child orientation for a link reaching *depth*.

    ``translation`` always adds the rotation; ``reflection`` and ``glide``
    reflect the parent angle (about the y-axis or the x-axis) and subtract
    the rotation on odd depths.
    """
    symmetry = TessellationSymmetry(symmetry)
    even = depth % 2 == 0
    if symmetry is TessellationSymmetry.TRANSLATION:
        return normalize_angle(parent_orientation + inter_cell_rotation)
    if symmetry is TessellationSymmetry.REFLECTION:
        reflected = parent_orientation if even else math.pi - parent_orientation
        return normalize_angle(reflected + inter_cell_rotation * (1 if even else -1))
    if symmetry is TessellationSymmetry.GLIDE:
        glided = parent_orientation if even else -parent_orientation
        return normalize_angle(glided + inter_cell_rotation * (1 if even else -1))
    raise ValueError(f"Unknown symmetry {symmetry!r}")


def mirror_flag(
    parent_mirrored: bool, depth: int, symmetry: TessellationSymmetry | str
) -> bool:
    symmetry = TessellationSymmetry(symmetry)
    if symmetry is TessellationSymmetry.TRANSLATION:
        return False
    if symmetry in (TessellationSymmetry.REFLECTION, TessellationSymmetry.GLIDE):
        return not parent_mirrored if depth % 2 == 1 else parent_mirrored
    raise ValueError(f"Unknown symmetry {symmetry!r}")


def glide_offset(depth: int, symmetry: TessellationSymmetry | str, spacing: float) -> float:
    symmetry = TessellationSymmetry(symmetry)
    if symmetry is TessellationSymmetry.GLIDE:
        sign = 1 if depth % 2 == 0 else -1
        return sign * max(spacing * GLIDE_SPACING_RATIO, GLIDE_MIN_OFFSET)
    if symmetry in (TessellationSymmetry.TRANSLATION, TessellationSymmetry.REFLECTION):
        return 0.0
    raise ValueError(f"Unknown symmetry {symmetry!r}")


def resolve_root(
    cells: Sequence[LatticeCell], fixed_cell_id: Optional[str] = None
) -> Optional[LatticeCell]:
    """Fixed cell, else the origin cell, else the first cell."""
    if not cells:
        return None
    by_id = {}
    for cell in cells:
        by_id.setdefault(cell.id, cell)
    if fixed_cell_id is not None:
        fixed = by_id.get(fixed_cell_id)
        if fixed is not None:
            return fixed
        invariant(
            False,
            "Tessellation fixed cell not found; falling back to the origin cell",
            context={"fixedCellId": fixed_cell_id, "cellCount": len(cells)},
            recoverable=True,
        )
    return by_id.get(ROOT_CELL_ID, cells[0])


# ═══════════════════════════════════════════════════════════════════
# Mechanism builder
# ═══════════════════════════════════════════════════════════════════

def build_tessellation_mechanism(
    cells: Sequence[LatticeCell],
    order: int,
    base_orientation: float = 0.0,
    inter_cell_rotation: float = 0.0,
    symmetry: TessellationSymmetry | str = TessellationSymmetry.TRANSLATION,
    branch_order: BranchOrder | str = BranchOrder.RING,
    fixed_cell_id: Optional[str] = None,
) -> TessellationMechanism:
    """Build poses and parent→child edges for every cell.

    Angles are radians.  Poses are sorted by ``(depth, ring)``; edges keep
    discovery order.  An empty *cells* gives an empty mechanism.
    """
    if order < 2:
        raise ValueError("order must be >= 2")
    symmetry = TessellationSymmetry(symmetry)
    branch_order = BranchOrder(branch_order)

    cells = tuple(cells)
    root = resolve_root(cells, fixed_cell_id)
    if root is None:
        return TessellationMechanism()

    ordered = sort_cells_by_branch_order(cells, branch_order, root_id=root.id)
    spacing = estimate_spacing(cells)
    visited: list[LatticeCell] = [root]

    base = normalize_angle(base_orientation)
    poses: Dict[str, TessellationNodePose] = {
        root.id: TessellationNodePose(
            id=root.id,
            x=root.x,
            y=root.y,
            ring=root.ring,
            depth=0,
            orientation=base,
            folded_axis=base,
            mirrored=False,
            glide_offset=0.0,
            is_root=True,
            is_fixed=fixed_cell_id is None or root.id == fixed_cell_id,
        )
    }
    edges: list[TessellationEdge] = []

    for cell in ordered:
        if cell.id in poses:
            continue
        parent = choose_parent(cell, visited)
        parent_pose = poses[parent.id]

        depth = parent_pose.depth + 1
        link_angle = angle_between(parent, cell)
        parent_petal = petal_index(link_angle, order)

        edges.append(TessellationEdge(
            parent_id=parent.id,
            child_id=cell.id,
            parent_petal=parent_petal,
            child_petal=opposite_petal(parent_petal, order),
            depth=depth,
        ))
        poses[cell.id] = TessellationNodePose(
            id=cell.id,
            x=cell.x,
            y=cell.y,
            ring=cell.ring,
            depth=depth,
            orientation=fold_orientation(
                parent_pose.orientation, depth, symmetry, inter_cell_rotation
            ),
            folded_axis=normalize_angle(link_angle),
            mirrored=mirror_flag(parent_pose.mirrored, depth, symmetry),
            glide_offset=glide_offset(depth, symmetry, spacing),
            is_root=False,
            is_fixed=cell.id == fixed_cell_id,
        )
        visited.append(cell)

    sorted_poses = sorted(poses.values(), key=lambda pose: (pose.depth, pose.ring))
    logger.debug(
        "Built tessellation mechanism: %d cells, %d edges, root %s",
        len(cells), len(edges), root.id,
    )
    return TessellationMechanism(
        cells=cells,
        edges=tuple(edges),
        poses=tuple(sorted_poses),
    )
