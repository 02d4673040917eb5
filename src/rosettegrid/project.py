"""Project parameters and the derived-geometry pipeline.

:class:`ProjectState` is the full set of editor *inputs*; everything else
(sampled sprites, rosette curves, tessellation mechanism) is recomputed
from it by :func:`derive_geometry`.  Only the inputs are ever persisted.

Usage
-----
>>> state = default_project_state()
>>> geometry = derive_geometry(state)
>>> len(geometry.rosette_curves) == state.order * len(state.slice_state.sprites)
True
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple

from .constants import (
    BASE_ORIENTATION_DEG,
    DEFAULT_FOLD_PROGRESS,
    DEFAULT_LATTICE_KIND,
    DEFAULT_LINE_THICKNESS,
    DEFAULT_ORDER,
    DEFAULT_TESSELLATION_BRANCH_ORDER,
    DEFAULT_TESSELLATION_SYMMETRY,
    DEFAULT_TILING_RINGS,
    DEFAULT_TILING_SPACING,
    MAX_BASE_ORIENTATION_DEG,
    MAX_FOLD_PROGRESS,
    MAX_LINE_THICKNESS,
    MAX_TILING_RINGS,
    MAX_TILING_SPACING,
    MIN_BASE_ORIENTATION_DEG,
    MIN_FOLD_PROGRESS,
    MIN_LINE_THICKNESS,
    MIN_TILING_RINGS,
    MIN_TILING_SPACING,
    ROOT_CELL_ID,
)
from .geometry import rotate_point, snap_order, to_rad
from .lattice import build_lattice
from .models import (
    BranchOrder,
    LatticeKind,
    Point,
    Polyline,
    TessellationMechanism,
    TessellationSymmetry,
)
from .rosette import build_rosette, transform_to_center
from .sprite import SliceState, default_slice_state, sprite_polyline
from .tessellation import build_tessellation_mechanism

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProjectState:
    """All tuneable editor inputs.

    Attributes
    ----------
    order : int
        Rosette order (number of petals).
    line_thickness : float
        Stroke width hint for renderers.
    base_orientation_deg : float
        Rotation of the first replica, in degrees.
    mirror_adjacency : bool
        Flip every odd replica about its local y-axis.
    slice_state : SliceState
        The base sprites.
    lattice_kind, tiling_spacing, tiling_rings
        Lattice shape.
    inter_cell_rotation_deg : float
        Full rotation between linked cells, in degrees; scaled by
        *fold_progress*.
    symmetry, branch_order
        Tessellation modes.
    fold_progress : float
        0 (aligned) … 1 (full inter-cell rotation).
    fixed_cell_id : str
        Cell pinned as the traversal root; blank means unset.
    """

    order: int = DEFAULT_ORDER
    line_thickness: float = DEFAULT_LINE_THICKNESS
    base_orientation_deg: float = BASE_ORIENTATION_DEG
    mirror_adjacency: bool = True
    slice_state: SliceState = field(default_factory=default_slice_state)
    lattice_kind: LatticeKind = DEFAULT_LATTICE_KIND
    tiling_spacing: float = DEFAULT_TILING_SPACING
    tiling_rings: int = DEFAULT_TILING_RINGS
    inter_cell_rotation_deg: float = 0.0
    symmetry: TessellationSymmetry = DEFAULT_TESSELLATION_SYMMETRY
    branch_order: BranchOrder = DEFAULT_TESSELLATION_BRANCH_ORDER
    fold_progress: float = DEFAULT_FOLD_PROGRESS
    fixed_cell_id: str = ROOT_CELL_ID

    @property
    def base_rotation(self) -> float:
        return to_rad(self.base_orientation_deg)

    @property
    def inter_cell_rotation(self) -> float:
        """Effective inter-cell rotation in radians after fold progress."""
        return to_rad(self.inter_cell_rotation_deg) * self.fold_progress

    @property
    def resolved_fixed_cell_id(self) -> Optional[str]:
        return self.fixed_cell_id.strip() or None

    def to_dict(self) -> dict:
        return {
            "order": self.order,
            "lineThickness": self.line_thickness,
            "baseOrientationDeg": self.base_orientation_deg,
            "mirrorAdjacency": self.mirror_adjacency,
            "sliceState": self.slice_state.to_dict(),
            "tilingLattice": LatticeKind(self.lattice_kind).value,
            "tilingSpacing": self.tiling_spacing,
            "tilingRings": self.tiling_rings,
            "interCellRotation": self.inter_cell_rotation_deg,
            "tessellationSymmetry": TessellationSymmetry(self.symmetry).value,
            "tessellationBranchOrder": BranchOrder(self.branch_order).value,
            "foldProgress": self.fold_progress,
            "fixedCellId": self.fixed_cell_id,
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "ProjectState":
        defaults = cls()
        slice_payload = payload.get("sliceState")
        return cls(
            order=int(payload.get("order", defaults.order)),
            line_thickness=float(payload.get("lineThickness", defaults.line_thickness)),
            base_orientation_deg=float(
                payload.get("baseOrientationDeg", defaults.base_orientation_deg)
            ),
            mirror_adjacency=bool(payload.get("mirrorAdjacency", defaults.mirror_adjacency)),
            slice_state=(
                SliceState.from_dict(slice_payload) if slice_payload else defaults.slice_state
            ),
            lattice_kind=LatticeKind(payload.get("tilingLattice", defaults.lattice_kind)),
            tiling_spacing=float(payload.get("tilingSpacing", defaults.tiling_spacing)),
            tiling_rings=int(payload.get("tilingRings", defaults.tiling_rings)),
            inter_cell_rotation_deg=float(
                payload.get("interCellRotation", defaults.inter_cell_rotation_deg)
            ),
            symmetry=TessellationSymmetry(
                payload.get("tessellationSymmetry", defaults.symmetry)
            ),
            branch_order=BranchOrder(
                payload.get("tessellationBranchOrder", defaults.branch_order)
            ),
            fold_progress=float(payload.get("foldProgress", defaults.fold_progress)),
            fixed_cell_id=str(payload.get("fixedCellId", defaults.fixed_cell_id)),
        )


def default_project_state() -> ProjectState:
    return ProjectState()


def _clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def clamp_project_state(state: ProjectState) -> ProjectState:
    """Snap the order and clamp every bounded numeric input to its range."""
    return replace(
        state,
        order=snap_order(state.order),
        line_thickness=_clamp(state.line_thickness, MIN_LINE_THICKNESS, MAX_LINE_THICKNESS),
        base_orientation_deg=_clamp(
            state.base_orientation_deg, MIN_BASE_ORIENTATION_DEG, MAX_BASE_ORIENTATION_DEG
        ),
        tiling_spacing=_clamp(state.tiling_spacing, MIN_TILING_SPACING, MAX_TILING_SPACING),
        tiling_rings=int(_clamp(state.tiling_rings, MIN_TILING_RINGS, MAX_TILING_RINGS)),
        fold_progress=_clamp(state.fold_progress, MIN_FOLD_PROGRESS, MAX_FOLD_PROGRESS),
    )


@dataclass(frozen=True)
class DerivedGeometry:
    base_rotation: float
    sprite_polylines: Tuple[Polyline, ...]
    rosette_curves: Tuple[Polyline, ...]
    centered_curves: Tuple[Polyline, ...]
    active_sprite_curve: Polyline
    mechanism: TessellationMechanism


def derive_geometry(
    state: ProjectState,
    center: Point = Point(0.0, 0.0),
    include_tessellation: bool = True,
) -> DerivedGeometry:
    """Recompute every derived output from *state*.

    Rosette curves are in local space; *centered_curves* and
    *active_sprite_curve* are translated to *center*.
    """
    base_rotation = state.base_rotation
    sprite_polylines = tuple(
        sprite_polyline(sprite) for sprite in state.slice_state.enabled_sprites()
    )
    rosette_curves: List[Polyline] = build_rosette(
        sprite_polylines, state.order, base_rotation, state.mirror_adjacency
    )
    centered = transform_to_center(rosette_curves, center)

    active = state.slice_state.active_sprite
    active_curve: Polyline = ()
    if active is not None:
        active_curve = tuple(
            Point(center.x + r.x, center.y + r.y)
            for r in (rotate_point(p, base_rotation) for p in sprite_polyline(active))
        )

    mechanism = TessellationMechanism()
    if include_tessellation:
        cells = build_lattice(state.lattice_kind, state.tiling_rings, state.tiling_spacing)
        mechanism = build_tessellation_mechanism(
            cells,
            order=state.order,
            base_orientation=base_rotation,
            inter_cell_rotation=state.inter_cell_rotation,
            symmetry=state.symmetry,
            branch_order=state.branch_order,
            fixed_cell_id=state.resolved_fixed_cell_id,
        )

    logger.debug(
        "Derived geometry: %d sprite polylines, %d rosette curves, %d poses",
        len(sprite_polylines), len(rosette_curves), len(mechanism.poses),
    )
    return DerivedGeometry(
        base_rotation=base_rotation,
        sprite_polylines=sprite_polylines,
        rosette_curves=tuple(rosette_curves),
        centered_curves=tuple(centered),
        active_sprite_curve=active_curve,
        mechanism=mechanism,
    )
