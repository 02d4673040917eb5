"""rosettegrid — geometry engine for rosette patterns and tessellations.

Public API is organised into layers:

- **Core** — models, geometry helpers, constants
- **Building** — curve sampling, rosette replication, lattices,
  tessellation mechanisms, viewport math
- **Slice** — sprites and pure slice-editing operations
- **Project** — input parameters, derived geometry, JSON I/O
- **Rendering** — PNG previews (requires matplotlib)
- **Diagnostics** — invariant channel and mechanism checks
"""

# ── Core ────────────────────────────────────────────────────────────
from .models import (
    BezierNodeRole,
    BranchOrder,
    CurveMode,
    LatticeCell,
    LatticeKind,
    Point,
    TessellationEdge,
    TessellationMechanism,
    TessellationNodePose,
    TessellationSymmetry,
    Viewport,
)
from .constants import ALLOWED_ORDERS, DEFAULT_ORDER, ROOT_CELL_ID
from .geometry import normalize_angle, rotate_point, snap_order, to_deg, to_rad

# ── Building ────────────────────────────────────────────────────────
from .curves import sample_curve
from .rosette import (
    build_rosette,
    build_rosette_curve,
    motif_anchor,
    place_mechanism,
    place_motif,
    transform_to_center,
)
from .lattice import build_lattice, cell_index, hex_cell_count, square_cell_count
from .tessellation import (
    build_tessellation_mechanism,
    choose_parent,
    estimate_spacing,
    fold_orientation,
    petal_index,
    sort_cells_by_branch_order,
)
from .viewport import clamp_scale, pan, screen_to_world, world_to_screen, zoom_to_point

# ── Slice ───────────────────────────────────────────────────────────
from .sprite import (
    BezierContext,
    SliceState,
    Sprite,
    SpriteTransform,
    apply_sprite_transform,
    default_slice_state,
    renderable_points,
    sprite_polyline,
)

# ── Project ─────────────────────────────────────────────────────────
from .project import (
    DerivedGeometry,
    ProjectState,
    clamp_project_state,
    default_project_state,
    derive_geometry,
)
from .io import (
    ProjectValidationError,
    load_project,
    project_schema,
    save_mechanism,
    save_project,
    validate_project_payload,
)

# ── Rendering (requires matplotlib) ────────────────────────────────
from .render import render_mechanism_png, render_rosette_png

# ── Diagnostics ─────────────────────────────────────────────────────
from .diagnostics import InvariantError, invariant, mechanism_report, validate_mechanism

__all__ = [
    # Core
    "BezierNodeRole",
    "BranchOrder",
    "CurveMode",
    "LatticeCell",
    "LatticeKind",
    "Point",
    "TessellationEdge",
    "TessellationMechanism",
    "TessellationNodePose",
    "TessellationSymmetry",
    "Viewport",
    "ALLOWED_ORDERS",
    "DEFAULT_ORDER",
    "ROOT_CELL_ID",
    "normalize_angle",
    "rotate_point",
    "snap_order",
    "to_deg",
    "to_rad",
    # Building
    "sample_curve",
    "build_rosette",
    "build_rosette_curve",
    "motif_anchor",
    "place_mechanism",
    "place_motif",
    "transform_to_center",
    "build_lattice",
    "cell_index",
    "hex_cell_count",
    "square_cell_count",
    "build_tessellation_mechanism",
    "choose_parent",
    "estimate_spacing",
    "fold_orientation",
    "petal_index",
    "sort_cells_by_branch_order",
    "clamp_scale",
    "pan",
    "screen_to_world",
    "world_to_screen",
    "zoom_to_point",
    # Slice
    "BezierContext",
    "SliceState",
    "Sprite",
    "SpriteTransform",
    "apply_sprite_transform",
    "default_slice_state",
    "renderable_points",
    "sprite_polyline",
    # Project
    "DerivedGeometry",
    "ProjectState",
    "clamp_project_state",
    "default_project_state",
    "derive_geometry",
    "ProjectValidationError",
    "load_project",
    "project_schema",
    "save_mechanism",
    "save_project",
    "validate_project_payload",
    # Rendering
    "render_mechanism_png",
    "render_rosette_png",
    # Diagnostics
    "InvariantError",
    "invariant",
    "mechanism_report",
    "validate_mechanism",
]
