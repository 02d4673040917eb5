"""Editor bounds and defaults shared by the engine and the CLI."""

from __future__ import annotations

from typing import Tuple

from .models import BranchOrder, LatticeKind, Point, TessellationSymmetry

_ORDER_BASES = (4, 5, 6, 7, 8, 9, 10, 11, 12)
_ORDER_LIMIT = 128

ALLOWED_ORDERS: Tuple[int, ...] = tuple(
    sorted({base * k for base in _ORDER_BASES for k in range(1, _ORDER_LIMIT // base + 1)})
)
MIN_ORDER = ALLOWED_ORDERS[0]
MAX_ORDER = ALLOWED_ORDERS[-1]
DEFAULT_ORDER = 8

BASE_ORIENTATION_DEG = 95.0
MIN_BASE_ORIENTATION_DEG = -180.0
MAX_BASE_ORIENTATION_DEG = 180.0

MIN_LINE_THICKNESS = 0.5
MAX_LINE_THICKNESS = 12.0
DEFAULT_LINE_THICKNESS = 1.8

MIN_TILING_SPACING = 80.0
MAX_TILING_SPACING = 460.0
DEFAULT_TILING_SPACING = 220.0

MIN_TILING_RINGS = 1
MAX_TILING_RINGS = 4
DEFAULT_TILING_RINGS = 1

DEFAULT_LATTICE_KIND = LatticeKind.HEX
DEFAULT_TESSELLATION_SYMMETRY = TessellationSymmetry.TRANSLATION
DEFAULT_TESSELLATION_BRANCH_ORDER = BranchOrder.RING

MIN_FOLD_PROGRESS = 0.0
MAX_FOLD_PROGRESS = 1.0
DEFAULT_FOLD_PROGRESS = 0.0

ROOT_CELL_ID = "0,0"

# Glide offset = max(nearest-neighbour spacing * ratio, floor).
GLIDE_SPACING_RATIO = 0.22
GLIDE_MIN_OFFSET = 10.0

DEFAULT_LUT_STEPS = 48
MIN_LUT_STEPS = 8

DEFAULT_BASE_LINE: Tuple[Point, ...] = (
    Point(-10.0, 12.0),
    Point(42.0, -10.0),
    Point(58.0, -64.0),
    Point(-6.0, -112.0),
)

MIN_VIEWPORT_SCALE = 0.2
MAX_VIEWPORT_SCALE = 8.0
