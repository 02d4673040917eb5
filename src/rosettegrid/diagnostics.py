"""Invariant channel and mechanism quality checks.

Engine functions never raise on recoverable conditions; they report them
through :func:`invariant`, which logs and (only in strict mode, and only
for non-recoverable conditions) raises :class:`InvariantError`.

Strict mode is off by default and is enabled by setting the
``ROSETTEGRID_STRICT`` environment variable to ``1``/``true``/``yes``/``on``,
or per call via ``strict=True``.
"""

from __future__ import annotations

import json
import logging
import math
import os
from collections import Counter
from typing import Any, Dict, List, Optional

from .models import TessellationMechanism, TessellationSymmetry

logger = logging.getLogger(__name__)

STRICT_ENV_VAR = "ROSETTEGRID_STRICT"
_TRUTHY = {"1", "true", "yes", "on"}


class InvariantError(RuntimeError):
    """Raised for a violated non-recoverable invariant in strict mode."""


def strict_mode_enabled() -> bool:
    return os.environ.get(STRICT_ENV_VAR, "").strip().lower() in _TRUTHY


def _serialize_context(context: Any) -> str:
    if context is None:
        return ""
    if isinstance(context, BaseException):
        context = {"name": type(context).__name__, "message": str(context)}
    try:
        return json.dumps(context, sort_keys=True, default=str)
    except (TypeError, ValueError):
        return str(context)


def format_message(message: str, context: Any = None) -> str:
    serialized = _serialize_context(context)
    return message if not serialized else f"{message} :: {serialized}"


def invariant(
    condition: Any,
    message: str,
    context: Any = None,
    recoverable: bool = False,
    strict: Optional[bool] = None,
) -> bool:
    """Check *condition*; return it as a bool.

    A false condition is logged at ERROR level.  It raises only when
    strict mode is on and *recoverable* is false.
    """
    if condition:
        return True

    payload = format_message(message, context)
    if strict is None:
        strict = strict_mode_enabled()
    if strict and not recoverable:
        raise InvariantError(payload)

    logger.error("%s", payload)
    return False


# ═══════════════════════════════════════════════════════════════════
# Mechanism validation
# ═══════════════════════════════════════════════════════════════════

def validate_mechanism(
    mechanism: TessellationMechanism,
    order: Optional[int] = None,
    symmetry: Optional[TessellationSymmetry | str] = None,
) -> List[str]:
    """Return a list of invariant violations; empty when the mechanism is sound.

    *order* enables the petal range check; *symmetry* enables the
    translation-specific checks.
    """
    errors: list[str] = []
    if not mechanism.cells:
        if mechanism.edges or mechanism.poses:
            errors.append("Empty cell set must produce no edges and no poses")
        return errors

    cell_ids = [cell.id for cell in mechanism.cells]
    if len(set(cell_ids)) != len(cell_ids):
        errors.append("Cell ids are not unique")

    if len(mechanism.poses) != len(mechanism.cells):
        errors.append(
            f"Expected {len(mechanism.cells)} poses, found {len(mechanism.poses)}"
        )
    if len(mechanism.edges) != len(mechanism.poses) - 1:
        errors.append(
            f"Expected {len(mechanism.poses) - 1} edges, found {len(mechanism.edges)}"
        )

    roots = [pose for pose in mechanism.poses if pose.is_root]
    if len(roots) != 1:
        errors.append(f"Expected exactly one root pose, found {len(roots)}")
    for root in roots:
        if root.depth != 0:
            errors.append(f"Root pose {root.id} has depth {root.depth}")

    poses = mechanism.pose_map()
    reached = [root.id for root in roots] + [edge.child_id for edge in mechanism.edges]
    counts = Counter(reached)
    for cell_id in cell_ids:
        if counts.get(cell_id, 0) != 1:
            errors.append(f"Cell {cell_id} reached {counts.get(cell_id, 0)} times")

    seen = {root.id for root in roots}
    for edge in mechanism.edges:
        if edge.parent_id not in seen:
            errors.append(f"Edge {edge.parent_id}->{edge.child_id} parent not yet reached")
        seen.add(edge.child_id)
        child = poses.get(edge.child_id)
        parent = poses.get(edge.parent_id)
        if child is None or parent is None:
            errors.append(f"Edge {edge.parent_id}->{edge.child_id} references missing pose")
            continue
        if edge.depth != child.depth:
            errors.append(f"Edge depth {edge.depth} != child {child.id} depth {child.depth}")
        if child.depth != parent.depth + 1:
            errors.append(f"Pose {child.id} depth is not parent depth + 1")
        if order is not None:
            for petal in (edge.parent_petal, edge.child_petal):
                if not 0 <= petal < order:
                    errors.append(f"Petal {petal} out of range for order {order}")

    for pose in mechanism.poses:
        for name, value in (("orientation", pose.orientation), ("foldedAxis", pose.folded_axis)):
            if not math.isfinite(value) or not (-math.pi < value <= math.pi):
                errors.append(f"Pose {pose.id} {name} {value!r} outside (-pi, pi]")
        if not math.isfinite(pose.glide_offset):
            errors.append(f"Pose {pose.id} has non-finite glide offset")

    if symmetry is not None and TessellationSymmetry(symmetry) is TessellationSymmetry.TRANSLATION:
        for pose in mechanism.poses:
            if pose.mirrored or pose.glide_offset != 0:
                errors.append(f"Pose {pose.id} mirrored or glided under translation")

    return errors


def mechanism_report(
    mechanism: TessellationMechanism,
    order: Optional[int] = None,
    symmetry: Optional[TessellationSymmetry | str] = None,
) -> Dict[str, object]:
    """JSON-serialisable summary of a mechanism."""
    depth_counts = Counter(pose.depth for pose in mechanism.poses)
    root = mechanism.root
    return {
        "cell_count": len(mechanism.cells),
        "edge_count": len(mechanism.edges),
        "pose_count": len(mechanism.poses),
        "root_id": root.id if root else None,
        "fixed_ids": [pose.id for pose in mechanism.poses if pose.is_fixed],
        "max_depth": max(depth_counts) if depth_counts else 0,
        "depth_histogram": {str(d): depth_counts[d] for d in sorted(depth_counts)},
        "mirrored_count": sum(1 for pose in mechanism.poses if pose.mirrored),
        "errors": validate_mechanism(mechanism, order=order, symmetry=symmetry),
    }
