"""PNG previews of rosettes and tessellation mechanisms.

Requires matplotlib; imported lazily to keep the engine lightweight.
Motifs are placed with :func:`~rosettegrid.rosette.place_motif`, the same
rule any interactive renderer uses.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from .models import Point, TessellationMechanism
from .rosette import motif_anchor, place_motif

_CURVE_COLOR = "#00c8d7"
_EDGE_COLOR = "#b084f5"
_NODE_COLOR = "#2b2b2b"
_ROOT_COLOR = "#e63946"
_FIXED_COLOR = "#ffb703"


def _ensure_mpl():
    try:
        import matplotlib.pyplot as plt
        return plt
    except ImportError as exc:  # pragma: no cover - requires optional dep
        raise RuntimeError(
            "matplotlib is required for rendering. Install with `pip install matplotlib`."
        ) from exc


def depth_opacity(depth: int) -> float:
    """Motif alpha fading with tree depth."""
    return max(0.24, 0.86 - depth * 0.11)


def _draw_polylines(
    ax,
    curves: Iterable[Sequence[Point]],
    color: str,
    linewidth: float,
    alpha: float = 1.0,
) -> List[Tuple[float, float]]:
    drawn: list[tuple[float, float]] = []
    for curve in curves:
        if len(curve) < 2:
            continue
        xs = [p.x for p in curve]
        ys = [p.y for p in curve]
        ax.plot(xs, ys, color=color, linewidth=linewidth, alpha=alpha, solid_capstyle="round")
        drawn.extend(zip(xs, ys))
    return drawn


def _finish(plt, fig, ax, points: List[Tuple[float, float]], output_path, padding: float, dpi: int) -> None:
    if points:
        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        ax.set_xlim(min(xs) - padding, max(xs) + padding)
        # Screen coordinates grow downward.
        ax.set_ylim(max(ys) + padding, min(ys) - padding)
    ax.set_aspect("equal", "box")
    ax.axis("off")

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, dpi=dpi, bbox_inches="tight", pad_inches=0)
    plt.close(fig)


def render_rosette_png(
    curves: Sequence[Sequence[Point]],
    output_path: str | Path,
    color: str = _CURVE_COLOR,
    linewidth: float = 1.8,
    padding: float = 10.0,
    dpi: int = 150,
) -> None:
    """Render local-space rosette curves to PNG."""
    plt = _ensure_mpl()
    fig, ax = plt.subplots()
    drawn = _draw_polylines(ax, curves, color, linewidth)
    _finish(plt, fig, ax, drawn, output_path, padding, dpi)


def render_mechanism_png(
    mechanism: TessellationMechanism,
    curves: Sequence[Sequence[Point]],
    output_path: str | Path,
    color: str = _CURVE_COLOR,
    linewidth: float = 1.2,
    show_edges: bool = True,
    show_nodes: bool = True,
    padding: float = 20.0,
    dpi: int = 150,
    title: Optional[str] = None,
) -> None:
    """Render one motif per pose, plus optional link and node overlays."""
    plt = _ensure_mpl()
    fig, ax = plt.subplots()

    drawn: list[tuple[float, float]] = []
    for pose in mechanism.poses:
        drawn.extend(_draw_polylines(
            ax, place_motif(curves, pose), color, linewidth, alpha=depth_opacity(pose.depth)
        ))

    poses = mechanism.pose_map()
    if show_edges:
        for edge in mechanism.edges:
            parent = poses.get(edge.parent_id)
            child = poses.get(edge.child_id)
            if parent is None or child is None:
                continue
            ax.plot(
                [parent.x, child.x], [parent.y, child.y],
                color=_EDGE_COLOR, linewidth=1.0, linestyle=(0, (4, 3)), zorder=2,
            )

    if show_nodes:
        for pose in mechanism.poses:
            anchor = motif_anchor(pose)
            node_color = _ROOT_COLOR if pose.is_root else (_FIXED_COLOR if pose.is_fixed else _NODE_COLOR)
            ax.scatter(anchor.x, anchor.y, s=12, c=node_color, zorder=3)
            drawn.append((anchor.x, anchor.y))

    if title:
        ax.set_title(title)
    _finish(plt, fig, ax, drawn, output_path, padding, dpi)
