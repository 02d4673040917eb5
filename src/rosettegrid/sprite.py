"""Sprites: the user-authored base curves a rosette is built from.

A :class:`Sprite` holds control points plus a per-sprite affine transform
and a Bézier sampling context.  A :class:`SliceState` is the ordered set
of sprites making up one rosette slice.

Every editing operation here is pure: it returns a new
:class:`SliceState` and leaves its input untouched, so undo/redo can wrap
it from outside.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence, Tuple, Union

from .constants import DEFAULT_BASE_LINE, DEFAULT_LUT_STEPS, MIN_LUT_STEPS
from .curves import sample_curve
from .geometry import rotate_point, to_rad
from .models import BezierNodeRole, CurveMode, Point

APPEND_STEP = 28.0
APPEND_FALLBACK_DX = 30.0


@dataclass(frozen=True)
class SpriteTransform:
    x: float = 0.0
    y: float = 0.0
    rotation_deg: float = 0.0
    scale: float = 1.0

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "rotationDeg": self.rotation_deg, "scale": self.scale}

    @classmethod
    def from_dict(cls, payload: dict) -> "SpriteTransform":
        return cls(
            x=float(payload.get("x", 0.0)),
            y=float(payload.get("y", 0.0)),
            rotation_deg=float(payload.get("rotationDeg", 0.0)),
            scale=float(payload.get("scale", 1.0)),
        )


@dataclass(frozen=True)
class BezierContext:
    """How a sprite's control points are sampled into a polyline.

    Attributes
    ----------
    mode : CurveMode
        ``quadratic`` uses the first three points, ``cubic`` the first four.
    t : float
        Parameter of the highlighted point on the curve (editor cursor).
    lut_steps : int
        Number of samples (raised to at least 8).
    offset : float
        Signed distance along the curve normal.
    scale : float
        Uniform scale applied to the sampled points.
    """

    mode: CurveMode = CurveMode.CUBIC
    t: float = 0.5
    lut_steps: int = DEFAULT_LUT_STEPS
    offset: float = 0.0
    scale: float = 1.0

    def to_dict(self) -> dict:
        return {
            "mode": CurveMode(self.mode).value,
            "t": self.t,
            "lutSteps": self.lut_steps,
            "offset": self.offset,
            "scale": self.scale,
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "BezierContext":
        return cls(
            mode=CurveMode(payload.get("mode", CurveMode.CUBIC.value)),
            t=float(payload.get("t", 0.5)),
            lut_steps=int(payload.get("lutSteps", DEFAULT_LUT_STEPS)),
            offset=float(payload.get("offset", 0.0)),
            scale=float(payload.get("scale", 1.0)),
        )


@dataclass(frozen=True)
class Sprite:
    id: str
    points: Tuple[Point, ...]
    transform: SpriteTransform = field(default_factory=SpriteTransform)
    bezier: BezierContext = field(default_factory=BezierContext)
    enabled: bool = True

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": "polyline",
            "points": [p.to_dict() for p in self.points],
            "transform": self.transform.to_dict(),
            "bezierContext": self.bezier.to_dict(),
            "enabled": self.enabled,
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "Sprite":
        return cls(
            id=payload["id"],
            points=tuple(Point.from_dict(p) for p in payload.get("points", [])),
            transform=SpriteTransform.from_dict(payload.get("transform") or {}),
            bezier=BezierContext.from_dict(payload.get("bezierContext") or {}),
            enabled=payload.get("enabled", True) is not False,
        )


@dataclass(frozen=True)
class SliceState:
    active_sprite_id: str
    sprites: Tuple[Sprite, ...]

    @property
    def active_sprite(self) -> Optional[Sprite]:
        for sprite in self.sprites:
            if sprite.id == self.active_sprite_id:
                return sprite
        return self.sprites[0] if self.sprites else None

    def enabled_sprites(self) -> List[Sprite]:
        return [s for s in self.sprites if s.enabled]

    def to_dict(self) -> dict:
        return {
            "activeSpriteId": self.active_sprite_id,
            "sprites": [s.to_dict() for s in self.sprites],
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "SliceState":
        sprites = tuple(Sprite.from_dict(s) for s in payload.get("sprites", []))
        active = payload.get("activeSpriteId") or (sprites[0].id if sprites else "")
        return cls(active_sprite_id=active, sprites=sprites)


def new_sprite_id() -> str:
    return f"sprite-{uuid.uuid4().hex[:8]}"


def create_default_sprite(sprite_id: Optional[str] = None) -> Sprite:
    return Sprite(id=sprite_id or new_sprite_id(), points=DEFAULT_BASE_LINE)


def default_slice_state() -> SliceState:
    sprite = create_default_sprite("sprite-1")
    return SliceState(active_sprite_id=sprite.id, sprites=(sprite,))


# ═══════════════════════════════════════════════════════════════════
# Geometry of a sprite
# ═══════════════════════════════════════════════════════════════════

def renderable_points(sprite: Sprite) -> Tuple[Point, ...]:
    """Sampled curve of *sprite* in its own frame, before its transform."""
    points = sprite.points
    if len(points) <= 1:
        return points
    steps = max(MIN_LUT_STEPS, int(sprite.bezier.lut_steps))
    sampled = sample_curve(points, steps, sprite.bezier.offset, mode=sprite.bezier.mode)
    scale = sprite.bezier.scale
    return tuple(Point(p.x * scale, p.y * scale) for p in sampled)


def apply_sprite_transform(points: Sequence[Point], sprite: Sprite) -> Tuple[Point, ...]:
    """Scale, rotate, then translate *points* by the sprite's transform."""
    transform = sprite.transform
    angle = to_rad(transform.rotation_deg)
    out: list[Point] = []
    for p in points:
        rotated = rotate_point(Point(p.x * transform.scale, p.y * transform.scale), angle)
        out.append(Point(rotated.x + transform.x, rotated.y + transform.y))
    return tuple(out)


def sprite_polyline(sprite: Sprite) -> Tuple[Point, ...]:
    """Final slice-space polyline of *sprite*."""
    return apply_sprite_transform(renderable_points(sprite), sprite)


def bezier_node_index(sprite: Sprite, role: BezierNodeRole | str) -> Optional[int]:
    n = len(sprite.points)
    if n <= 0:
        return None
    role = BezierNodeRole(role)
    if role is BezierNodeRole.P0:
        return 0
    if role is BezierNodeRole.P1:
        return n - 1
    if role is BezierNodeRole.C0:
        return 1 if n >= 3 else None
    if role is BezierNodeRole.C1:
        return n - 2 if n >= 4 else None
    raise ValueError(f"Unknown bezier role {role!r}")


def bezier_node_point(sprite: Sprite, role: BezierNodeRole | str) -> Optional[Point]:
    index = bezier_node_index(sprite, role)
    return None if index is None else sprite.points[index]


def available_bezier_roles(sprite: Sprite) -> List[BezierNodeRole]:
    roles = [BezierNodeRole.P0]
    if len(sprite.points) >= 3:
        roles.append(BezierNodeRole.C0)
    if len(sprite.points) >= 4:
        roles.append(BezierNodeRole.C1)
    roles.append(BezierNodeRole.P1)
    return roles


def closest_point_on_segment(point: Point, a: Point, b: Point) -> Point:
    abx, aby = b.x - a.x, b.y - a.y
    denom = abx * abx + aby * aby
    if denom == 0:
        return a
    t = ((point.x - a.x) * abx + (point.y - a.y) * aby) / denom
    t = max(0.0, min(1.0, t))
    return Point(a.x + abx * t, a.y + aby * t)


def find_closest_segment_index(
    points: Sequence[Point], point: Point, tolerance: float = math.inf
) -> int:
    """Index of the segment nearest *point*, or -1 if none is within *tolerance*."""
    if len(points) < 2:
        return -1
    closest_index = -1
    closest_distance = math.inf
    for index in range(len(points) - 1):
        projected = closest_point_on_segment(point, points[index], points[index + 1])
        distance = math.hypot(projected.x - point.x, projected.y - point.y)
        if distance < closest_distance:
            closest_distance = distance
            closest_index = index
    return closest_index if closest_distance <= tolerance else -1


# ═══════════════════════════════════════════════════════════════════
# Editing operations
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class AppendStrategy:
    pass


@dataclass(frozen=True)
class MidpointStrategy:
    index: int


@dataclass(frozen=True)
class InsertOnSegmentStrategy:
    point: Point
    tolerance: float = math.inf


AddPointStrategy = Union[AppendStrategy, MidpointStrategy, InsertOnSegmentStrategy]


def _map_sprite(slice_state: SliceState, sprite_id: str, fn) -> SliceState:
    sprites = tuple(fn(s) if s.id == sprite_id else s for s in slice_state.sprites)
    return replace(slice_state, sprites=sprites)


def _insert_after(points: Tuple[Point, ...], index: int, point: Point) -> Tuple[Point, ...]:
    return points[: index + 1] + (point,) + points[index + 1 :]


def _append_point(points: Tuple[Point, ...]) -> Tuple[Point, ...]:
    last = points[-1]
    previous = points[-2] if len(points) >= 2 else Point(last.x - APPEND_FALLBACK_DX, last.y)
    dx, dy = last.x - previous.x, last.y - previous.y
    length = math.hypot(dx, dy) or 1.0
    return points + (Point(last.x + dx / length * APPEND_STEP, last.y + dy / length * APPEND_STEP),)


def _points_with_strategy(points: Tuple[Point, ...], strategy: AddPointStrategy) -> Tuple[Point, ...]:
    if not points:
        return points
    if isinstance(strategy, AppendStrategy):
        return _append_point(points)
    if isinstance(strategy, MidpointStrategy):
        if len(points) < 2:
            return points
        index = max(0, min(len(points) - 2, strategy.index))
        a, b = points[index], points[index + 1]
        return _insert_after(points, index, Point((a.x + b.x) / 2, (a.y + b.y) / 2))
    if isinstance(strategy, InsertOnSegmentStrategy):
        index = find_closest_segment_index(points, strategy.point, strategy.tolerance)
        if index < 0:
            return points
        projected = closest_point_on_segment(strategy.point, points[index], points[index + 1])
        return _insert_after(points, index, projected)
    raise TypeError(f"Unknown add-point strategy {strategy!r}")


def add_point(
    slice_state: SliceState, sprite_id: str, strategy: AddPointStrategy = AppendStrategy()
) -> SliceState:
    return _map_sprite(
        slice_state,
        sprite_id,
        lambda s: replace(s, points=_points_with_strategy(s.points, strategy)),
    )


def remove_point(
    slice_state: SliceState, sprite_id: str, index: Optional[int] = None
) -> SliceState:
    """Drop the last point, or the interior point at *index*.

    Sprites with two or fewer points, and endpoint indices, are left alone.
    """

    def _remove(sprite: Sprite) -> Sprite:
        n = len(sprite.points)
        if n <= 2:
            return sprite
        if index is None:
            return replace(sprite, points=sprite.points[:-1])
        if index <= 0 or index >= n - 1:
            return sprite
        return replace(sprite, points=sprite.points[:index] + sprite.points[index + 1 :])

    return _map_sprite(slice_state, sprite_id, _remove)


def global_to_local(global_point: Point, center: Point, base_rotation: float) -> Point:
    """Undo the rosette centering and base rotation of an editor point."""
    centered = Point(global_point.x - center.x, global_point.y - center.y)
    return rotate_point(centered, -base_rotation)


def update_handle_local(
    slice_state: SliceState,
    sprite_id: str,
    handle_index: int,
    global_point: Point,
    center: Point,
    base_rotation: float,
) -> SliceState:
    """Move control point *handle_index* to the local image of *global_point*."""
    local = global_to_local(global_point, center, base_rotation)

    def _move(sprite: Sprite) -> Sprite:
        if not 0 <= handle_index < len(sprite.points):
            return sprite
        points = tuple(local if i == handle_index else p for i, p in enumerate(sprite.points))
        return replace(sprite, points=points)

    return _map_sprite(slice_state, sprite_id, _move)


def update_bezier_node_local(
    slice_state: SliceState,
    sprite_id: str,
    role: BezierNodeRole | str,
    global_point: Point,
    center: Point,
    base_rotation: float,
) -> SliceState:
    for sprite in slice_state.sprites:
        if sprite.id == sprite_id:
            index = bezier_node_index(sprite, role)
            if index is None:
                return slice_state
            return update_handle_local(
                slice_state, sprite_id, index, global_point, center, base_rotation
            )
    return slice_state


def set_sprite_enabled(slice_state: SliceState, sprite_id: str, enabled: bool) -> SliceState:
    return _map_sprite(slice_state, sprite_id, lambda s: replace(s, enabled=enabled))


def set_active_sprite(slice_state: SliceState, sprite_id: str) -> SliceState:
    if any(s.id == sprite_id for s in slice_state.sprites):
        return replace(slice_state, active_sprite_id=sprite_id)
    return slice_state


def add_sprite(slice_state: SliceState, sprite_id: Optional[str] = None) -> SliceState:
    sprite = create_default_sprite(sprite_id)
    return SliceState(active_sprite_id=sprite.id, sprites=slice_state.sprites + (sprite,))


def remove_sprite(slice_state: SliceState, sprite_id: str) -> SliceState:
    """Remove a sprite; the last remaining sprite is never removed."""
    if len(slice_state.sprites) <= 1:
        return slice_state
    sprites = tuple(s for s in slice_state.sprites if s.id != sprite_id)
    if len(sprites) == len(slice_state.sprites):
        return slice_state
    active = slice_state.active_sprite_id
    if active == sprite_id:
        active = sprites[0].id
    return SliceState(active_sprite_id=active, sprites=sprites)


def update_sprite_transform(slice_state: SliceState, sprite_id: str, **changes) -> SliceState:
    """Patch transform fields (``x``, ``y``, ``rotation_deg``, ``scale``)."""
    return _map_sprite(
        slice_state, sprite_id, lambda s: replace(s, transform=replace(s.transform, **changes))
    )


def update_bezier_context(slice_state: SliceState, sprite_id: str, **changes) -> SliceState:
    """Patch sampling fields (``mode``, ``t``, ``lut_steps``, ``offset``, ``scale``)."""
    if "mode" in changes:
        changes["mode"] = CurveMode(changes["mode"])
    return _map_sprite(
        slice_state, sprite_id, lambda s: replace(s, bezier=replace(s.bezier, **changes))
    )
