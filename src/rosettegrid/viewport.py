"""Screen ↔ world conversion for pointer input.

``screen = world * scale + offset``, with the scale clamped to the
editor zoom range.  All functions return new values.
"""

from __future__ import annotations

from .constants import MAX_VIEWPORT_SCALE, MIN_VIEWPORT_SCALE
from .models import Point, Viewport


def clamp_scale(
    scale: float,
    min_scale: float = MIN_VIEWPORT_SCALE,
    max_scale: float = MAX_VIEWPORT_SCALE,
) -> float:
    return min(max_scale, max(min_scale, scale))


def screen_to_world(screen_point: Point, viewport: Viewport) -> Point:
    scale = clamp_scale(viewport.scale)
    return Point(
        (screen_point.x - viewport.offset.x) / scale,
        (screen_point.y - viewport.offset.y) / scale,
    )


def world_to_screen(world_point: Point, viewport: Viewport) -> Point:
    scale = clamp_scale(viewport.scale)
    return Point(
        world_point.x * scale + viewport.offset.x,
        world_point.y * scale + viewport.offset.y,
    )


def zoom_to_point(viewport: Viewport, screen_point: Point, next_scale: float) -> Viewport:
    """Change scale keeping the world point under *screen_point* in place."""
    safe_scale = clamp_scale(next_scale)
    world_point = screen_to_world(screen_point, viewport)
    return Viewport(
        scale=safe_scale,
        offset=Point(
            screen_point.x - world_point.x * safe_scale,
            screen_point.y - world_point.y * safe_scale,
        ),
    )


def pan(viewport: Viewport, dx: float, dy: float) -> Viewport:
    """Shift the view by a screen-space delta."""
    return Viewport(
        scale=viewport.scale,
        offset=Point(viewport.offset.x + dx, viewport.offset.y + dy),
    )
