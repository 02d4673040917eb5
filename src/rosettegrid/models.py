from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple


class LatticeKind(str, Enum):
    HEX = "hex"
    SQUARE = "square"


class TessellationSymmetry(str, Enum):
    TRANSLATION = "translation"
    REFLECTION = "reflection"
    GLIDE = "glide"


class BranchOrder(str, Enum):
    RING = "ring"
    SPIRAL = "spiral"
    AXIS_FIRST = "axis-first"


class CurveMode(str, Enum):
    QUADRATIC = "quadratic"
    CUBIC = "cubic"


class BezierNodeRole(str, Enum):
    P0 = "p0"
    C0 = "c0"
    C1 = "c1"
    P1 = "p1"


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, payload: dict) -> "Point":
        return cls(float(payload["x"]), float(payload["y"]))


Polyline = Tuple[Point, ...]


@dataclass(frozen=True)
class LatticeCell:
    """One tile position.

    *q*, *r* are axial coordinates for hex lattices and column/row for
    square lattices; *id* is always ``"q,r"``.
    """

    id: str
    x: float
    y: float
    ring: int
    q: int
    r: int

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "ring": self.ring,
            "q": self.q,
            "r": self.r,
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "LatticeCell":
        return cls(
            id=payload["id"],
            x=float(payload["x"]),
            y=float(payload["y"]),
            ring=int(payload["ring"]),
            q=int(payload["q"]),
            r=int(payload["r"]),
        )


@dataclass(frozen=True)
class TessellationNodePose:
    """Placement of one rosette instance on a lattice cell.

    *orientation* and *folded_axis* are radians in ``(-pi, pi]``.
    *glide_offset* is a signed distance perpendicular to *folded_axis*.
    """

    id: str
    x: float
    y: float
    ring: int
    depth: int
    orientation: float
    folded_axis: float
    mirrored: bool = False
    glide_offset: float = 0.0
    is_root: bool = False
    is_fixed: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "ring": self.ring,
            "depth": self.depth,
            "orientation": self.orientation,
            "foldedAxis": self.folded_axis,
            "mirrored": self.mirrored,
            "glideOffset": self.glide_offset,
            "isRoot": self.is_root,
            "isFixed": self.is_fixed,
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "TessellationNodePose":
        return cls(
            id=payload["id"],
            x=float(payload["x"]),
            y=float(payload["y"]),
            ring=int(payload["ring"]),
            depth=int(payload["depth"]),
            orientation=float(payload["orientation"]),
            folded_axis=float(payload["foldedAxis"]),
            mirrored=bool(payload.get("mirrored", False)),
            glide_offset=float(payload.get("glideOffset", 0.0)),
            is_root=bool(payload.get("isRoot", False)),
            is_fixed=bool(payload.get("isFixed", False)),
        )


@dataclass(frozen=True)
class TessellationEdge:
    """Parent-to-child link; petals are sector indices in ``[0, order)``."""

    parent_id: str
    child_id: str
    parent_petal: int
    child_petal: int
    depth: int

    def to_dict(self) -> dict:
        return {
            "parentId": self.parent_id,
            "childId": self.child_id,
            "parentPetal": self.parent_petal,
            "childPetal": self.child_petal,
            "depth": self.depth,
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "TessellationEdge":
        return cls(
            parent_id=payload["parentId"],
            child_id=payload["childId"],
            parent_petal=int(payload["parentPetal"]),
            child_petal=int(payload["childPetal"]),
            depth=int(payload["depth"]),
        )


@dataclass(frozen=True)
class TessellationMechanism:
    cells: Tuple[LatticeCell, ...] = field(default_factory=tuple)
    edges: Tuple[TessellationEdge, ...] = field(default_factory=tuple)
    poses: Tuple[TessellationNodePose, ...] = field(default_factory=tuple)

    def is_empty(self) -> bool:
        return not self.cells

    @property
    def root(self) -> Optional[TessellationNodePose]:
        for pose in self.poses:
            if pose.is_root:
                return pose
        return None

    def pose_by_id(self, cell_id: str) -> Optional[TessellationNodePose]:
        for pose in self.poses:
            if pose.id == cell_id:
                return pose
        return None

    def pose_map(self) -> Dict[str, TessellationNodePose]:
        return {pose.id: pose for pose in self.poses}

    def to_dict(self) -> dict:
        return {
            "cells": [cell.to_dict() for cell in self.cells],
            "edges": [edge.to_dict() for edge in self.edges],
            "poses": [pose.to_dict() for pose in self.poses],
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "TessellationMechanism":
        return cls(
            cells=tuple(LatticeCell.from_dict(c) for c in payload.get("cells", [])),
            edges=tuple(TessellationEdge.from_dict(e) for e in payload.get("edges", [])),
            poses=tuple(TessellationNodePose.from_dict(p) for p in payload.get("poses", [])),
        )


@dataclass(frozen=True)
class Viewport:
    scale: float = 1.0
    offset: Point = Point(0.0, 0.0)

    def to_dict(self) -> dict:
        return {"scale": self.scale, "offset": self.offset.to_dict()}

    @classmethod
    def from_dict(cls, payload: dict) -> "Viewport":
        return cls(
            scale=float(payload.get("scale", 1.0)),
            offset=Point.from_dict(payload.get("offset", {"x": 0.0, "y": 0.0})),
        )
