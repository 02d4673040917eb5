from __future__ import annotations

import json
from pathlib import Path
from typing import List, Union

from jsonschema import Draft7Validator

from .models import BranchOrder, CurveMode, LatticeKind, TessellationMechanism, TessellationSymmetry
from .project import ProjectState


PathLike = Union[str, Path]


class ProjectValidationError(ValueError):
    """A project payload failed schema validation."""

    def __init__(self, errors: List[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = errors


_POINT_SCHEMA = {
    "type": "object",
    "required": ["x", "y"],
    "properties": {"x": {"type": "number"}, "y": {"type": "number"}},
}


def project_schema() -> dict:
    """JSON schema for a persisted :class:`ProjectState`."""
    sprite = {
        "type": "object",
        "required": ["id", "points"],
        "properties": {
            "id": {"type": "string", "minLength": 1},
            "type": {"const": "polyline"},
            "points": {"type": "array", "items": _POINT_SCHEMA},
            "enabled": {"type": "boolean"},
            "transform": {
                "type": "object",
                "properties": {
                    "x": {"type": "number"},
                    "y": {"type": "number"},
                    "rotationDeg": {"type": "number"},
                    "scale": {"type": "number"},
                },
            },
            "bezierContext": {
                "type": "object",
                "properties": {
                    "mode": {"enum": [m.value for m in CurveMode]},
                    "t": {"type": "number", "minimum": 0, "maximum": 1},
                    "lutSteps": {"type": "integer", "minimum": 2},
                    "offset": {"type": "number"},
                    "scale": {"type": "number"},
                },
            },
        },
    }
    return {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "title": "rosettegrid project",
        "type": "object",
        "properties": {
            "order": {"type": "integer", "minimum": 2},
            "lineThickness": {"type": "number", "exclusiveMinimum": 0},
            "baseOrientationDeg": {"type": "number"},
            "mirrorAdjacency": {"type": "boolean"},
            "sliceState": {
                "type": "object",
                "required": ["sprites"],
                "properties": {
                    "activeSpriteId": {"type": "string"},
                    "sprites": {"type": "array", "minItems": 1, "items": sprite},
                },
            },
            "tilingLattice": {"enum": [k.value for k in LatticeKind]},
            "tilingSpacing": {"type": "number", "exclusiveMinimum": 0},
            "tilingRings": {"type": "integer", "minimum": 0},
            "interCellRotation": {"type": "number"},
            "tessellationSymmetry": {"enum": [s.value for s in TessellationSymmetry]},
            "tessellationBranchOrder": {"enum": [b.value for b in BranchOrder]},
            "foldProgress": {"type": "number", "minimum": 0, "maximum": 1},
            "fixedCellId": {"type": "string"},
        },
    }


def validate_project_payload(payload: dict) -> List[str]:
    """Return schema violations as ``"<path>: <message>"`` strings."""
    validator = Draft7Validator(project_schema())
    errors = sorted(validator.iter_errors(payload), key=lambda e: list(e.absolute_path))
    messages: list[str] = []
    for error in errors:
        location = "/".join(str(part) for part in error.absolute_path) or "<root>"
        messages.append(f"{location}: {error.message}")
    return messages


def project_from_payload(payload: dict) -> ProjectState:
    errors = validate_project_payload(payload)
    if errors:
        raise ProjectValidationError(errors)
    return ProjectState.from_dict(payload)


def load_project(path: PathLike) -> ProjectState:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return project_from_payload(data)


def save_project(state: ProjectState, path: PathLike) -> None:
    Path(path).write_text(
        json.dumps(state.to_dict(), indent=2, sort_keys=True), encoding="utf-8"
    )


def save_mechanism(mechanism: TessellationMechanism, path: PathLike) -> None:
    """Export derived poses/edges for inspection (never needed to restore a project)."""
    Path(path).write_text(json.dumps(mechanism.to_dict(), indent=2), encoding="utf-8")


def load_mechanism(path: PathLike) -> TessellationMechanism:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return TessellationMechanism.from_dict(data)
