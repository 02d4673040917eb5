import json

import pytest

from rosettegrid.io import (
    ProjectValidationError,
    load_mechanism,
    load_project,
    project_from_payload,
    project_schema,
    save_mechanism,
    save_project,
    validate_project_payload,
)
from rosettegrid.lattice import build_lattice
from rosettegrid.models import LatticeKind
from rosettegrid.project import ProjectState, default_project_state
from rosettegrid.sprite import add_sprite
from rosettegrid.tessellation import build_tessellation_mechanism


def test_default_state_validates():
    assert validate_project_payload(default_project_state().to_dict()) == []


def test_schema_is_draft7():
    schema = project_schema()
    assert schema["$schema"].startswith("http://json-schema.org/draft-07")
    assert schema["properties"]["tilingLattice"]["enum"] == ["hex", "square"]


def test_invalid_payload_reports_paths():
    payload = default_project_state().to_dict()
    payload["tilingLattice"] = "triangle"
    payload["foldProgress"] = 2
    payload["sliceState"]["sprites"][0]["points"][0] = {"x": "a", "y": 0}
    errors = validate_project_payload(payload)
    assert len(errors) == 3
    assert any(e.startswith("tilingLattice:") for e in errors)
    assert any(e.startswith("foldProgress:") for e in errors)
    assert any(e.startswith("sliceState/sprites/0/points/0/x:") for e in errors)


def test_project_from_payload_raises():
    with pytest.raises(ProjectValidationError) as excinfo:
        project_from_payload({"order": 1})
    assert excinfo.value.errors == ["order: 1 is less than the minimum of 2"]
    assert isinstance(excinfo.value, ValueError)


def test_empty_payload_gives_defaults():
    assert project_from_payload({}) == default_project_state()


def test_save_and_load_project(tmp_path):
    state = ProjectState(
        order=12,
        lattice_kind=LatticeKind.SQUARE,
        tiling_rings=2,
        fold_progress=0.25,
        slice_state=add_sprite(default_project_state().slice_state, "sprite-2"),
    )
    path = tmp_path / "project.json"
    save_project(state, path)
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["order"] == 12
    assert load_project(path) == state


def test_load_invalid_project(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"tilingRings": -1}), encoding="utf-8")
    with pytest.raises(ProjectValidationError):
        load_project(path)


def test_mechanism_export(tmp_path):
    cells = build_lattice("hex", 1, 100.0)
    mechanism = build_tessellation_mechanism(cells, 8, symmetry="reflection")
    path = tmp_path / "mechanism.json"
    save_mechanism(mechanism, path)
    data = json.loads(path.read_text(encoding="utf-8"))
    assert set(data) == {"cells", "edges", "poses"}
    assert "foldedAxis" in data["poses"][0]
    assert "parentPetal" in data["edges"][0]
    assert load_mechanism(path) == mechanism
