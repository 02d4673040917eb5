"""Tests for project state, clamping and the derived-geometry pipeline."""

import math

import pytest

from rosettegrid.diagnostics import validate_mechanism
from rosettegrid.geometry import rotate_point
from rosettegrid.models import BranchOrder, LatticeKind, Point, TessellationSymmetry
from rosettegrid.project import (
    ProjectState,
    clamp_project_state,
    default_project_state,
    derive_geometry,
)
from rosettegrid.sprite import add_sprite, set_sprite_enabled, sprite_polyline


class TestProjectState:
    def test_defaults(self):
        state = default_project_state()
        assert state.order == 8
        assert state.base_orientation_deg == 95.0
        assert state.lattice_kind is LatticeKind.HEX
        assert state.symmetry is TessellationSymmetry.TRANSLATION
        assert state.branch_order is BranchOrder.RING
        assert state.fold_progress == 0.0
        assert state.fixed_cell_id == "0,0"

    def test_inter_cell_rotation_scaled_by_fold(self):
        state = ProjectState(inter_cell_rotation_deg=90.0, fold_progress=0.5)
        assert state.inter_cell_rotation == pytest.approx(math.pi / 4)
        assert ProjectState(inter_cell_rotation_deg=90.0).inter_cell_rotation == 0.0

    def test_resolved_fixed_cell_id(self):
        assert ProjectState(fixed_cell_id="  ").resolved_fixed_cell_id is None
        assert ProjectState(fixed_cell_id=" 1,0 ").resolved_fixed_cell_id == "1,0"

    def test_dict_keys(self):
        payload = default_project_state().to_dict()
        assert payload["tilingLattice"] == "hex"
        assert payload["tessellationSymmetry"] == "translation"
        assert payload["tessellationBranchOrder"] == "ring"
        assert payload["sliceState"]["activeSpriteId"] == "sprite-1"

    def test_from_dict_fills_defaults(self):
        state = ProjectState.from_dict({"order": 12, "tessellationBranchOrder": "axis-first"})
        assert state.order == 12
        assert state.branch_order is BranchOrder.AXIS_FIRST
        assert state.slice_state == default_project_state().slice_state

    def test_from_dict_rejects_unknown_enum(self):
        with pytest.raises(ValueError):
            ProjectState.from_dict({"tilingLattice": "triangle"})


def test_clamp_project_state():
    state = ProjectState(
        order=13,
        line_thickness=50.0,
        base_orientation_deg=-400.0,
        tiling_spacing=10.0,
        tiling_rings=9,
        fold_progress=1.5,
    )
    clamped = clamp_project_state(state)
    assert clamped.order == 12
    assert clamped.line_thickness == 12.0
    assert clamped.base_orientation_deg == -180.0
    assert clamped.tiling_spacing == 80.0
    assert clamped.tiling_rings == 4
    assert clamped.fold_progress == 1.0
    assert clamp_project_state(default_project_state()) == default_project_state()


class TestDeriveGeometry:
    def test_curve_counts(self):
        state = default_project_state()
        geometry = derive_geometry(state)
        assert len(geometry.sprite_polylines) == 1
        assert len(geometry.rosette_curves) == state.order
        assert len(geometry.mechanism.cells) == 7
        assert validate_mechanism(geometry.mechanism, order=state.order) == []

    def test_disabled_sprites_excluded(self):
        slice_state = add_sprite(default_project_state().slice_state, "sprite-2")
        slice_state = set_sprite_enabled(slice_state, "sprite-1", False)
        geometry = derive_geometry(ProjectState(slice_state=slice_state, order=6))
        assert len(geometry.sprite_polylines) == 1
        assert len(geometry.rosette_curves) == 6

    def test_centered_curves_translated(self):
        center = Point(400.0, 300.0)
        geometry = derive_geometry(default_project_state(), center=center)
        for local, centered in zip(geometry.rosette_curves, geometry.centered_curves):
            assert centered[0].x == pytest.approx(local[0].x + 400.0)
            assert centered[0].y == pytest.approx(local[0].y + 300.0)

    def test_active_curve_matches_first_replica(self):
        state = ProjectState(mirror_adjacency=False)
        geometry = derive_geometry(state, center=Point(10.0, 20.0))
        first = geometry.centered_curves[0]
        assert len(geometry.active_sprite_curve) == len(first)
        for a, b in zip(geometry.active_sprite_curve, first):
            assert a.x == pytest.approx(b.x)
            assert a.y == pytest.approx(b.y)

    def test_base_rotation_applied(self):
        state = default_project_state()
        geometry = derive_geometry(state)
        local = sprite_polyline(state.slice_state.sprites[0])
        expected = rotate_point(local[0], math.radians(95.0))
        assert geometry.base_rotation == pytest.approx(math.radians(95.0))
        assert geometry.rosette_curves[0][0].x == pytest.approx(expected.x)
        assert geometry.rosette_curves[0][0].y == pytest.approx(expected.y)

    def test_skip_tessellation(self):
        geometry = derive_geometry(default_project_state(), include_tessellation=False)
        assert geometry.mechanism.is_empty()

    def test_mechanism_uses_project_modes(self):
        state = ProjectState(
            lattice_kind=LatticeKind.SQUARE,
            tiling_rings=2,
            symmetry=TessellationSymmetry.GLIDE,
            inter_cell_rotation_deg=30.0,
            fold_progress=1.0,
            fixed_cell_id="1,1",
        )
        mechanism = derive_geometry(state).mechanism
        assert len(mechanism.cells) == 25
        assert mechanism.root.id == "1,1"
        assert any(pose.mirrored for pose in mechanism.poses)
        assert validate_mechanism(mechanism, order=state.order, symmetry="glide") == []
