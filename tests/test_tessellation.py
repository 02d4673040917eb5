"""Tests for the tessellation mechanism builder."""

import logging
import math

import pytest

from rosettegrid.diagnostics import validate_mechanism
from rosettegrid.geometry import normalize_angle
from rosettegrid.lattice import build_lattice
from rosettegrid.models import LatticeCell, TessellationMechanism
from rosettegrid.tessellation import (
    build_tessellation_mechanism,
    choose_parent,
    estimate_spacing,
    fold_orientation,
    glide_offset,
    mirror_flag,
    opposite_petal,
    petal_index,
    sort_cells_by_branch_order,
)


def _cell(cell_id, x, y, ring, q=0, r=0):
    return LatticeCell(id=cell_id, x=x, y=y, ring=ring, q=q, r=r)


@pytest.fixture
def hex1():
    return build_lattice("hex", 1, 100.0)


@pytest.fixture
def square2():
    return build_lattice("square", 2, 100.0)


# ═══════════════════════════════════════════════════════════════════
# End-to-end
# ═══════════════════════════════════════════════════════════════════


class TestEndToEnd:
    def test_hex_ring_one_translation(self, hex1):
        mech = build_tessellation_mechanism(hex1, 8, 0.0, 0.0, "translation", "ring")
        assert len(hex1) == 7
        assert len(mech.edges) == 6
        root = mech.root
        assert root.id == "0,0"
        assert root.depth == 0
        for pose in mech.poses:
            if pose.id != "0,0":
                assert pose.depth == 1
            assert pose.orientation == 0
        assert all(edge.parent_id == "0,0" for edge in mech.edges)

    def test_petals_face_children(self, hex1):
        mech = build_tessellation_mechanism(hex1, 8, 0.0, 0.0, "translation", "ring")
        by_child = {edge.child_id: edge for edge in mech.edges}
        assert by_child["1,0"].parent_petal == 0
        assert by_child["1,0"].child_petal == 4
        # (50, 86.6) sits at 60 degrees → 8/6 sectors → petal 1
        assert by_child["0,1"].parent_petal == 1
        assert by_child["0,1"].child_petal == 5

    def test_empty_cells(self):
        mech = build_tessellation_mechanism([], 8)
        assert mech == TessellationMechanism()
        assert mech.is_empty()

    def test_single_cell(self):
        mech = build_tessellation_mechanism([_cell("0,0", 0, 0, 0)], 6)
        assert mech.edges == ()
        assert len(mech.poses) == 1
        assert mech.poses[0].is_root
        assert mech.poses[0].is_fixed


# ═══════════════════════════════════════════════════════════════════
# Structural invariants
# ═══════════════════════════════════════════════════════════════════


@pytest.mark.parametrize("kind", ["hex", "square"])
@pytest.mark.parametrize("symmetry", ["translation", "reflection", "glide"])
@pytest.mark.parametrize("branch", ["ring", "spiral", "axis-first"])
def test_spanning_tree(kind, symmetry, branch):
    cells = build_lattice(kind, 2, 120.0)
    mech = build_tessellation_mechanism(cells, 6, 0.3, 0.2, symmetry, branch)

    assert len(mech.edges) == len(cells) - 1
    reached = [mech.root.id] + [edge.child_id for edge in mech.edges]
    assert sorted(reached) == sorted(cell.id for cell in cells)
    assert sum(1 for pose in mech.poses if pose.is_root) == 1
    assert mech.root.depth == 0
    assert validate_mechanism(mech, order=6, symmetry=symmetry) == []


def test_translation_has_no_mirroring(square2):
    mech = build_tessellation_mechanism(square2, 8, 1.0, 0.7, "translation", "spiral")
    for pose in mech.poses:
        assert pose.mirrored is False
        assert pose.glide_offset == 0


def test_poses_sorted_by_depth_then_ring(square2):
    mech = build_tessellation_mechanism(square2, 8, 0.0, 0.0, "reflection", "ring")
    keys = [(pose.depth, pose.ring) for pose in mech.poses]
    assert keys == sorted(keys)


def test_edge_depth_matches_child(square2):
    mech = build_tessellation_mechanism(square2, 8, 0.0, 0.0, "glide", "axis-first")
    poses = mech.pose_map()
    for edge in mech.edges:
        assert edge.depth == poses[edge.child_id].depth
        assert edge.depth == poses[edge.parent_id].depth + 1


def test_orientations_normalized(square2):
    mech = build_tessellation_mechanism(square2, 8, 3.0, 2.9, "reflection", "ring")
    for pose in mech.poses:
        assert -math.pi < pose.orientation <= math.pi
        assert -math.pi < pose.folded_axis <= math.pi


def test_deterministic(square2):
    a = build_tessellation_mechanism(square2, 12, 0.4, 0.25, "glide", "spiral", "1,0")
    b = build_tessellation_mechanism(square2, 12, 0.4, 0.25, "glide", "spiral", "1,0")
    assert a == b
    assert a.to_dict() == b.to_dict()


# ═══════════════════════════════════════════════════════════════════
# Greedy parent choice and depth > 1
# ═══════════════════════════════════════════════════════════════════


class TestSquareRingOrder:
    def test_corner_hangs_off_edge_neighbour(self, square2):
        mech = build_tessellation_mechanism(square2, 8, 0.0, 0.0, "translation", "ring")
        parents = {edge.child_id: edge.parent_id for edge in mech.edges}
        # Ring-1 cells in angle order start at (-1,-1), then (0,-1), then (1,-1).
        assert parents["-1,-1"] == "0,0"
        assert parents["0,-1"] == "0,0"
        assert parents["1,-1"] == "0,-1"
        assert mech.pose_by_id("1,-1").depth == 2

    def test_glide_depth_two(self, square2):
        mech = build_tessellation_mechanism(square2, 8, 0.0, 0.1, "glide", "ring")
        depth1 = mech.pose_by_id("0,-1")
        depth2 = mech.pose_by_id("1,-1")
        assert depth1.orientation == pytest.approx(-0.1)
        assert depth1.mirrored is True
        assert depth1.glide_offset == pytest.approx(-22.0)
        assert depth2.orientation == pytest.approx(0.0)
        assert depth2.mirrored is True
        assert depth2.glide_offset == pytest.approx(22.0)

    def test_reflection_depth_one(self, square2):
        mech = build_tessellation_mechanism(square2, 8, 0.0, 0.0, "reflection", "ring")
        pose = mech.pose_by_id("1,0")
        assert pose.orientation == pytest.approx(math.pi)
        assert pose.mirrored is True
        assert pose.glide_offset == 0
        assert pose.folded_axis == pytest.approx(0.0)


# ═══════════════════════════════════════════════════════════════════
# Root selection
# ═══════════════════════════════════════════════════════════════════


class TestRootSelection:
    def test_fixed_cell_becomes_root(self, hex1):
        mech = build_tessellation_mechanism(hex1, 8, fixed_cell_id="1,0")
        assert mech.root.id == "1,0"
        assert mech.root.is_fixed
        assert [p.id for p in mech.poses if p.is_fixed] == ["1,0"]
        assert len(mech.edges) == 6

    def test_unset_fixed_marks_root(self, hex1):
        mech = build_tessellation_mechanism(hex1, 8)
        assert mech.root.is_fixed
        assert sum(1 for p in mech.poses if p.is_fixed) == 1

    def test_unknown_fixed_cell_falls_back(self, hex1, caplog, monkeypatch):
        monkeypatch.setenv("ROSETTEGRID_STRICT", "1")
        with caplog.at_level(logging.ERROR, logger="rosettegrid.diagnostics"):
            mech = build_tessellation_mechanism(hex1, 8, fixed_cell_id="9,9")
        assert mech.root.id == "0,0"
        assert not any(p.is_fixed for p in mech.poses)
        assert "fixed cell not found" in caplog.text

    def test_without_origin_uses_first_cell(self):
        cells = [_cell("a", 10, 0, 1), _cell("b", 20, 0, 2), _cell("c", 30, 0, 3)]
        mech = build_tessellation_mechanism(cells, 4)
        assert mech.root.id == "a"
        assert [(e.parent_id, e.child_id) for e in mech.edges] == [("a", "b"), ("b", "c")]

    def test_base_orientation_normalized(self, hex1):
        mech = build_tessellation_mechanism(hex1, 8, base_orientation=3 * math.pi / 2)
        assert mech.root.orientation == pytest.approx(-math.pi / 2)
        assert mech.root.folded_axis == mech.root.orientation


# ═══════════════════════════════════════════════════════════════════
# Building blocks
# ═══════════════════════════════════════════════════════════════════


def test_petal_index():
    assert petal_index(0.0, 8) == 0
    assert petal_index(-math.pi / 2, 4) == 3
    assert petal_index(2 * math.pi - 1e-9, 8) == 0
    assert petal_index(math.pi, 6) == 3


def test_opposite_petal_rounds_half_up():
    assert opposite_petal(0, 8) == 4
    assert opposite_petal(1, 5) == 4
    assert opposite_petal(3, 5) == 1


def test_fold_orientation_modes():
    assert fold_orientation(0.3, 1, "translation", 0.1) == pytest.approx(0.4)
    assert fold_orientation(0.3, 1, "reflection", 0.1) == pytest.approx(math.pi - 0.4)
    assert fold_orientation(0.3, 2, "reflection", 0.1) == pytest.approx(0.4)
    assert fold_orientation(0.3, 1, "glide", 0.1) == pytest.approx(-0.4)
    assert fold_orientation(0.3, 2, "glide", 0.1) == pytest.approx(0.4)
    assert fold_orientation(math.pi, 2, "translation", 0.0) == math.pi


def test_mirror_and_glide_helpers():
    assert mirror_flag(True, 1, "translation") is False
    assert mirror_flag(False, 1, "reflection") is True
    assert mirror_flag(True, 2, "glide") is True
    assert glide_offset(1, "glide", 100.0) == pytest.approx(-22.0)
    assert glide_offset(2, "glide", 10.0) == pytest.approx(10.0)
    assert glide_offset(1, "reflection", 100.0) == 0.0


def test_estimate_spacing():
    assert estimate_spacing(build_lattice("hex", 1, 100.0)) == pytest.approx(100.0)
    assert estimate_spacing([_cell("0,0", 0, 0, 0)]) == 0.0
    coincident = [_cell("a", 0, 0, 0), _cell("b", 0, 0, 0), _cell("c", 50, 0, 1)]
    assert estimate_spacing(coincident) == pytest.approx(50.0)


def test_choose_parent_prefers_smaller_ring_on_tie():
    target = _cell("t", 0, 100, 2)
    near_outer = _cell("o", 100, 100, 1)
    near_inner = _cell("i", 0, 0, 0)
    assert choose_parent(target, [near_outer, near_inner]).id == "i"
    assert choose_parent(target, []) is target


def test_sort_spiral_breaks_angle_ties_by_ring():
    cells = build_lattice("hex", 2, 100.0)
    ordered = [c.id for c in sort_cells_by_branch_order(cells, "spiral")]
    assert ordered[0] == "0,0"
    assert ordered.index("1,0") == ordered.index("2,0") - 1


def test_sort_axis_first_puts_axis_row_first():
    cells = build_lattice("hex", 2, 100.0)
    ordered = sort_cells_by_branch_order(cells, "axis-first")
    assert [c.r for c in ordered[:5]] == [0, 0, 0, 0, 0]
    assert ordered[0].id == "0,0"


def test_sort_ring_forces_given_root_first():
    cells = build_lattice("square", 1, 100.0)
    ordered = sort_cells_by_branch_order(cells, "ring", root_id="1,1")
    assert ordered[0].id == "1,1"
    assert ordered[1].id == "0,0"


def test_unknown_modes_rejected(hex1):
    with pytest.raises(ValueError):
        build_tessellation_mechanism(hex1, 8, symmetry="rotation")
    with pytest.raises(ValueError):
        build_tessellation_mechanism(hex1, 8, branch_order="random")
    with pytest.raises(ValueError):
        build_tessellation_mechanism(hex1, 1)


def test_normalize_half_open_interval():
    assert normalize_angle(-math.pi) == math.pi
    assert normalize_angle(math.pi) == math.pi
    assert normalize_angle(0.0) == 0.0


# ═══════════════════════════════════════════════════════════════════
# Numerical edge cases
# ═══════════════════════════════════════════════════════════════════


def test_huge_base_orientation_is_reduced(hex1):
    mech = build_tessellation_mechanism(hex1, 8, base_orientation=1e12)
    expected = math.remainder(1e12, 2 * math.pi)
    assert mech.root.orientation == pytest.approx(expected)
    assert -math.pi < mech.root.orientation <= math.pi
    assert validate_mechanism(mech, order=8) == []


@pytest.mark.parametrize("angle", [float("inf"), float("-inf"), float("nan")])
def test_non_finite_angles_map_to_zero(hex1, caplog, angle):
    with caplog.at_level(logging.ERROR, logger="rosettegrid.diagnostics"):
        mech = build_tessellation_mechanism(
            hex1, 8, base_orientation=angle, inter_cell_rotation=angle, symmetry="glide"
        )
    assert mech.root.orientation == 0.0
    assert all(pose.orientation == 0.0 for pose in mech.poses)
    assert validate_mechanism(mech, order=8) == []
    assert "Non-finite angle" in caplog.text


def test_normalize_large_angles():
    assert normalize_angle(13.0) == pytest.approx(13.0 - 4 * math.pi)
    assert normalize_angle(-1e9) == pytest.approx(math.remainder(-1e9, 2 * math.pi))
    assert normalize_angle(5 * math.pi / 2) == pytest.approx(math.pi / 2)


def test_spiral_puts_fixed_root_before_origin():
    cells = build_lattice("square", 1, 100.0)
    ordered = [c.id for c in sort_cells_by_branch_order(cells, "spiral", root_id="1,1")]
    assert ordered[:2] == ["1,1", "-1,-1"]
    assert ordered.index("0,0") == 4

    mech = build_tessellation_mechanism(cells, 8, branch_order="spiral", fixed_cell_id="1,1")
    assert mech.root.id == "1,1"
    assert (mech.edges[0].parent_id, mech.edges[0].child_id) == ("1,1", "-1,-1")
    assert mech.pose_by_id("0,0").depth > 0
