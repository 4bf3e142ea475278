# File: tests/test_checks.py
"""
Test the model validator: references, duplicates, frame dimensions, shapes.
"""

import pytest

from promptframe.catalog import FRAME_SECTION
from promptframe.checks import (
    check_beam_shape,
    check_duplicate_members,
    check_frame_dimensions,
    check_references,
    check_truss_shape,
    elevation_counts,
    find_duplicate_members,
    fix_frame_dimensions,
    fix_model,
    fix_references,
    remove_duplicate_members,
    transplant_loads,
    validate_model,
)
from promptframe.generative import synthesize_frame, synthesize_truss
from promptframe.intent import Dimensions, classify
from promptframe.model import (
    BoundaryCode,
    Member,
    MemberLoad,
    ModelFormatError,
    Node,
    NodeLoad,
    StructuralModel,
)


SECTION = FRAME_SECTION.as_member_fields()


def _member(i, j):
    return Member(i=i, j=j, **SECTION)


def _raw_member(i, j):
    return {'i': i, 'j': j, **SECTION}


# ============================================================================
# REFERENCES
# ============================================================================

class TestReferences:

    def test_valid_payload(self):
        payload = {
            'nodes': [{'x': 0, 'y': 0, 's': 'p'}, {'x': 5, 'y': 0, 's': 'r'}],
            'members': [_raw_member(1, 2)],
            'nodeLoads': [{'n': 2, 'fx': 0, 'fy': -10}],
            'memberLoads': [{'m': 1, 'q': -2}],
        }
        result = check_references(payload)
        assert result.is_valid, result.errors

    def test_reports_every_problem(self):
        """
        Out-of-range ends, self-loops, bad codes and dangling loads are all
        reported, not just the first.
        """
        payload = {
            'nodes': [{'x': 0, 'y': 0, 's': 'fixed'}, {'x': 5, 'y': 0, 's': 'r'}],
            'members': [_raw_member(1, 3), _raw_member(2, 2)],
            'nl': [{'n': 5, 'fx': 1}],
            'ml': [{'m': 3, 'q': -1}],
        }
        result = check_references(payload)

        assert not result.is_valid
        assert len(result.errors) == 5
        assert any("boundary code" in e for e in result.errors)
        assert any("out of range" in e for e in result.errors)
        assert any("starts and ends" in e for e in result.errors)
        print(f"✓ {len(result.errors)} reference errors reported")

    def test_missing_arrays(self):
        assert not check_references({'nodes': []}).is_valid
        assert not check_references([1, 2, 3]).is_valid

    def test_fix_references_repairs_payload(self):
        """
        Bad nodes are dropped and everything that pointed at them is
        renumbered or dropped in turn.
        """
        payload = {
            'nodes': [
                {'x': 0, 'y': 0, 's': 'fixed'},     # 1 -> 1
                {'x': 'abc', 'y': 0, 's': 'f'},     # 2 dropped
                {'x': '6', 'y': '0', 's': 'pin'},   # 3 -> 2
                {'x': 6, 'y': 3, 's': 'q'},         # 4 -> 3, unknown code
            ],
            'members': [
                _raw_member(1, 3),                  # -> (1, 2)
                _raw_member(1, 2),                  # uses dropped node
                {'i': 3, 'j': 4},                   # -> (2, 3), section filled
                _raw_member(4, 4),                  # self-loop
            ],
            'nodeLoads': [{'n': 4, 'fx': 5}, {'n': 2, 'fy': 1}, {'n': 9, 'fx': 1}],
            'memberLoads': [{'m': 2, 'q': -3}, {'m': 3, 'q': -1}],
        }
        model = fix_references(payload)

        assert model.nodes == (
            Node(0.0, 0.0, BoundaryCode.FIXED),
            Node(6.0, 0.0, BoundaryCode.PINNED),
            Node(6.0, 3.0, BoundaryCode.FREE),
        )
        assert [(m.i, m.j) for m in model.members] == [(1, 2), (2, 3)]
        assert model.members[1].I == FRAME_SECTION.I
        assert model.node_loads == (NodeLoad(n=3, fx=5.0, fy=0.0),)
        assert model.member_loads == (MemberLoad(m=2, q=-1.0),)
        assert check_references(model).is_valid
        print("✓ fix_references produced a reference-valid model")

    def test_integer_beyond_float_range_is_unusable(self):
        """
        JSON allows integers no float can hold; such a node is dropped, not
        a crash.
        """
        huge = 10 ** 400
        payload = {
            'nodes': [
                {'x': 0, 'y': 0, 's': 'p'},
                {'x': huge, 'y': 0, 's': 'r'},
                {'x': 5, 'y': 0, 's': 'r'},
            ],
            'members': [_raw_member(1, 2), _raw_member(1, 3)],
            'nodeLoads': [{'n': 3, 'fx': huge}],
            'memberLoads': [],
        }
        assert "node 2 has non-numeric coordinates" in check_references(payload).errors

        model = fix_references(payload)
        assert model.node_count == 2
        assert [(m.i, m.j) for m in model.members] == [(1, 2)]
        assert model.node_loads == (NodeLoad(n=2, fx=0.0, fy=0.0),)

    @pytest.mark.parametrize("payload", [
        {'members': []},
        {'nodes': [], 'members': []},
        {'nodes': [{'x': None, 'y': 0, 's': 'f'}], 'members': []},
        "not a model",
    ])
    def test_fix_references_gives_up_without_nodes(self, payload):
        with pytest.raises(ModelFormatError):
            fix_references(payload)


# ============================================================================
# DUPLICATES
# ============================================================================

class TestDuplicates:

    def _model(self):
        return StructuralModel(
            nodes=(Node(0, 0, BoundaryCode.PINNED), Node(5, 0, BoundaryCode.ROLLER), Node(0, 3)),
            members=(_member(1, 2), _member(2, 1), _member(1, 3)),
            member_loads=(MemberLoad(m=2, q=-1.0), MemberLoad(m=3, q=-2.0)),
        )

    def test_find_duplicates(self):
        """
        [(1,2), (2,1), (1,3)]: member 2 repeats the pair of member 1.
        """
        model = self._model()
        assert find_duplicate_members(model) == [2]
        assert not check_duplicate_members(model).is_valid

    def test_remove_duplicates_keeps_first(self):
        model = remove_duplicate_members(self._model())

        assert [(m.i, m.j) for m in model.members] == [(1, 2), (1, 3)]
        # Load on removed member 2 dropped; load on member 3 now points at 2
        assert model.member_loads == (MemberLoad(m=2, q=-2.0),)
        assert find_duplicate_members(model) == []
        print("✓ Duplicate (2,1) removed, loads renumbered")

    def test_no_duplicates_returns_same_model(self):
        model = synthesize_frame(1, 1)
        assert remove_duplicate_members(model) is model


# ============================================================================
# FRAME DIMENSIONS
# ============================================================================

class TestFrameDimensions:

    def test_synthesized_frame_passes(self):
        assert check_frame_dimensions(synthesize_frame(2, 3), Dimensions(2, 3, explicit=True)).is_valid
        assert elevation_counts(synthesize_frame(2, 3)) == [4, 4, 4]

    def test_wrong_span_count_fails(self):
        result = check_frame_dimensions(synthesize_frame(2, 3), Dimensions(2, 2, explicit=True))
        assert not result.is_valid
        assert any("ground level" in e for e in result.errors)

    def test_missing_beams_are_resynthesized(self):
        """
        A 2x2 frame with only 8 members (10 expected) is replaced by the
        synthesizer's frame, keeping its loads by index.
        """
        full = synthesize_frame(2, 2)
        broken = StructuralModel(
            nodes=full.nodes,
            members=full.members[:8],
            node_loads=(NodeLoad(n=7, fx=10.0),),
            member_loads=(MemberLoad(m=7, q=-5.0),),
        )
        dims = Dimensions(2, 2, explicit=True)
        assert not check_frame_dimensions(broken, dims).is_valid

        fixed = fix_frame_dimensions(broken, dims)
        assert fixed.node_count == 9
        assert fixed.member_count == 10
        assert fixed.node_loads == broken.node_loads
        assert fixed.member_loads == broken.member_loads
        assert check_frame_dimensions(fixed, dims).is_valid
        print("✓ Wrong frame replaced by 9 nodes / 10 members")

    def test_transplant_drops_out_of_range_loads(self):
        source = synthesize_frame(3, 3).with_loads(
            [NodeLoad(n=2, fy=-1.0), NodeLoad(n=15, fx=1.0)],
            [MemberLoad(m=20, q=-1.0)],
        )
        target = synthesize_frame(1, 1)
        moved = transplant_loads(source, target)

        assert moved.node_loads == (NodeLoad(n=2, fy=-1.0),)
        assert moved.member_loads == ()
        assert moved.nodes == target.nodes


# ============================================================================
# SHAPES
# ============================================================================

class TestTrussShape:

    def test_wrong_supports(self):
        model = synthesize_truss(3.0, 10.0).with_boundary_codes({0: BoundaryCode.FIXED})
        result = check_truss_shape(model)
        assert not result.is_valid
        assert any("pinned" in e for e in result.errors)

    def test_flat_truss_has_no_top_chord(self):
        model = StructuralModel(
            nodes=(Node(0, 0, BoundaryCode.PINNED), Node(5, 0), Node(10, 0, BoundaryCode.ROLLER)),
            members=(_member(1, 2), _member(2, 3)),
        )
        result = check_truss_shape(model)
        assert any("top chord" in e for e in result.errors)

    def test_loose_node(self):
        truss = synthesize_truss(3.0, 10.0)
        model = StructuralModel(nodes=truss.nodes + (Node(5.0, 6.0),), members=truss.members)
        result = check_truss_shape(model)
        assert any("not connected" in e for e in result.errors)


class TestBeamShape:

    def test_simple_beam(self):
        model = StructuralModel(
            nodes=(Node(0, 0, BoundaryCode.PINNED), Node(6, 0, BoundaryCode.ROLLER)),
            members=(_member(1, 2),),
        )
        assert check_beam_shape(model).is_valid

    def test_unsupported_and_sloped(self):
        model = StructuralModel(nodes=(Node(0, 0), Node(6, 1)), members=(_member(1, 2),))
        result = check_beam_shape(model)
        assert any("single elevation" in e for e in result.errors)
        assert any("no supports" in e for e in result.errors)

    def test_cantilever(self):
        """
        A cantilever is fixed at exactly one end with a free tip.
        """
        good = StructuralModel(
            nodes=(Node(0, 0, BoundaryCode.FIXED), Node(4, 0, BoundaryCode.FREE)),
            members=(_member(1, 2),),
        )
        bad = StructuralModel(
            nodes=(Node(0, 0, BoundaryCode.PINNED), Node(4, 0, BoundaryCode.ROLLER)),
            members=(_member(1, 2),),
        )
        assert check_beam_shape(good, cantilever=True).is_valid
        assert not check_beam_shape(bad, cantilever=True).is_valid
        assert check_beam_shape(bad, cantilever=False).is_valid


# ============================================================================
# AGGREGATE
# ============================================================================

def test_validate_model_short_circuits_on_references():
    payload = {'nodes': [{'x': 0, 'y': 0, 's': 'f'}], 'members': [_raw_member(1, 5)]}
    result = validate_model(payload, classify("2層2スパンのラーメン"))
    assert not result.is_valid
    assert all("out of range" in e for e in result.errors)


def test_validate_model_enforces_explicit_frame_dimensions_only():
    model = synthesize_frame(1, 1)
    assert not validate_model(model, classify("2層2スパンのラーメン")).is_valid
    assert validate_model(model, classify("ラーメン構造")).is_valid


def test_fix_model_rebuilds_frame_and_removes_duplicates():
    full = synthesize_frame(1, 2)
    # (5, 4) repeats the first-layer beam (4, 5)
    doubled = StructuralModel(nodes=full.nodes, members=full.members + (_member(5, 4),))

    fixed = fix_model(doubled, classify("ラーメン"))
    assert fixed.member_count == full.member_count
    assert find_duplicate_members(fixed) == []

    rebuilt = fix_model(doubled, classify("1層2スパンのラーメン"))
    assert rebuilt == full
