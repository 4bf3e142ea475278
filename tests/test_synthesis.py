# File: tests/test_synthesis.py
"""
Test the deterministic frame / truss synthesizers and the minimal fallback.
"""

import numpy as np
import pytest

from promptframe.catalog import FRAME_SECTION, TRUSS_SECTION
from promptframe.checks import (
    check_frame_dimensions,
    check_references,
    check_truss_shape,
    find_duplicate_members,
)
from promptframe.generative import (
    SPAN_PITCH,
    STORY_HEIGHT,
    minimal_model,
    synthesize_for_intent,
    synthesize_frame,
    synthesize_truss,
)
from promptframe.generative.frame import expected_frame_counts, frame_node_index
from promptframe.generative.truss import panel_positions
from promptframe.intent import Dimensions, classify
from promptframe.model import BoundaryCode


class TestFrame:

    def test_two_layer_three_span_counts(self):
        """
        2 layers x 3 spans: 12 nodes, 8 columns + 6 beams = 14 members.
        """
        model = synthesize_frame(2, 3)

        assert model.node_count == 12
        assert model.member_count == 14
        assert expected_frame_counts(2, 3) == (12, 8, 6)
        print("✓ 2x3 frame has 12 nodes and 14 members")

    @pytest.mark.parametrize("layers, spans", [(1, 1), (1, 4), (3, 2), (5, 4), (10, 10)])
    def test_counts_for_any_size(self, layers, spans):
        """
        (L+1)(S+1) nodes and (S+1)L + SL members for every L, S >= 1.
        """
        model = synthesize_frame(layers, spans)

        assert model.node_count == (layers + 1) * (spans + 1)
        assert model.member_count == (spans + 1) * layers + spans * layers
        assert check_frame_dimensions(model, Dimensions(layers=layers, spans=spans, explicit=True)).is_valid

    def test_node_grid_and_codes(self):
        model = synthesize_frame(2, 3)

        # Bottom-to-top, left-to-right
        assert (model.nodes[0].x, model.nodes[0].y) == (0.0, 0.0)
        assert (model.nodes[3].x, model.nodes[3].y) == (3 * SPAN_PITCH, 0.0)
        assert (model.nodes[11].x, model.nodes[11].y) == (3 * SPAN_PITCH, 2 * STORY_HEIGHT)
        assert frame_node_index(layer=1, column=0, spans=3) == 5

        ground = [n for n in model.nodes if n.y == 0.0]
        upper = [n for n in model.nodes if n.y > 0.0]
        assert all(n.s is BoundaryCode.FIXED for n in ground)
        assert all(n.s is BoundaryCode.FREE for n in upper)

    def test_columns_first_then_beams_above_ground(self):
        """
        Columns are vertical, beams are horizontal, and no beam sits at y = 0.
        """
        model = synthesize_frame(2, 3)
        columns, beams = model.members[:8], model.members[8:]

        for m in columns:
            a, b = model.nodes[m.i - 1], model.nodes[m.j - 1]
            assert a.x == b.x and b.y > a.y
        for m in beams:
            a, b = model.nodes[m.i - 1], model.nodes[m.j - 1]
            assert a.y == b.y > 0.0

    def test_frame_satisfies_model_invariants(self):
        model = synthesize_frame(3, 2)
        assert check_references(model).is_valid
        assert find_duplicate_members(model) == []
        assert model.members[0].E == FRAME_SECTION.E

    @pytest.mark.parametrize("layers, spans", [(0, 2), (2, 0), (-1, 1), ("many", 2)])
    def test_bad_input_returns_minimal_model(self, layers, spans):
        """
        The synthesizer never raises; it hands back the minimal model.
        """
        assert synthesize_frame(layers, spans) == minimal_model()


class TestTruss:

    def test_supports_on_bottom_chord_ends(self):
        """
        h=3, L=15: bottom x=0 pinned, bottom x=15 roller, everything else free.
        """
        model = synthesize_truss(3.0, 15.0)

        for node in model.nodes:
            if node.y == 0.0 and node.x == 0.0:
                assert node.s is BoundaryCode.PINNED
            elif node.y == 0.0 and node.x == pytest.approx(15.0):
                assert node.s is BoundaryCode.ROLLER
            else:
                assert node.s is BoundaryCode.FREE
        print("✓ Truss supports: pin left, roller right")

    def test_counts_and_layout(self):
        model = synthesize_truss(3.0, 15.0)
        # 15 / 2.5 = 6 panels -> 7 nodes per chord
        assert model.node_count == 14
        # 6 bottom + 6 top + 12 diagonals
        assert model.member_count == 24
        assert all(n.y == 0.0 for n in model.nodes[:7])
        assert all(n.y == 3.0 for n in model.nodes[7:])

        # First diagonal pair of panel 0: B1 -> T2 and T1 -> B2
        assert (model.members[12].i, model.members[12].j) == (1, 9)
        assert (model.members[13].i, model.members[13].j) == (8, 2)

    def test_truss_passes_its_own_shape_check(self):
        model = synthesize_truss(4.0, 20.0)
        assert check_truss_shape(model).is_valid
        assert check_references(model).is_valid
        assert find_duplicate_members(model) == []
        assert model.members[0].A == TRUSS_SECTION.A

    def test_panel_positions_end_on_span(self):
        """
        A span that is not a multiple of 2.5 m still ends exactly on the span.
        """
        xs = panel_positions(11.0)
        assert xs[0] == 0.0
        assert xs[-1] == pytest.approx(11.0)
        assert len(xs) == 5  # round(11 / 2.5) = 4 panels
        assert np.all(np.diff(xs) > 0)

        assert len(panel_positions(1.0)) == 2  # at least one panel

    def test_bad_input_returns_minimal_model(self):
        assert synthesize_truss(-1.0, 15.0) == minimal_model()
        assert synthesize_truss(3.0, float('nan')) == minimal_model()


def test_minimal_model_is_fixed_portal():
    model = minimal_model()
    assert model.boundary_codes == (
        BoundaryCode.PINNED, BoundaryCode.ROLLER, BoundaryCode.FREE, BoundaryCode.FREE,
    )
    assert [(m.i, m.j) for m in model.members] == [(1, 3), (2, 4), (3, 4)]
    assert check_references(model).is_valid


def test_synthesize_for_intent_dispatch():
    assert synthesize_for_intent(classify("2層3スパンのラーメン")).node_count == 12
    assert synthesize_for_intent(classify("高さ3m スパン15mのトラス")).node_count == 14
    assert synthesize_for_intent(classify("片持ち梁")) == minimal_model()
