# promptframe/generative/frame.py
"""
FRAME SYNTHESIZER: Regular Multi-Story Rigid Frames
===================================================

PURPOSE:
--------
Build the canonical node/member set of a regular rigid frame ("ラーメン")
from two integers: number of layers (stories) and number of spans (bays).
This is the trusted-by-construction model the validator swaps in when a
generated frame has the wrong counts.

LAYOUT:
-------
Nodes form a (layers + 1) x (spans + 1) grid, numbered bottom-to-top,
left-to-right:

    layer 2:   9 ---- 10 ---- 11 ---- 12
               |       |       |       |
    layer 1:   5 ----  6 ----  7 ----  8
               |       |       |       |
    ground:    1       2       3       4      (fixed, no beams)

- Span pitch and story height are fixed constants (not user inputs).
- Ground row (layer 0) nodes are fixed ("x"); every other node is free.
- Columns: one per (column line, layer), joining layer L to L+1.
  Count = (spans + 1) * layers
- Beams: one per (span, layer) for layers >= 1 only. The ground row never
  gets a horizontal member.
  Count = spans * layers

Example: layers=2, spans=3 gives 12 nodes, 8 columns + 6 beams = 14 members.
"""

import logging
from typing import List

import numpy as np

from ..catalog import FRAME_SECTION, Section
from ..model import BoundaryCode, Member, Node, StructuralModel
from .fallback import minimal_model

logger = logging.getLogger(__name__)


SPAN_PITCH = 6.0    # m between column lines
STORY_HEIGHT = 4.0  # m between layers
MAX_LAYERS = 100
MAX_SPANS = 100


def frame_node_index(layer: int, column: int, spans: int) -> int:
    """1-based node number of grid point (layer, column)."""
    return layer * (spans + 1) + column + 1


def expected_frame_counts(layers: int, spans: int) -> tuple:
    """
    (node count, column count, beam count) of a regular frame.
    """
    n_nodes = (layers + 1) * (spans + 1)
    n_columns = (spans + 1) * layers
    n_beams = spans * layers
    return n_nodes, n_columns, n_beams


def _frame_nodes(layers: int, spans: int) -> List[Node]:
    xs = np.arange(spans + 1) * SPAN_PITCH
    ys = np.arange(layers + 1) * STORY_HEIGHT
    nodes = []
    for layer, y in enumerate(ys):
        code = BoundaryCode.FIXED if layer == 0 else BoundaryCode.FREE
        for x in xs:
            nodes.append(Node(x=float(x), y=float(y), s=code))
    return nodes


def _frame_members(layers: int, spans: int, section: Section) -> List[Member]:
    fields = section.as_member_fields()
    members = []

    # Columns
    for layer in range(layers):
        for column in range(spans + 1):
            members.append(Member(
                i=frame_node_index(layer, column, spans),
                j=frame_node_index(layer + 1, column, spans),
                **fields,
            ))

    # Beams (layer 0 is the ground row: no beams there)
    for layer in range(1, layers + 1):
        for span in range(spans):
            members.append(Member(
                i=frame_node_index(layer, span, spans),
                j=frame_node_index(layer, span + 1, spans),
                **fields,
            ))

    return members


def synthesize_frame(layers: int, spans: int, section: Section = FRAME_SECTION) -> StructuralModel:
    """
    Generate a regular frame model.

    Never raises: any problem with the inputs is logged and the fixed minimal
    model is returned instead.
    """
    try:
        layers = int(layers)
        spans = int(spans)
        if not 1 <= layers <= MAX_LAYERS:
            raise ValueError(f"layers must be in 1..{MAX_LAYERS}, got {layers}")
        if not 1 <= spans <= MAX_SPANS:
            raise ValueError(f"spans must be in 1..{MAX_SPANS}, got {spans}")

        nodes = _frame_nodes(layers, spans)
        members = _frame_members(layers, spans, section)
    except (TypeError, ValueError, OverflowError) as e:
        logger.warning("Frame synthesis failed (%s); using minimal model", e)
        return minimal_model()

    logger.info(
        "Synthesized %d-layer %d-span frame: %d nodes, %d members",
        layers, spans, len(nodes), len(members),
    )
    return StructuralModel(nodes=tuple(nodes), members=tuple(members))
