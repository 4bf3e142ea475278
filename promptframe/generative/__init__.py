# promptframe/generative - Deterministic structure synthesizers
"""
GENERATIVE: Deterministic Structure Synthesizers
================================================

Turns a handful of integers/lengths into a complete, valid model without
asking the generation service. Used as the trusted fallback whenever the
service output is unusable or has the wrong topology.

Available Generators:
---------------------
- frame: regular multi-layer, multi-span rigid frames
- truss: parallel-chord Warren trusses
- fallback: the fixed minimal 4-node model

USAGE:
------
    from promptframe.generative import synthesize_frame, synthesize_truss

    frame = synthesize_frame(layers=2, spans=3)    # 12 nodes, 14 members
    truss = synthesize_truss(height=3.0, span_length=15.0)
"""

from ..intent import Intent, StructureType
from ..model import StructuralModel
from .fallback import minimal_model
from .frame import synthesize_frame, expected_frame_counts, SPAN_PITCH, STORY_HEIGHT
from .truss import synthesize_truss, PANEL_LENGTH


def synthesize_for_intent(intent: Intent) -> StructuralModel:
    """Pick the synthesizer that matches the classified structure type."""
    if intent.structure_type is StructureType.FRAME:
        return synthesize_frame(intent.dimensions.layers, intent.dimensions.spans)
    if intent.structure_type is StructureType.TRUSS:
        dims = intent.truss_dimensions
        return synthesize_truss(dims.height, dims.span_length)
    return minimal_model()


__all__ = [
    'synthesize_frame',
    'synthesize_truss',
    'synthesize_for_intent',
    'minimal_model',
    'expected_frame_counts',
    'SPAN_PITCH',
    'STORY_HEIGHT',
    'PANEL_LENGTH',
]
