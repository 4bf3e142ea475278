# promptframe/checks/dimensions.py
"""
DIMENSIONAL CHECK: Does a frame have the layers and spans that were asked for?
=============================================================================

A regular frame with L layers and S spans has exactly:

- (L + 1) * (S + 1) nodes
- (S + 1) * L columns + S * L beams

and when its nodes are grouped by elevation every level holds the same number
of nodes, with (ground node count - 1) == S.

Generated frames routinely get this wrong (the classic mistake: "3 spans"
drawn with 3 column lines instead of 4). Rather than patching individual
members, a frame that fails the check is rebuilt by the synthesizer and the
original loads are carried over by index.
"""

import logging
from typing import List

import numpy as np

from ..generative.frame import expected_frame_counts, synthesize_frame
from ..intent import Dimensions
from ..model import StructuralModel
from .references import ValidationResult

logger = logging.getLogger(__name__)


MIN_SPANS = 1
MAX_SPANS = 10
ELEVATION_DECIMALS = 6


def elevation_counts(model: StructuralModel) -> List[int]:
    """Node count per distinct elevation, lowest first."""
    if not model.nodes:
        return []
    ys = np.round(np.array([node.y for node in model.nodes], dtype=float), ELEVATION_DECIMALS)
    _, counts = np.unique(ys, return_counts=True)
    return [int(c) for c in counts]


def check_frame_dimensions(model: StructuralModel, dims: Dimensions) -> ValidationResult:
    errors = []
    expected_nodes, n_columns, n_beams = expected_frame_counts(dims.layers, dims.spans)
    expected_members = n_columns + n_beams

    if model.node_count != expected_nodes:
        errors.append(
            f"node count is {model.node_count}, expected {expected_nodes} "
            f"for {dims.layers} layer(s) x {dims.spans} span(s)"
        )
    if model.member_count != expected_members:
        errors.append(
            f"member count is {model.member_count}, expected {expected_members} "
            f"({n_columns} columns + {n_beams} beams)"
        )

    counts = elevation_counts(model)
    if counts and len(set(counts)) > 1:
        errors.append(f"levels hold different node counts: {counts}")

    ground_nodes = sum(1 for node in model.nodes if round(node.y, ELEVATION_DECIMALS) == 0.0)
    model_spans = ground_nodes - 1
    if model_spans != dims.spans:
        errors.append(f"ground level has {ground_nodes} node(s), i.e. {model_spans} span(s), expected {dims.spans}")
    if not MIN_SPANS <= model_spans <= MAX_SPANS:
        errors.append(f"span count {model_spans} is outside {MIN_SPANS}-{MAX_SPANS}")

    return ValidationResult.from_errors(errors)


def transplant_loads(source: StructuralModel, target: StructuralModel) -> StructuralModel:
    """
    Copy loads from ``source`` onto ``target`` by index.

    Loads keep their node/member number; the ones that do not exist in the
    target topology are dropped. This is positional, not physical: node 5 of
    the old model and node 5 of the new one need not be the same point.
    """
    node_loads = [load for load in source.node_loads if 1 <= load.n <= target.node_count]
    member_loads = [load for load in source.member_loads if 1 <= load.m <= target.member_count]
    dropped = (len(source.node_loads) - len(node_loads)) + (len(source.member_loads) - len(member_loads))
    if dropped:
        logger.warning("Dropped %d load(s) that do not fit the resynthesized topology", dropped)
    return target.with_loads(node_loads, member_loads)


def fix_frame_dimensions(model: StructuralModel, dims: Dimensions) -> StructuralModel:
    """Return ``model`` if it passes, else the synthesized frame carrying its loads."""
    result = check_frame_dimensions(model, dims)
    if result.is_valid:
        return model

    logger.warning("Frame dimension check failed, resynthesizing: %s", "; ".join(result.errors))
    rebuilt = synthesize_frame(dims.layers, dims.spans)
    return transplant_loads(model, rebuilt)
