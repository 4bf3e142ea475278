# promptframe/boundary.py
"""
BOUNDARY PRESERVATION: Keeping supports stable across edits
===========================================================

PURPOSE:
--------
In edit mode the generation service rewrites the whole model. It very often
"helpfully" changes support conditions the user never mentioned, e.g. turns
fixed column bases into pins while only moving a node. This module compares
the regenerated model with the model the user started from and undoes that
drift.

RULES:
------
Node identity is array position: node k of the prior model is node k of the
candidate, for every k present in both.

1. No boundary change intended: every shared node gets the prior model's
   code back.
2. Change intended for the ground row (column bases): every y = 0 node of
   the candidate gets the requested code; other nodes are left as generated.
3. Change intended for any other target: the candidate is accepted as is.

``reconcile`` only ever compares against the fixed prior model, so applying it
twice gives the same result as applying it once.
"""

import logging
from dataclasses import dataclass
from typing import List

from .intent import BoundaryChangeIntent, BoundaryTarget
from .model import BoundaryCode, StructuralModel

logger = logging.getLogger(__name__)


GROUND_TOLERANCE = 1e-6


@dataclass(frozen=True)
class BoundaryMismatch:
    node: int             # 1-based
    original: BoundaryCode
    current: BoundaryCode


def restore_boundaries(original: StructuralModel, candidate: StructuralModel) -> StructuralModel:
    """Copy the original code onto every shared node position, unconditionally."""
    shared = min(original.node_count, candidate.node_count)
    codes = {
        k: original.nodes[k].s
        for k in range(shared)
        if candidate.nodes[k].s is not original.nodes[k].s
    }
    for k, code in codes.items():
        logger.info("Restored boundary of node %d: %s -> %s", k + 1, candidate.nodes[k].s.value, code.value)
    return candidate.with_boundary_codes(codes)


def apply_ground_condition(candidate: StructuralModel, code: BoundaryCode) -> StructuralModel:
    """Set every y = 0 node to ``code``."""
    codes = {
        k: code
        for k, node in enumerate(candidate.nodes)
        if abs(node.y) < GROUND_TOLERANCE
    }
    logger.info("Set %d ground node(s) to %s", len(codes), code.value)
    return candidate.with_boundary_codes(codes)


def reconcile(
    original: StructuralModel,
    candidate: StructuralModel,
    intent: BoundaryChangeIntent,
) -> StructuralModel:
    """
    Undo unintended boundary drift in ``candidate`` relative to ``original``.
    """
    if not intent.detected:
        return restore_boundaries(original, candidate)

    if intent.target is BoundaryTarget.GROUND and intent.new_condition is not None:
        return apply_ground_condition(candidate, intent.new_condition)

    logger.info("Boundary change requested (%s); keeping generated codes", intent.describe())
    return candidate


def boundary_mismatches(original: StructuralModel, model: StructuralModel) -> List[BoundaryMismatch]:
    """Per-index comparison over the nodes both models share."""
    shared = min(original.node_count, model.node_count)
    return [
        BoundaryMismatch(node=k + 1, original=original.nodes[k].s, current=model.nodes[k].s)
        for k in range(shared)
        if original.nodes[k].s is not model.nodes[k].s
    ]


def preserve_boundaries(
    original: StructuralModel,
    candidate: StructuralModel,
    intent: BoundaryChangeIntent,
) -> StructuralModel:
    """
    ``reconcile`` followed by a verification pass.

    When no change was intended the result must match the original on every
    shared node; if it does not, the blanket restore is applied once more.
    """
    result = reconcile(original, candidate, intent)
    if intent.detected:
        return result

    remaining = boundary_mismatches(original, result)
    if remaining:
        logger.error("Boundary verification found %d mismatch(es); forcing restore", len(remaining))
        result = restore_boundaries(original, result)
    return result


def boundary_warnings(
    original: StructuralModel,
    final: StructuralModel,
    intent: BoundaryChangeIntent,
) -> List[str]:
    """
    Non-fatal observations about an edit, for the log:
    - the edit removed nodes
    - unintended boundary changes survived
    - a requested boundary change did not happen
    """
    warnings = []
    if final.node_count < original.node_count:
        warnings.append(f"node count decreased: {original.node_count} -> {final.node_count}")

    mismatches = boundary_mismatches(original, final)
    if not intent.detected:
        for m in mismatches:
            warnings.append(f"node {m.node} boundary changed unintentionally: {m.original.value} -> {m.current.value}")
    elif not mismatches:
        warnings.append("a boundary change was requested but no boundary code changed")
    return warnings
