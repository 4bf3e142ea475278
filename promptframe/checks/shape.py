# promptframe/checks/shape.py
"""
Looser shape checks for trusses and beams.

Unlike frames these are not rebuilt when they fail; the errors are written
into a correction prompt and the generation service is asked once more.
"""

from typing import List

from ..model import BoundaryCode, StructuralModel
from .references import ValidationResult


TOLERANCE = 1e-6


def _unconnected_nodes(model: StructuralModel) -> List[int]:
    used = set()
    for member in model.members:
        used.add(member.i)
        used.add(member.j)
    return [k for k in range(1, model.node_count + 1) if k not in used]


def check_truss_shape(model: StructuralModel) -> ValidationResult:
    """
    A parallel-chord truss needs:
    - at least 2 bottom-chord nodes (lowest elevation)
    - at least 2 top-chord nodes (highest elevation, above the bottom)
    - a pinned support at the left end of the bottom chord
    - a roller support at the right end of the bottom chord
    - every node connected to at least one member
    """
    errors = []
    if model.node_count == 0:
        return ValidationResult.from_errors(["truss has no nodes"])

    y_min = min(node.y for node in model.nodes)
    y_max = max(node.y for node in model.nodes)
    bottom = [(k, n) for k, n in enumerate(model.nodes, start=1) if abs(n.y - y_min) < TOLERANCE]
    top = [(k, n) for k, n in enumerate(model.nodes, start=1) if abs(n.y - y_max) < TOLERANCE]

    if len(bottom) < 2:
        errors.append(f"bottom chord has {len(bottom)} node(s), needs at least 2")
    if y_max - y_min < TOLERANCE or len(top) < 2:
        errors.append(f"top chord has {0 if y_max - y_min < TOLERANCE else len(top)} node(s), needs at least 2")

    if bottom:
        left_k, left = min(bottom, key=lambda kn: kn[1].x)
        right_k, right = max(bottom, key=lambda kn: kn[1].x)
        if left.s is not BoundaryCode.PINNED:
            errors.append(f"left bottom node {left_k} must be pinned (p), found {left.s.value}")
        if right_k != left_k and right.s is not BoundaryCode.ROLLER:
            errors.append(f"right bottom node {right_k} must be a roller (r), found {right.s.value}")

    loose = _unconnected_nodes(model)
    if loose:
        errors.append(f"nodes {loose} are not connected to any member")

    return ValidationResult.from_errors(errors)


def check_beam_shape(model: StructuralModel, cantilever: bool = False) -> ValidationResult:
    """
    A beam needs at least 2 nodes on one elevation, at least one member and
    enough supports to stand: a fixed node, or two supported nodes. A
    cantilever is fixed at exactly one end and free at the other.
    """
    errors = []
    if model.node_count < 2:
        return ValidationResult.from_errors([f"beam has {model.node_count} node(s), needs at least 2"])
    if model.member_count == 0:
        errors.append("beam has no members")

    ys = [node.y for node in model.nodes]
    if max(ys) - min(ys) > TOLERANCE:
        errors.append("beam nodes are not on a single elevation")

    supports = [k for k, node in enumerate(model.nodes, start=1) if node.s is not BoundaryCode.FREE]
    has_fixed = any(model.nodes[k - 1].s is BoundaryCode.FIXED for k in supports)
    if not supports:
        errors.append("beam has no supports")
    elif not has_fixed and len(supports) < 2:
        errors.append(f"beam has a single non-fixed support at node {supports[0]}")

    if cantilever:
        ordered = sorted(range(model.node_count), key=lambda k: model.nodes[k].x)
        left, right = model.nodes[ordered[0]], model.nodes[ordered[-1]]
        fixed_ends = [n for n in (left, right) if n.s is BoundaryCode.FIXED]
        if len(fixed_ends) != 1:
            errors.append("cantilever must be fixed (x) at exactly one end")
        else:
            tip = right if left.s is BoundaryCode.FIXED else left
            if tip.s is not BoundaryCode.FREE:
                errors.append("cantilever tip must be free (f)")

    loose = _unconnected_nodes(model)
    if loose:
        errors.append(f"nodes {loose} are not connected to any member")

    return ValidationResult.from_errors(errors)
