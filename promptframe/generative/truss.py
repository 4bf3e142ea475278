# promptframe/generative/truss.py
"""
TRUSS SYNTHESIZER: Parallel-Chord Warren Trusses
================================================

Lays out a bottom chord (y = 0) and a top chord (y = height) at the same
panel positions, from x = 0 to x = span_length inclusive, and braces every
panel with diagonals in both directions:

    top:     T0 ---- T1 ---- T2 ---- T3
              | \\   / | \\   / | \\   / |
              |   X    |   X    |   X   |      (no verticals drawn;
              | /   \\ | /   \\ | /   \\ |       "|" is just alignment)
    bottom:  B0 ---- B1 ---- B2 ---- B3
             pin                    roller

Node order: bottom chord left-to-right, then top chord left-to-right.
Member order: bottom chord, top chord, then for each panel k the diagonal
B(k) -> T(k+1) followed by T(k) -> B(k+1).

Boundary codes: B0 pinned ("p"), last bottom node roller ("r"), all others
free.
"""

import logging
from typing import List

import numpy as np

from ..catalog import TRUSS_SECTION, Section
from ..model import BoundaryCode, Member, Node, StructuralModel
from .fallback import minimal_model

logger = logging.getLogger(__name__)


PANEL_LENGTH = 2.5  # m, nominal spacing between chord nodes
MAX_PANELS = 200


def panel_positions(span_length: float) -> np.ndarray:
    """
    Chord node x-coordinates from 0 to span_length inclusive.

    Uses the nominal panel length; when the span is not a multiple of it the
    panel count is rounded so the last node still lands exactly on the span.
    """
    n_panels = max(1, int(round(span_length / PANEL_LENGTH)))
    if n_panels > MAX_PANELS:
        raise ValueError(f"span {span_length} m needs {n_panels} panels (max {MAX_PANELS})")
    return np.round(np.linspace(0.0, span_length, n_panels + 1), 6)


def synthesize_truss(height: float, span_length: float, section: Section = TRUSS_SECTION) -> StructuralModel:
    """
    Generate a Warren truss model.

    Parameters:
    -----------
    height : float
        Distance between chords (m), must be positive
    span_length : float
        Distance between supports (m), must be positive

    Returns the fixed minimal model instead of raising on bad input.
    """
    try:
        height = float(height)
        span_length = float(span_length)
        if not (np.isfinite(height) and height > 0):
            raise ValueError(f"height must be positive, got {height}")
        if not (np.isfinite(span_length) and span_length > 0):
            raise ValueError(f"span_length must be positive, got {span_length}")

        xs = panel_positions(span_length)
        n = len(xs)

        nodes: List[Node] = []
        for k, x in enumerate(xs):
            if k == 0:
                code = BoundaryCode.PINNED
            elif k == n - 1:
                code = BoundaryCode.ROLLER
            else:
                code = BoundaryCode.FREE
            nodes.append(Node(x=float(x), y=0.0, s=code))
        for x in xs:
            nodes.append(Node(x=float(x), y=height, s=BoundaryCode.FREE))

        def bottom(k: int) -> int:
            return k + 1

        def top(k: int) -> int:
            return n + k + 1

        fields = section.as_member_fields()
        members: List[Member] = []
        for k in range(n - 1):
            members.append(Member(i=bottom(k), j=bottom(k + 1), **fields))
        for k in range(n - 1):
            members.append(Member(i=top(k), j=top(k + 1), **fields))
        for k in range(n - 1):
            members.append(Member(i=bottom(k), j=top(k + 1), **fields))
            members.append(Member(i=top(k), j=bottom(k + 1), **fields))
    except (TypeError, ValueError, OverflowError) as e:
        logger.warning("Truss synthesis failed (%s); using minimal model", e)
        return minimal_model()

    logger.info(
        "Synthesized truss h=%.2f m L=%.2f m: %d nodes, %d members",
        height, span_length, len(nodes), len(members),
    )
    return StructuralModel(nodes=tuple(nodes), members=tuple(members))
