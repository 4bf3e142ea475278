# promptframe/generative/fallback.py
"""The fixed minimal model returned when nothing better can be produced."""

from ..catalog import FRAME_SECTION
from ..model import BoundaryCode, Member, Node, StructuralModel


def minimal_model() -> StructuralModel:
    """
    A 6 m x 3 m portal: pinned left base, roller right base, two columns and
    a beam. Always valid; used as the last fallback of every stage.
    """
    section = FRAME_SECTION.as_member_fields()
    return StructuralModel(
        nodes=(
            Node(0.0, 0.0, BoundaryCode.PINNED),
            Node(6.0, 0.0, BoundaryCode.ROLLER),
            Node(0.0, 3.0, BoundaryCode.FREE),
            Node(6.0, 3.0, BoundaryCode.FREE),
        ),
        members=(
            Member(i=1, j=3, **section),
            Member(i=2, j=4, **section),
            Member(i=3, j=4, **section),
        ),
    )
