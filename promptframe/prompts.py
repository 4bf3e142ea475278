# promptframe/prompts.py
"""
PROMPTS: What we tell the generation service
============================================

The generation service is asked for one JSON object in the wire format of
``model.StructuralModel.to_dict``. Everything here is plain string building:

- ``build_system_prompt``: format, rules and structure-specific guidance.
  A terse variant (``simplified=True``) is used on later retries; long
  prompts are the usual victim of capacity limits.
- ``build_user_message``: the instruction itself, or for edits the
  instruction plus the current model and a note on boundary conditions.
- ``build_correction_prompt``: a follow-up that lists what was wrong with a
  truss or beam and asks for a corrected model.
"""

from typing import Optional, Sequence

from .catalog import DEFAULT_SECTION
from .generative.frame import SPAN_PITCH, STORY_HEIGHT, expected_frame_counts
from .intent import BoundaryChangeIntent, Intent, StructureType
from .model import StructuralModel


WIRE_FORMAT = (
    '{"nodes": [{"x": X, "y": Y, "s": BOUNDARY}], '
    '"members": [{"i": START_NODE, "j": END_NODE, "E": E, "I": I, "A": A, "Z": Z}], '
    '"nodeLoads": [{"n": NODE, "fx": HORIZONTAL, "fy": VERTICAL}], '
    '"memberLoads": [{"m": MEMBER, "q": UNIFORM_LOAD}]}'
)


def _section_line() -> str:
    s = DEFAULT_SECTION
    return f"Section constants unless the instruction names a section ({s.name}): E={s.E:g}, I={s.I:g}, A={s.A:g}, Z={s.Z:g}"


def _load_rule(intent: Intent) -> str:
    load = intent.load_intent
    if not load.requested:
        return '- The instruction names no loads: output "nodeLoads": [] and "memberLoads": []'
    kind = load.kind.value if load.kind else 'both'
    return f"- Include the loads the instruction describes ({kind} loads); use kN and kN/m"


def _structure_guidance(intent: Intent) -> str:
    if intent.structure_type is StructureType.FRAME:
        dims = intent.dimensions
        if dims.is_portal:
            return (
                "Portal frame:\n"
                "- 4 nodes, 3 members (left column, beam, right column), nothing else\n"
                "- column bases fixed \"x\", column tops free \"f\""
            )
        if dims.explicit:
            nodes, columns, beams = expected_frame_counts(dims.layers, dims.spans)
            return (
                f"Rigid frame, {dims.layers} layer(s) x {dims.spans} span(s):\n"
                f"- exactly {nodes} nodes on a grid, span {SPAN_PITCH:g} m, story height {STORY_HEIGHT:g} m\n"
                f"- exactly {columns} columns and {beams} beams; no beams at ground level\n"
                "- ground nodes fixed \"x\", all others free \"f\""
            )
        return "Rigid frame: ground nodes fixed \"x\", all others free \"f\""

    if intent.structure_type is StructureType.TRUSS:
        t = intent.truss_dimensions
        return (
            f"Parallel-chord truss, height {t.height:g} m, span {t.span_length:g} m:\n"
            "- bottom chord at y=0, top chord at y=height\n"
            "- left bottom node pinned \"p\", right bottom node roller \"r\", all others free \"f\"\n"
            "- diagonals between the chords; every node connected"
        )

    if intent.structure_type is StructureType.BEAM:
        if intent.cantilever:
            return "Cantilever beam: all nodes at one elevation, one end fixed \"x\", the tip free \"f\""
        return "Beam: all nodes at one elevation, supported so it cannot move as a mechanism"

    return ""


def build_system_prompt(intent: Intent, simplified: bool = False) -> str:
    """System prompt for ``intent``; ``simplified`` gives the terse variant."""
    if simplified:
        lines = [
            "2D structural model. Output JSON only.",
            f"Format: {WIRE_FORMAT}",
            'Boundary: "f" free, "p" pinned, "r" roller, "x" fixed. Indices start at 1.',
            "One member per node pair. Reference existing nodes only.",
            _load_rule(intent),
        ]
        guidance = _structure_guidance(intent)
        if guidance:
            lines.append(guidance.splitlines()[0])
        return "\n".join(lines)

    sections = [
        "Generate a 2D structural model. Output a single JSON object and nothing else.",
        f"Format: {WIRE_FORMAT}",
        "Rules:\n"
        '- Boundary codes: "f" (free), "p" (pinned), "r" (roller), "x" (fixed)\n'
        "- Node and member numbers are array positions starting at 1\n"
        "- Coordinates in metres, one decimal place\n"
        f"- {_section_line()}\n"
        + _load_rule(intent),
        "Constraints:\n"
        "- At most one member between any two nodes\n"
        "- Members never reference a node that does not exist\n"
        "- A member never connects a node to itself",
    ]
    guidance = _structure_guidance(intent)
    if guidance:
        sections.append(guidance)
    return "\n\n".join(sections)


def _boundary_note(intent: BoundaryChangeIntent) -> str:
    if not intent.detected:
        return (
            "Boundary conditions: the instruction does not ask to change them. "
            'Keep every existing node\'s "s" value exactly as it is.'
        )
    condition = intent.new_condition.value if intent.new_condition else "as described"
    return (
        f"Boundary conditions: change requested for {intent.target.value} nodes to {condition}. "
        "Leave every other node's \"s\" value unchanged."
    )


def build_edit_prompt(prompt: str, current_model: StructuralModel, boundary_change: BoundaryChangeIntent) -> str:
    return (
        f"{prompt}\n\n"
        f"Current model:\n{current_model.to_json()}\n\n"
        "Edit rules:\n"
        "- Keep existing nodes and members at the same array positions\n"
        "- Change coordinates (x, y) to move a node; change i, j to reconnect a member\n"
        "- Append new nodes and members after the existing ones\n"
        f"- {_boundary_note(boundary_change)}\n\n"
        "Modify the model above according to the instruction."
    )


def build_user_message(
    prompt: str,
    intent: Intent,
    mode: str = 'new',
    prior_model: Optional[StructuralModel] = None,
) -> str:
    if mode == 'edit' and prior_model is not None:
        return build_edit_prompt(prompt, prior_model, intent.boundary_change)
    return prompt


def build_correction_prompt(
    prompt: str,
    model: StructuralModel,
    errors: Sequence[str],
    structure_type: StructureType,
) -> str:
    """
    Ask for a corrected truss or beam, listing the problems found.
    """
    kind = 'truss' if structure_type is StructureType.TRUSS else 'beam'
    problems = "\n".join(f"- {e}" for e in errors)
    return (
        f"Correct this {kind} model. Original instruction: {prompt}\n\n"
        f"Problems found:\n{problems}\n\n"
        f"Model:\n{model.to_json()}\n\n"
        f"Return the complete corrected {kind} model as JSON."
    )
