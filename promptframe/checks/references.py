# promptframe/checks/references.py
"""
Reference integrity of generated models.

Generated payloads are untrusted: node coordinates may be strings, boundary
codes may be spelled out ("fixed"), members may point at nodes that do not
exist. ``check_references`` reports every problem; ``fix_references`` turns
the payload into a ``StructuralModel`` that satisfies all reference rules:

- every node has numeric x, y and s in {f, p, r, x}
- every member has integer i != j, both in [1, node count]
- every node load / member load points at an existing node / member
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from ..catalog import FRAME_SECTION
from ..model import (
    BoundaryCode,
    Member,
    MemberLoad,
    ModelFormatError,
    Node,
    NodeLoad,
    StructuralModel,
    VALID_CODES,
)

logger = logging.getLogger(__name__)


Payload = Union[Dict[str, Any], StructuralModel]


@dataclass
class ValidationResult:
    """Outcome of a check: valid flag plus human-readable errors."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: List[str]) -> 'ValidationResult':
        return cls(is_valid=not errors, errors=list(errors))

    def merge(self, other: 'ValidationResult') -> 'ValidationResult':
        return ValidationResult.from_errors(self.errors + other.errors)


def _as_dict(payload: Payload) -> Any:
    if isinstance(payload, StructuralModel):
        return payload.to_dict()
    return payload


def _sections(payload: Dict[str, Any]) -> Tuple[Any, Any, Any, Any]:
    """nodes, members, node loads, member loads; accepts the short nl/ml keys."""
    node_loads = payload.get('nodeLoads')
    if node_loads is None:
        node_loads = payload.get('nl')
    member_loads = payload.get('memberLoads')
    if member_loads is None:
        member_loads = payload.get('ml')
    return payload.get('nodes'), payload.get('members'), node_loads or [], member_loads or []


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:  # int beyond float range
        return False


def _is_integer(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


def _load_index(load: Dict[str, Any], key: str, alias: str) -> Any:
    value = load.get(key)
    return load.get(alias) if value is None else value


def check_references(payload: Payload) -> ValidationResult:
    """
    Report every reference problem in a raw payload or a model.
    """
    payload = _as_dict(payload)
    if not isinstance(payload, dict):
        return ValidationResult.from_errors(["model payload is not an object"])

    nodes, members, node_loads, member_loads = _sections(payload)
    errors: List[str] = []
    if not isinstance(nodes, list):
        return ValidationResult.from_errors(["nodes array is missing"])
    if not isinstance(members, list):
        return ValidationResult.from_errors(["members array is missing"])

    node_count = len(nodes)
    for k, node in enumerate(nodes, start=1):
        if not isinstance(node, dict) or not all(key in node for key in ('x', 'y', 's')):
            errors.append(f"node {k} is missing one of x, y, s")
            continue
        if not (_is_number(node['x']) and _is_number(node['y'])):
            errors.append(f"node {k} has non-numeric coordinates")
        if not isinstance(node['s'], str) or node['s'] not in VALID_CODES:
            errors.append(f"node {k} has invalid boundary code {node['s']!r}")

    for k, member in enumerate(members, start=1):
        if not isinstance(member, dict) or 'i' not in member or 'j' not in member:
            errors.append(f"member {k} is missing i or j")
            continue
        i, j = member['i'], member['j']
        if not (_is_integer(i) and _is_integer(j)):
            errors.append(f"member {k} node numbers ({i}, {j}) are not integers")
            continue
        if not 1 <= i <= node_count:
            errors.append(f"member {k} start node {i} is out of range (1-{node_count})")
        if not 1 <= j <= node_count:
            errors.append(f"member {k} end node {j} is out of range (1-{node_count})")
        if i == j:
            errors.append(f"member {k} starts and ends at node {i}")

    if isinstance(node_loads, list):
        for k, load in enumerate(node_loads, start=1):
            n = _load_index(load, 'n', 'node') if isinstance(load, dict) else None
            if not _is_integer(n) or not 1 <= n <= node_count:
                errors.append(f"node load {k} references node {n!r} (1-{node_count})")

    if isinstance(member_loads, list):
        member_count = len(members)
        for k, load in enumerate(member_loads, start=1):
            m = _load_index(load, 'm', 'member') if isinstance(load, dict) else None
            if not _is_integer(m) or not 1 <= m <= member_count:
                errors.append(f"member load {k} references member {m!r} (1-{member_count})")

    return ValidationResult.from_errors(errors)


# ============================================================================
# REPAIR
# ============================================================================

def _to_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


def _to_int(value: Any) -> Optional[int]:
    number = _to_float(value)
    if number is None or not number.is_integer():
        return None
    return int(number)


def _positive(value: Any, default: float) -> float:
    number = _to_float(value)
    return number if number is not None and number > 0 else default


def fix_references(payload: Payload) -> StructuralModel:
    """
    Build a reference-valid model from an untrusted payload.

    Repairs:
    - numeric strings are converted; long boundary names are mapped to codes;
      unknown codes become free
    - nodes without usable coordinates are dropped and member/load indices
      are renumbered to the surviving nodes
    - members with unusable or self references are dropped; missing or
      non-positive section constants come from the frame section
    - loads pointing at dropped or missing nodes/members are dropped

    Raises:
        ModelFormatError: if the payload has no nodes/members arrays or no
            node survives
    """
    payload = _as_dict(payload)
    if not isinstance(payload, dict):
        raise ModelFormatError("model payload is not an object")
    raw_nodes, raw_members, raw_node_loads, raw_member_loads = _sections(payload)
    if not isinstance(raw_nodes, list) or not isinstance(raw_members, list):
        raise ModelFormatError("model payload has no nodes/members arrays")

    repairs: List[str] = []

    nodes: List[Node] = []
    node_map: Dict[int, int] = {}  # old 1-based -> new 1-based
    for k, raw in enumerate(raw_nodes, start=1):
        if not isinstance(raw, dict):
            repairs.append(f"dropped node {k} (not an object)")
            continue
        x, y = _to_float(raw.get('x')), _to_float(raw.get('y'))
        if x is None or y is None:
            repairs.append(f"dropped node {k} (coordinates {raw.get('x')!r}, {raw.get('y')!r})")
            continue
        code = BoundaryCode.parse(raw.get('s'))
        if code is None:
            repairs.append(f"node {k} boundary code {raw.get('s')!r} set to free")
            code = BoundaryCode.FREE
        nodes.append(Node(x=x, y=y, s=code))
        node_map[k] = len(nodes)

    if not nodes:
        raise ModelFormatError("model payload has no usable nodes")

    members: List[Member] = []
    member_map: Dict[int, int] = {}
    defaults = FRAME_SECTION
    for k, raw in enumerate(raw_members, start=1):
        if not isinstance(raw, dict):
            repairs.append(f"dropped member {k} (not an object)")
            continue
        i = node_map.get(_to_int(raw.get('i')))
        j = node_map.get(_to_int(raw.get('j')))
        if i is None or j is None or i == j:
            repairs.append(f"dropped member {k} (nodes {raw.get('i')!r} -> {raw.get('j')!r})")
            continue
        members.append(Member(
            i=i, j=j,
            E=_positive(raw.get('E'), defaults.E),
            I=_positive(raw.get('I'), defaults.I),
            A=_positive(raw.get('A'), defaults.A),
            Z=_positive(raw.get('Z'), defaults.Z),
        ))
        member_map[k] = len(members)

    node_loads: List[NodeLoad] = []
    for k, raw in enumerate(raw_node_loads if isinstance(raw_node_loads, list) else [], start=1):
        n = node_map.get(_to_int(_load_index(raw, 'n', 'node'))) if isinstance(raw, dict) else None
        if n is None:
            repairs.append(f"dropped node load {k}")
            continue
        fx = _to_float(_load_index(raw, 'fx', 'px'))
        fy = _to_float(_load_index(raw, 'fy', 'py'))
        node_loads.append(NodeLoad(n=n, fx=fx or 0.0, fy=fy or 0.0))

    member_loads: List[MemberLoad] = []
    for k, raw in enumerate(raw_member_loads if isinstance(raw_member_loads, list) else [], start=1):
        m = member_map.get(_to_int(_load_index(raw, 'm', 'member'))) if isinstance(raw, dict) else None
        q = _to_float(_load_index(raw, 'q', 'w')) if isinstance(raw, dict) else None
        if m is None or q is None:
            repairs.append(f"dropped member load {k}")
            continue
        member_loads.append(MemberLoad(m=m, q=q))

    if repairs:
        logger.warning("Reference repairs applied: %s", "; ".join(repairs))

    return StructuralModel(
        nodes=tuple(nodes),
        members=tuple(members),
        node_loads=tuple(node_loads),
        member_loads=tuple(member_loads),
    )
