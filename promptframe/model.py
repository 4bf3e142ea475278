# Node, Member, loads and the StructuralModel value type
"""
Value types for 2D structural models and their JSON wire format.

All types are frozen dataclasses. A correction stage never edits a model in
place: it builds a new one with ``dataclasses.replace`` or the helpers below,
so no two stages can alias the same node list.

Indices are 1-based and refer to array position (node 1 = ``nodes[0]``).
"""

import json
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple


class ModelFormatError(ValueError):
    """Raised when a payload cannot be decoded as a structural model."""
    pass


class BoundaryCode(str, Enum):
    """Support condition of a node, stored as its one-letter wire code."""
    FREE = 'f'
    PINNED = 'p'
    ROLLER = 'r'
    FIXED = 'x'

    @classmethod
    def parse(cls, value: Any) -> Optional['BoundaryCode']:
        """
        Lenient lookup: accepts the wire letter or a long name
        ("fixed", "pin", ...). Returns None for anything else.
        """
        if isinstance(value, BoundaryCode):
            return value
        if not isinstance(value, str):
            return None
        key = value.strip().lower()
        return _BOUNDARY_ALIASES.get(key)


_BOUNDARY_ALIASES = {
    'f': BoundaryCode.FREE, 'free': BoundaryCode.FREE,
    'p': BoundaryCode.PINNED, 'pin': BoundaryCode.PINNED, 'pinned': BoundaryCode.PINNED,
    'r': BoundaryCode.ROLLER, 'roller': BoundaryCode.ROLLER,
    'x': BoundaryCode.FIXED, 'fix': BoundaryCode.FIXED, 'fixed': BoundaryCode.FIXED,
}

VALID_CODES = frozenset(code.value for code in BoundaryCode)


@dataclass(frozen=True)
class Node:
    x: float
    y: float
    s: BoundaryCode = BoundaryCode.FREE


@dataclass(frozen=True)
class Member:
    """
    2D frame member between nodes i and j (1-based), with section constants.
    """
    i: int
    j: int
    E: float
    I: float
    A: float
    Z: float

    @property
    def key(self) -> Tuple[int, int]:
        """Canonical unordered node pair, used for duplicate detection."""
        return (self.i, self.j) if self.i <= self.j else (self.j, self.i)


@dataclass(frozen=True)
class NodeLoad:
    n: int
    fx: float = 0.0
    fy: float = 0.0


@dataclass(frozen=True)
class MemberLoad:
    m: int
    q: float


@dataclass(frozen=True)
class StructuralModel:
    """
    Complete 2D model: ordered nodes, members and the two load lists.

    Build one from a decoded JSON payload with ``StructuralModel.from_dict``;
    serialize with ``to_dict`` / ``to_json``.
    """
    nodes: Tuple[Node, ...] = ()
    members: Tuple[Member, ...] = ()
    node_loads: Tuple[NodeLoad, ...] = ()
    member_loads: Tuple[MemberLoad, ...] = ()

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def member_count(self) -> int:
        return len(self.members)

    @property
    def boundary_codes(self) -> Tuple[BoundaryCode, ...]:
        return tuple(node.s for node in self.nodes)

    def with_boundary_codes(self, codes: Dict[int, BoundaryCode]) -> 'StructuralModel':
        """
        Return a copy with the boundary code of selected nodes replaced.

        ``codes`` maps 0-based node position to the new code.
        """
        if not codes:
            return self
        nodes = tuple(
            replace(node, s=codes[k]) if k in codes else node
            for k, node in enumerate(self.nodes)
        )
        return replace(self, nodes=nodes)

    def with_loads(
        self,
        node_loads: Iterable[NodeLoad],
        member_loads: Iterable[MemberLoad],
    ) -> 'StructuralModel':
        return replace(self, node_loads=tuple(node_loads), member_loads=tuple(member_loads))

    # ------------------------------------------------------------------
    # Wire format
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, list]:
        return {
            'nodes': [{'x': n.x, 'y': n.y, 's': n.s.value} for n in self.nodes],
            'members': [
                {'i': m.i, 'j': m.j, 'E': m.E, 'I': m.I, 'A': m.A, 'Z': m.Z}
                for m in self.members
            ],
            'nodeLoads': [{'n': l.n, 'fx': l.fx, 'fy': l.fy} for l in self.node_loads],
            'memberLoads': [{'m': l.m, 'q': l.q} for l in self.member_loads],
        }

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> 'StructuralModel':
        """
        Strict decode of a wire-format payload.

        Values must already have the right shape (numbers for coordinates,
        integers for indices, a known boundary code). Reference ranges are
        NOT checked here; that is the validator's job.

        Raises:
            ModelFormatError: on any missing key or wrongly typed value
        """
        if not isinstance(payload, dict):
            raise ModelFormatError(f"Model payload must be an object, got {type(payload).__name__}")
        try:
            nodes = tuple(
                Node(x=_number(n['x']), y=_number(n['y']), s=_code(n['s']))
                for n in payload.get('nodes') or []
            )
            members = tuple(
                Member(
                    i=_integer(m['i']), j=_integer(m['j']),
                    E=_number(m['E']), I=_number(m['I']),
                    A=_number(m['A']), Z=_number(m['Z']),
                )
                for m in payload.get('members') or []
            )
            node_loads = tuple(
                NodeLoad(n=_integer(l['n']), fx=_number(l.get('fx', 0.0)), fy=_number(l.get('fy', 0.0)))
                for l in payload.get('nodeLoads') or []
            )
            member_loads = tuple(
                MemberLoad(m=_integer(l['m']), q=_number(l['q']))
                for l in payload.get('memberLoads') or []
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise ModelFormatError(f"Malformed model payload: {e!r}") from e
        return cls(nodes=nodes, members=members, node_loads=node_loads, member_loads=member_loads)

    @classmethod
    def from_json(cls, text: str) -> 'StructuralModel':
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise ModelFormatError(f"Model text is not valid JSON: {e}") from e
        return cls.from_dict(payload)


def _number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected a number, got {value!r}")
    return float(value)


def _integer(value: Any) -> int:
    if isinstance(value, bool):
        raise TypeError(f"expected an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise TypeError(f"expected an integer, got {value!r}")


def _code(value: Any) -> BoundaryCode:
    if isinstance(value, BoundaryCode):
        return value
    if value in VALID_CODES:
        return BoundaryCode(value)
    raise TypeError(f"unknown boundary code {value!r}")
