# File: tests/test_model.py
"""
Test the model.py value types and the JSON wire format.
"""

import pytest

from promptframe.model import (
    BoundaryCode,
    Member,
    ModelFormatError,
    Node,
    StructuralModel,
)


PAYLOAD = {
    'nodes': [
        {'x': 0, 'y': 0, 's': 'x'},
        {'x': 6, 'y': 0, 's': 'x'},
        {'x': 0, 'y': 4, 's': 'f'},
        {'x': 6, 'y': 4, 's': 'f'},
    ],
    'members': [
        {'i': 1, 'j': 3, 'E': 205000, 'I': 0.00011, 'A': 0.005245, 'Z': 0.000638},
        {'i': 2, 'j': 4, 'E': 205000, 'I': 0.00011, 'A': 0.005245, 'Z': 0.000638},
        {'i': 3, 'j': 4, 'E': 205000, 'I': 0.00011, 'A': 0.005245, 'Z': 0.000638},
    ],
    'nodeLoads': [{'n': 3, 'fx': 10, 'fy': 0}],
    'memberLoads': [{'m': 3, 'q': -5}],
}


def test_from_dict_builds_typed_model():
    """
    A well-formed payload decodes into typed, frozen values.
    """
    model = StructuralModel.from_dict(PAYLOAD)

    assert model.node_count == 4
    assert model.member_count == 3
    assert model.nodes[0] == Node(0.0, 0.0, BoundaryCode.FIXED)
    assert model.members[2].i == 3 and model.members[2].j == 4
    assert model.node_loads[0].fx == 10.0
    assert model.member_loads[0].q == -5.0

    # Frozen: no in-place edits
    with pytest.raises(Exception):
        model.nodes[0].s = BoundaryCode.PINNED

    print("✓ from_dict decodes a portal frame")


def test_to_dict_uses_wire_keys():
    """
    to_dict() emits the camelCase load keys and one-letter boundary codes.
    """
    out = StructuralModel.from_dict(PAYLOAD).to_dict()

    assert set(out) == {'nodes', 'members', 'nodeLoads', 'memberLoads'}
    assert out['nodes'][0] == {'x': 0.0, 'y': 0.0, 's': 'x'}
    assert out['memberLoads'] == [{'m': 3, 'q': -5.0}]
    assert StructuralModel.from_dict(out) == StructuralModel.from_dict(PAYLOAD)
    print("✓ to_dict produces the wire format")


def test_integral_floats_are_accepted_as_indices():
    payload = {
        'nodes': [{'x': 0, 'y': 0, 's': 'p'}, {'x': 5, 'y': 0, 's': 'r'}],
        'members': [{'i': 1.0, 'j': 2.0, 'E': 1, 'I': 1, 'A': 1, 'Z': 1}],
    }
    model = StructuralModel.from_dict(payload)
    assert model.members[0].i == 1
    assert isinstance(model.members[0].j, int)


@pytest.mark.parametrize("payload", [
    {'nodes': [{'x': 0, 'y': 0, 's': 'fixed'}], 'members': []},   # long name is not a wire code
    {'nodes': [{'x': '0', 'y': 0, 's': 'f'}], 'members': []},     # string coordinate
    {'nodes': [{'x': 0, 's': 'f'}], 'members': []},               # missing y
    {'nodes': [], 'members': [{'i': 1.5, 'j': 2, 'E': 1, 'I': 1, 'A': 1, 'Z': 1}]},
    ["not", "an", "object"],
])
def test_from_dict_is_strict(payload):
    """
    Strict decode rejects anything that needs repair; repair is the
    validator's job (fix_references).
    """
    with pytest.raises(ModelFormatError):
        StructuralModel.from_dict(payload)


def test_from_json_rejects_invalid_text():
    with pytest.raises(ModelFormatError):
        StructuralModel.from_json("{not json")


def test_boundary_code_parse_accepts_long_names():
    """
    BoundaryCode.parse maps the spellings the generation service tends to use.
    """
    assert BoundaryCode.parse('x') is BoundaryCode.FIXED
    assert BoundaryCode.parse('Fixed') is BoundaryCode.FIXED
    assert BoundaryCode.parse(' pin ') is BoundaryCode.PINNED
    assert BoundaryCode.parse('roller') is BoundaryCode.ROLLER
    assert BoundaryCode.parse('free') is BoundaryCode.FREE
    assert BoundaryCode.parse('hinge') is None
    assert BoundaryCode.parse(3) is None
    print("✓ Boundary code aliases work")


def test_member_key_is_unordered():
    a = Member(i=1, j=2, E=1, I=1, A=1, Z=1)
    b = Member(i=2, j=1, E=1, I=1, A=1, Z=1)
    assert a.key == b.key == (1, 2)


def test_with_boundary_codes_returns_new_model():
    """
    with_boundary_codes never touches the original instance.
    """
    model = StructuralModel.from_dict(PAYLOAD)
    changed = model.with_boundary_codes({0: BoundaryCode.PINNED, 1: BoundaryCode.PINNED})

    assert changed.boundary_codes[:2] == (BoundaryCode.PINNED, BoundaryCode.PINNED)
    assert model.boundary_codes[:2] == (BoundaryCode.FIXED, BoundaryCode.FIXED)
    assert changed.members is model.members

    # No codes: the same instance comes back
    assert model.with_boundary_codes({}) is model
    print("✓ with_boundary_codes is copy-on-write")
