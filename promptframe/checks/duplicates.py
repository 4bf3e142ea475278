# promptframe/checks/duplicates.py
"""Duplicate-member detection: at most one member per unordered node pair."""

import logging
from dataclasses import replace
from typing import Dict, List

from ..model import StructuralModel
from .references import ValidationResult

logger = logging.getLogger(__name__)


def find_duplicate_members(model: StructuralModel) -> List[int]:
    """
    1-based indices of members whose node pair already appeared earlier.

    Example: members (1,2), (2,1), (1,3) -> [2]
    """
    seen = set()
    duplicates = []
    for k, member in enumerate(model.members, start=1):
        if member.key in seen:
            duplicates.append(k)
        else:
            seen.add(member.key)
    return duplicates


def check_duplicate_members(model: StructuralModel) -> ValidationResult:
    errors = []
    for k in find_duplicate_members(model):
        member = model.members[k - 1]
        errors.append(f"member {k} duplicates the connection {member.i}-{member.j}")
    return ValidationResult.from_errors(errors)


def remove_duplicate_members(model: StructuralModel) -> StructuralModel:
    """
    Keep the first member of each node pair and drop the rest.

    Member loads on a dropped member are dropped; loads on surviving members
    are renumbered to the members' new positions.
    """
    duplicates = set(find_duplicate_members(model))
    if not duplicates:
        return model

    members = []
    member_map: Dict[int, int] = {}
    for k, member in enumerate(model.members, start=1):
        if k in duplicates:
            continue
        members.append(member)
        member_map[k] = len(members)

    member_loads = tuple(
        replace(load, m=member_map[load.m])
        for load in model.member_loads
        if load.m in member_map
    )

    logger.warning("Removed %d duplicate member(s): %s", len(duplicates), sorted(duplicates))
    return replace(model, members=tuple(members), member_loads=member_loads)
