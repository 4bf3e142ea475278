# promptframe/checks - Model validation and deterministic repair
"""
Validation of generated models: reference integrity, duplicate members,
frame dimensions, and truss/beam shape.

``validate_model`` runs every check that applies to an intent;
``fix_model`` applies the deterministic repairs (reference repair, frame
resynthesis, duplicate removal) and returns a new model.
"""

from typing import Union

from ..intent import Intent, StructureType
from ..model import StructuralModel
from .references import ValidationResult, check_references, fix_references
from .duplicates import check_duplicate_members, find_duplicate_members, remove_duplicate_members
from .dimensions import check_frame_dimensions, fix_frame_dimensions, transplant_loads, elevation_counts
from .shape import check_beam_shape, check_truss_shape


def enforces_frame_dimensions(intent: Intent) -> bool:
    """Frame counts are enforced only when the prompt actually stated them."""
    return intent.structure_type is StructureType.FRAME and intent.dimensions.explicit


def check_shape(model: StructuralModel, intent: Intent) -> ValidationResult:
    """The looser truss/beam check for the intent; always valid for other types."""
    if intent.structure_type is StructureType.TRUSS:
        return check_truss_shape(model)
    if intent.structure_type is StructureType.BEAM:
        return check_beam_shape(model, cantilever=intent.cantilever)
    return ValidationResult(is_valid=True)


def validate_model(payload: Union[dict, StructuralModel], intent: Intent) -> ValidationResult:
    """
    Run every check relevant to ``intent``.

    Reference errors short-circuit the rest: the other checks need a typed
    model to work on.
    """
    result = check_references(payload)
    if not result.is_valid:
        return result
    model = payload if isinstance(payload, StructuralModel) else fix_references(payload)

    result = result.merge(check_duplicate_members(model))
    if enforces_frame_dimensions(intent):
        result = result.merge(check_frame_dimensions(model, intent.dimensions))
    return result.merge(check_shape(model, intent))


def fix_model(payload: Union[dict, StructuralModel], intent: Intent) -> StructuralModel:
    """
    Deterministic repair: references, then frame dimensions (resynthesis),
    then duplicate members.
    """
    model = fix_references(payload)
    if enforces_frame_dimensions(intent):
        model = fix_frame_dimensions(model, intent.dimensions)
    return remove_duplicate_members(model)


__all__ = [
    'ValidationResult',
    'check_references',
    'fix_references',
    'check_duplicate_members',
    'find_duplicate_members',
    'remove_duplicate_members',
    'check_frame_dimensions',
    'fix_frame_dimensions',
    'transplant_loads',
    'elevation_counts',
    'check_truss_shape',
    'check_beam_shape',
    'check_shape',
    'enforces_frame_dimensions',
    'validate_model',
    'fix_model',
]
