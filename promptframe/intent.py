"""
INTENT: WHAT IS THE USER ASKING FOR?
====================================

PURPOSE:
--------
Read a free-text instruction (Japanese or English) and pull out everything the
rest of the pipeline needs before talking to the generation service:

1. Structure type: frame, beam, truss or basic
2. Frame dimensions: number of layers (stories) and spans (bays)
3. Truss dimensions: physical height and span length in metres
4. Load intent: should the model carry loads, and of which kind?
5. Boundary-change intent: does an *edit* instruction ask to change supports?

HOW THE RULES WORK:
-------------------
Every decision is an ordered list of ``(pattern, result)`` rules evaluated
top-to-bottom; the first rule whose regex matches wins. The order IS the
precedence. For example the frame rules come before the beam and truss rules,
so "2層1スパンのラーメンにトラス梁" is a frame.

The rule tables are module-level data so each rule can be tested on its own.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence, Tuple

from .model import BoundaryCode

logger = logging.getLogger(__name__)


class StructureType(str, Enum):
    FRAME = 'frame'
    BEAM = 'beam'
    TRUSS = 'truss'
    BASIC = 'basic'


class BoundaryTarget(str, Enum):
    NONE = 'none'
    GROUND = 'ground'              # column bases, nodes at y = 0
    SUPPORTS = 'supports'          # "the supports", subset not specified
    SPECIFIED_NODES = 'specified'  # some node the prompt refers to


class LoadKind(str, Enum):
    NODE = 'node'
    MEMBER = 'member'
    BOTH = 'both'


Rule = Tuple[re.Pattern, Any]


def _rules(*pairs: Tuple[str, Any]) -> Tuple[Rule, ...]:
    return tuple((re.compile(pattern, re.IGNORECASE), result) for pattern, result in pairs)


def first_match(rules: Sequence[Rule], text: str, default: Any = None) -> Any:
    """Return the result of the first rule whose pattern matches ``text``."""
    for pattern, result in rules:
        if pattern.search(text):
            return result
    return default


# ============================================================================
# STRUCTURE TYPE
# ============================================================================

STRUCTURE_RULES = _rules(
    # frame
    (r'ラーメン', StructureType.FRAME),
    (r'門[型形]', StructureType.FRAME),
    (r'\d+\s*層', StructureType.FRAME),
    (r'\d+\s*階建', StructureType.FRAME),
    (r'\d+\s*スパン', StructureType.FRAME),
    (r'\d+\s*径間', StructureType.FRAME),
    (r'多層|高層', StructureType.FRAME),
    (r'frame', StructureType.FRAME),
    (r'portal', StructureType.FRAME),
    (r'multi-?stor', StructureType.FRAME),
    (r'\d+\s*-?\s*(?:stor(?:y|ey|ies|eys)|layers?|floors?|levels?)\b', StructureType.FRAME),
    (r'\d+\s*-?\s*(?:spans|bays?)\b', StructureType.FRAME),
    # beam
    (r'梁', StructureType.BEAM),
    (r'キャンチレバー|片持ち', StructureType.BEAM),
    (r'\bbeam', StructureType.BEAM),
    (r'cantilever|girder', StructureType.BEAM),
    # truss
    (r'トラス|ワーレン|プラット', StructureType.TRUSS),
    (r'truss|warren|pratt', StructureType.TRUSS),
)


CANTILEVER_PATTERN = re.compile(r'キャンチレバー|片持ち|cantilever', re.IGNORECASE)


def detect_structure_type(prompt: str) -> StructureType:
    return first_match(STRUCTURE_RULES, prompt, StructureType.BASIC)


# ============================================================================
# FRAME DIMENSIONS
# ============================================================================

LAYER_PATTERNS = tuple(re.compile(p, re.IGNORECASE) for p in (
    r'(\d+)\s*層',
    r'(\d+)\s*階建',
    r'(\d+)\s*階',
    r'(\d+)\s*-?\s*stor(?:y|ey|ies|eys)\b',
    r'(\d+)\s*-?\s*(?:layers?|floors?|levels?)\b',
))

SPAN_PATTERNS = tuple(re.compile(p, re.IGNORECASE) for p in (
    r'(\d+)\s*スパン',
    r'(\d+)\s*径間',
    r'(\d+)\s*-?\s*(?:spans?|bays?)\b',
))

PORTAL_RULES = _rules(
    (r'門[型形]', True),
    (r'portal', True),
)

# Soft defaults, only used while BOTH counts are still at their default of 1.
SOFT_LAYER_RULES = _rules(
    (r'多層|高層', 4),
    (r'multi-?stor(?:y|ey)|high-?rise', 4),
)

SOFT_SPAN_RULES = _rules(
    (r'多スパン|連スパン', 3),
    (r'multi-?(?:span|bay)', 3),
)

DEFAULT_TRUSS_HEIGHT = 3.0
DEFAULT_TRUSS_SPAN = 15.0

_METRES = r'(\d+(?:\.\d+)?)\s*(?:m|メートル)'

TRUSS_HEIGHT_PATTERNS = tuple(re.compile(p, re.IGNORECASE) for p in (
    r'高さ\s*(?:は|が)?\s*' + _METRES,
    _METRES + r'\s*の?\s*高さ',
    r'height\s*(?:of|=|:)?\s*' + _METRES,
    _METRES + r'\s*(?:high|tall|height|deep)\b',
))

TRUSS_SPAN_PATTERNS = tuple(re.compile(p, re.IGNORECASE) for p in (
    r'スパン\s*(?:は|が)?\s*' + _METRES,
    _METRES + r'\s*の?\s*スパン',
    r'(?:span|length)\s*(?:length)?\s*(?:of|=|:)?\s*' + _METRES,
    _METRES + r'\s*(?:-\s*)?(?:span|long)\b',
    r'長さ\s*(?:は|が)?\s*' + _METRES,
))


@dataclass(frozen=True)
class Dimensions:
    """
    Frame dimensions read from the prompt.

    explicit : bool
        True when a count was stated (or implied by portal / multi-story
        wording). Only explicit dimensions are worth enforcing on a model.
    """
    layers: int = 1
    spans: int = 1
    explicit: bool = False
    is_portal: bool = False


@dataclass(frozen=True)
class TrussDimensions:
    height: float = DEFAULT_TRUSS_HEIGHT
    span_length: float = DEFAULT_TRUSS_SPAN


def _first_count(patterns: Sequence[re.Pattern], text: str) -> Optional[int]:
    """First pattern that matches and parses to a positive integer wins."""
    for pattern in patterns:
        match = pattern.search(text)
        if not match:
            continue
        try:
            value = int(match.group(1))
        except ValueError:
            continue
        if value >= 1:
            return value
    return None


def _first_length(patterns: Sequence[re.Pattern], text: str) -> Optional[float]:
    for pattern in patterns:
        match = pattern.search(text)
        if not match:
            continue
        try:
            value = float(match.group(1))
        except ValueError:
            continue
        if value > 0:
            return value
    return None


def detect_dimensions(prompt: str) -> Dimensions:
    """
    Read layer and span counts.

    Portal-frame wording wins outright (always one layer, one span). Otherwise
    explicit counts are used, falling back to 1, and soft keyword defaults
    apply only when both counts are still 1.
    """
    if first_match(PORTAL_RULES, prompt, False):
        return Dimensions(layers=1, spans=1, explicit=True, is_portal=True)

    layers = _first_count(LAYER_PATTERNS, prompt)
    spans = _first_count(SPAN_PATTERNS, prompt)
    explicit = layers is not None or spans is not None
    layers = layers or 1
    spans = spans or 1

    if layers == 1 and spans == 1:
        soft_layers = first_match(SOFT_LAYER_RULES, prompt)
        soft_spans = first_match(SOFT_SPAN_RULES, prompt)
        if soft_layers is not None:
            layers = soft_layers
            explicit = True
        if soft_spans is not None:
            spans = soft_spans
            explicit = True

    return Dimensions(layers=layers, spans=spans, explicit=explicit)


def detect_truss_dimensions(prompt: str) -> TrussDimensions:
    height = _first_length(TRUSS_HEIGHT_PATTERNS, prompt)
    span = _first_length(TRUSS_SPAN_PATTERNS, prompt)
    return TrussDimensions(
        height=height if height is not None else DEFAULT_TRUSS_HEIGHT,
        span_length=span if span is not None else DEFAULT_TRUSS_SPAN,
    )


# ============================================================================
# LOAD INTENT
# ============================================================================

MEMBER_LOAD_RULES = _rules(
    (r'分布荷重|等分布|部材荷重', True),
    (r'kN\s*/\s*m\b', True),
    (r'\budl\b|distributed load|member load|line load', True),
)

NODE_LOAD_RULES = _rules(
    (r'集中荷重|節点荷重|水平力|鉛直力|水平荷重', True),
    (r'point load|nodal load|node load|concentrated load|lateral load|horizontal force', True),
)

GENERIC_LOAD_RULES = _rules(
    (r'荷重|外力', True),
    (r'\bload|\bforce', True),
)


@dataclass(frozen=True)
class LoadIntent:
    requested: bool = False
    kind: Optional[LoadKind] = None


def detect_load_intent(prompt: str) -> LoadIntent:
    member = first_match(MEMBER_LOAD_RULES, prompt, False)
    node = first_match(NODE_LOAD_RULES, prompt, False)
    if member and node:
        return LoadIntent(True, LoadKind.BOTH)
    if member:
        return LoadIntent(True, LoadKind.MEMBER)
    if node:
        return LoadIntent(True, LoadKind.NODE)
    if first_match(GENERIC_LOAD_RULES, prompt, False):
        return LoadIntent(True, LoadKind.BOTH)
    return LoadIntent()


# ============================================================================
# BOUNDARY-CHANGE INTENT (edit mode)
# ============================================================================

BOUNDARY_VOCABULARY = re.compile(
    r'境界条件|支点|柱脚|基礎|固定|ピン|ローラー|自由'
    r'|support|boundary|fixed|pinned|\bpin\b|roller|\bfree\b',
    re.IGNORECASE,
)

CHANGE_VOCABULARY = re.compile(
    r'変更|修正|から|に'
    r'|change|modify|update|make|set|switch|convert',
    re.IGNORECASE,
)

# Dimension/geometry wording. Any match means the edit is about coordinates
# and boundary codes must stay as they are.
COORDINATE_VOCABULARY = re.compile(
    r'スパン|長さ|高さ|座標|位置|移動|寸法'
    r'|\bspan|length|height|coordinate|position|\bmove|\bwidth',
    re.IGNORECASE,
)

BOUNDARY_TARGET_RULES = _rules(
    (r'柱脚|基礎|脚部', BoundaryTarget.GROUND),
    (r'column\s*bases?|\bbases?\b|footings?|\bground\b|foundations?', BoundaryTarget.GROUND),
    (r'支点|supports?', BoundaryTarget.SUPPORTS),
)

CONDITION_WORDS = re.compile(
    r'固定|ピン|ローラー|自由|fixed|pinned|\bpin\b|roller|\bfree\b',
    re.IGNORECASE,
)

_CONDITION_CODES = {
    '固定': BoundaryCode.FIXED, 'fixed': BoundaryCode.FIXED,
    'ピン': BoundaryCode.PINNED, 'pinned': BoundaryCode.PINNED, 'pin': BoundaryCode.PINNED,
    'ローラー': BoundaryCode.ROLLER, 'roller': BoundaryCode.ROLLER,
    '自由': BoundaryCode.FREE, 'free': BoundaryCode.FREE,
}


@dataclass(frozen=True)
class BoundaryChangeIntent:
    """
    detected : bool
        True only when the prompt names a boundary condition, asks for a
        change, and does NOT talk about coordinates/spans.
    target : BoundaryTarget
        Which nodes the change applies to.
    new_condition : BoundaryCode or None
        None means the prompt never said what the new condition is.
    """
    detected: bool = False
    target: BoundaryTarget = BoundaryTarget.NONE
    new_condition: Optional[BoundaryCode] = None

    def describe(self) -> str:
        condition = self.new_condition.value if self.new_condition else 'unresolved'
        return f"target={self.target.value}, new condition={condition}"


NO_BOUNDARY_CHANGE = BoundaryChangeIntent()


def _named_condition(prompt: str) -> Optional[BoundaryCode]:
    """
    The condition the prompt changes TO.

    "固定からピンに" / "from fixed to pinned" name two conditions; the one
    marked as the starting state ("...から", "from ...") is skipped and the
    last remaining one wins.
    """
    candidates = []
    fallback = None
    for match in CONDITION_WORDS.finditer(prompt):
        code = _CONDITION_CODES[match.group(0).lower()]
        fallback = code
        after = prompt[match.end():match.end() + 2]
        before = prompt[max(0, match.start() - 5):match.start()].lower()
        if after.startswith('から') or before.rstrip().endswith('from'):
            continue
        candidates.append(code)
    if candidates:
        return candidates[-1]
    return fallback


def detect_boundary_change_intent(prompt: str) -> BoundaryChangeIntent:
    has_boundary = bool(BOUNDARY_VOCABULARY.search(prompt))
    has_change = bool(CHANGE_VOCABULARY.search(prompt))
    has_coordinate = bool(COORDINATE_VOCABULARY.search(prompt))

    logger.debug(
        "Boundary intent vocabulary: boundary=%s change=%s coordinate=%s",
        has_boundary, has_change, has_coordinate,
    )

    if has_coordinate or not (has_boundary and has_change):
        return NO_BOUNDARY_CHANGE

    target = first_match(BOUNDARY_TARGET_RULES, prompt, BoundaryTarget.SPECIFIED_NODES)
    return BoundaryChangeIntent(
        detected=True,
        target=target,
        new_condition=_named_condition(prompt),
    )


# ============================================================================
# COMBINED
# ============================================================================

@dataclass(frozen=True)
class Intent:
    structure_type: StructureType
    dimensions: Dimensions
    truss_dimensions: TrussDimensions
    load_intent: LoadIntent
    boundary_change: BoundaryChangeIntent
    cantilever: bool = False


def classify(prompt: str) -> Intent:
    """
    Classify an instruction.

    Example:
    --------
    >>> intent = classify("2層3スパンのラーメン構造を作成")
    >>> intent.structure_type, intent.dimensions.layers, intent.dimensions.spans
    (<StructureType.FRAME: 'frame'>, 2, 3)
    """
    intent = Intent(
        structure_type=detect_structure_type(prompt),
        dimensions=detect_dimensions(prompt),
        truss_dimensions=detect_truss_dimensions(prompt),
        load_intent=detect_load_intent(prompt),
        boundary_change=detect_boundary_change_intent(prompt),
        cantilever=bool(CANTILEVER_PATTERN.search(prompt)),
    )
    logger.info(
        "Classified prompt: type=%s layers=%d spans=%d loads=%s boundary change=%s",
        intent.structure_type.value,
        intent.dimensions.layers,
        intent.dimensions.spans,
        intent.load_intent.kind.value if intent.load_intent.kind else 'none',
        intent.boundary_change.detected,
    )
    return intent
