# promptframe - Prompt-driven 2D structural model generation
"""
PROMPTFRAME: From an engineering instruction to a valid 2D model
================================================================

This package provides:
- Intent classification of Japanese / English instructions
- A resilient client for the external generation service
- Validation and deterministic repair of generated models
- Deterministic synthesis of regular frames and trusses
- Boundary-condition preservation across edits

ARCHITECTURE:
-------------
    model.py        Node, Member, loads, StructuralModel (wire format)
    catalog.py      Section constants stamped onto members
    intent.py       Rule tables and classify()
    generative/     Frame / truss synthesizers and the minimal fallback
    checks/         References, duplicates, frame dimensions, truss/beam shape
    boundary.py     Boundary-condition reconciliation for edits
    prompts.py      System, edit and correction prompts
    client.py       GenerationClient with timeouts and backoff
    schemas.py      pydantic request/response models
    config.py       GeneratorConfig and the global CONFIG
    pipeline.py     ModelGenerator: the generate/validate/correct loop
"""

from .model import (
    BoundaryCode,
    Member,
    MemberLoad,
    ModelFormatError,
    Node,
    NodeLoad,
    StructuralModel,
)
from .intent import Intent, classify
from .client import (
    FatalGenerationError,
    GenerationClient,
    GenerationError,
    RateLimitedError,
    TransientError,
)
from .config import CONFIG, GeneratorConfig
from .pipeline import ModelGenerator, StepOutcome

# Version
__version__ = "0.1.0"
