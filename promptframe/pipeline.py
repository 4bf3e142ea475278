# promptframe/pipeline.py
"""
CORRECTION ORCHESTRATOR: Prompt in, valid model out
===================================================

PURPOSE:
--------
Runs one generation request end to end:

    1. classify the prompt and build the prompts
    2. call the generation service
         unusable answer  -> deterministic synthesis (frame / truss / minimal)
    3. edit mode: put back boundary conditions the edit did not ask to change
    4. repair references; rebuild frames whose counts are wrong
    5. truss / beam with a bad shape: ask the service once more with the
       problems listed, keep the old model if that does not work out
    6. drop duplicate members

Each fallible step returns a ``StepOutcome``. A missing model means "this
step did not produce anything usable, take the next fallback"; the reason is
logged. The only failures that reach the caller are the generation client's
RateLimitedError / TransientError from step 2, after its retries ran out.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from .boundary import boundary_warnings, preserve_boundaries
from .checks import (
    check_shape,
    enforces_frame_dimensions,
    fix_frame_dimensions,
    fix_references,
    remove_duplicate_members,
    validate_model,
)
from .client import FatalGenerationError, GenerationClient, GenerationError
from .config import CONFIG, GeneratorConfig
from .generative import synthesize_for_intent
from .intent import Intent, StructureType, classify
from .model import ModelFormatError, StructuralModel
from .prompts import build_correction_prompt, build_system_prompt, build_user_message
from .schemas import GenerationRequest, GenerationResponse

logger = logging.getLogger(__name__)


_FENCE = re.compile(r'^\s*```(?:json)?\s*|\s*```\s*$', re.IGNORECASE)


@dataclass(frozen=True)
class StepOutcome:
    """Result of one step: a model, or None plus the reason there is none."""
    model: Optional[StructuralModel]
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.model is not None


def parse_generated_text(text: str) -> StepOutcome:
    """
    Turn generated text into a reference-valid model.

    Markdown code fences are stripped; if the text still is not JSON the
    outermost {...} block is tried.
    """
    cleaned = _FENCE.sub('', text or '').strip()
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError:
        start, end = cleaned.find('{'), cleaned.rfind('}')
        if start < 0 or end <= start:
            return StepOutcome(None, "generated text is not JSON")
        try:
            payload = json.loads(cleaned[start:end + 1])
        except json.JSONDecodeError as e:
            return StepOutcome(None, f"generated text is not JSON: {e}")

    try:
        return StepOutcome(fix_references(payload), "parsed")
    except ModelFormatError as e:
        return StepOutcome(None, f"generated JSON is not a model: {e}")


class ModelGenerator:
    """
    Produces a validated model for a prompt.

    Parameters:
    -----------
    config : GeneratorConfig
    client : GenerationClient, optional
        Anything with ``await invoke(system_prompt, user_message,
        simplified_system_prompt=...)`` and a ``last_attempts`` attribute
    """

    def __init__(self, config: GeneratorConfig = CONFIG, client: Optional[GenerationClient] = None):
        self.config = config
        self.client = client if client is not None else GenerationClient(config)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _call(self, intent: Intent, user_message: str) -> StepOutcome:
        text = await self.client.invoke(
            build_system_prompt(intent),
            user_message,
            simplified_system_prompt=build_system_prompt(intent, simplified=True),
        )
        return parse_generated_text(text)

    async def _initial_generation(self, intent: Intent, user_message: str) -> StepOutcome:
        """Step 2. Rate-limit / transient exhaustion propagates."""
        try:
            return await self._call(intent, user_message)
        except FatalGenerationError as e:
            return StepOutcome(None, f"generation failed: {e}")

    def _synthesize(self, intent: Intent) -> StepOutcome:
        model = synthesize_for_intent(intent)
        return StepOutcome(model, f"synthesized {intent.structure_type.value}")

    def _preserve(self, prior: StructuralModel, model: StructuralModel, intent: Intent) -> StructuralModel:
        """Step 3."""
        model = preserve_boundaries(prior, model, intent.boundary_change)
        for warning in boundary_warnings(prior, model, intent.boundary_change):
            logger.warning("Edit check: %s", warning)
        return model

    def _validate(
        self,
        model: StructuralModel,
        intent: Intent,
        prior: Optional[StructuralModel] = None,
    ) -> StructuralModel:
        """Step 4. A rebuilt frame gets the prior model's boundaries back."""
        result = validate_model(model, intent)
        if not result.is_valid:
            logger.warning("Validation found %d problem(s): %s", len(result.errors), "; ".join(result.errors))
        model = fix_references(model)
        if enforces_frame_dimensions(intent):
            rebuilt = fix_frame_dimensions(model, intent.dimensions)
            if rebuilt is not model and prior is not None:
                rebuilt = self._preserve(prior, rebuilt, intent)
            model = rebuilt
        return model

    async def _correct_shape(
        self,
        prompt: str,
        model: StructuralModel,
        intent: Intent,
        prior: Optional[StructuralModel],
    ) -> StepOutcome:
        """Step 5: one AI-assisted correction for trusses and beams."""
        result = check_shape(model, intent)
        if result.is_valid:
            return StepOutcome(model, "shape ok")

        logger.info("%s shape check failed, requesting correction: %s",
                    intent.structure_type.value, "; ".join(result.errors))
        correction = build_correction_prompt(prompt, model, result.errors, intent.structure_type)
        try:
            outcome = await self._call(intent, correction)
        except GenerationError as e:
            logger.warning("Correction call failed, keeping validated model: %s", e)
            return StepOutcome(model, "correction call failed")
        if not outcome.ok:
            logger.warning("Correction unusable (%s), keeping validated model", outcome.reason)
            return StepOutcome(model, outcome.reason)

        corrected = outcome.model
        if prior is not None:
            corrected = preserve_boundaries(prior, corrected, intent.boundary_change)
        logger.info("Applied %s correction", intent.structure_type.value)
        return StepOutcome(corrected, "corrected")

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def _run(
        self,
        prompt: str,
        mode: str,
        prior_model: Optional[StructuralModel],
    ) -> Tuple[StructuralModel, int]:
        intent = classify(prompt)
        editing = mode == 'edit' and prior_model is not None
        user_message = build_user_message(prompt, intent, mode, prior_model)

        outcome = await self._initial_generation(intent, user_message)
        retries = max(0, getattr(self.client, 'last_attempts', 1) - 1)
        if not outcome.ok:
            logger.warning("Falling back to synthesis: %s", outcome.reason)
            outcome = self._synthesize(intent)
        model = outcome.model

        if editing:
            model = self._preserve(prior_model, model, intent)

        model = self._validate(model, intent, prior_model if editing else None)

        if intent.structure_type in (StructureType.TRUSS, StructureType.BEAM):
            model = (await self._correct_shape(prompt, model, intent, prior_model if editing else None)).model

        model = remove_duplicate_members(model)
        logger.info("Produced model: %d nodes, %d members", model.node_count, model.member_count)
        return model, retries

    async def produce_model(
        self,
        prompt: str,
        mode: str = 'new',
        prior_model: Optional[StructuralModel] = None,
    ) -> StructuralModel:
        """
        Generate (mode "new") or edit (mode "edit" with ``prior_model``) a model.

        Raises:
            RateLimitedError, TransientError: the initial generation call ran
                out of retries
        """
        model, _ = await self._run(prompt, mode, prior_model)
        return model

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        """
        Request/response form of ``produce_model``.

        A ``current_model`` with no usable nodes (an empty canvas) is ignored
        and the edit runs without a prior model.
        """
        prior = None
        if request.current_model:
            try:
                prior = fix_references(request.current_model)
            except ModelFormatError as e:
                logger.warning("Ignoring unusable current model: %s", e)
        model, retries = await self._run(request.prompt, request.mode, prior)
        return GenerationResponse(success=True, model=model.to_dict(), retry_count=retries)
