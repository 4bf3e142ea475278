# promptframe/schemas.py
"""
Request/response models: the generation service envelope and the pipeline's
own input/output contract.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Generation service (chat completions)
# =============================================================================

class ChatMessage(BaseModel):
    """One message of a chat completion request or response."""
    role: str
    content: str = Field(..., min_length=1, description="Message text")


class ChatChoice(BaseModel):
    index: int = 0
    message: ChatMessage


class ChatCompletionResponse(BaseModel):
    """Success body; only the first choice is used."""
    choices: List[ChatChoice] = Field(..., min_length=1)

    @property
    def content(self) -> str:
        return self.choices[0].message.content


class ChatCompletionRequest(BaseModel):
    model: str
    messages: List[ChatMessage]
    response_format: Dict[str, str] = Field(default_factory=lambda: {"type": "json_object"})


class ServiceErrorBody(BaseModel):
    """Error body. ``code`` "3505" marks a rate limit."""
    message: Optional[str] = None
    code: Optional[Union[str, int]] = None


# =============================================================================
# Pipeline input / output
# =============================================================================

class GenerationRequest(BaseModel):
    """Input of one generation: a prompt, a mode and, for edits, the current model."""
    model_config = ConfigDict(populate_by_name=True)

    prompt: str = Field(..., min_length=1, description="Free-text instruction (Japanese or English)")
    mode: Literal["new", "edit"] = Field("new", description="Create a new model or edit current_model")
    current_model: Optional[Dict[str, Any]] = Field(
        None, alias="currentModel", description="Model being edited, wire format"
    )


class GenerationResponse(BaseModel):
    """Output of one generation, serialized with camelCase keys."""
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    model: Dict[str, Any]
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    retry_count: int = Field(0, alias="retryCount", description="Retries spent on the initial call")
