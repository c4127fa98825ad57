"""Pydantic request and response models for the gateway API.

Models
------
GenerationRequest
    The parsed ``POST /generate`` form: prompt, enhance flag and buffered
    reference images.
GenerateSuccess
    200 body - ``{success, image, enhancedPrompt?, timestamp}``.
GenerateFailure
    500 body - ``{success, error, code, timestamp}``.
PromptRequired
    400 body - ``{error}``.  Deliberately has no ``success`` wrapper.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from fluxgate.core.errors import ErrorCode
from fluxgate.core.payload import ReferenceImage


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with milliseconds, e.g. ``2026-01-01T12:00:00.000Z``."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class GenerationRequest(BaseModel):
    """Parsed and validated ``POST /generate`` form.

    Attributes:
        prompt: Trimmed user prompt (never empty).
        enhance: ``True`` only when the form sent the literal ``"true"``.
        images: Buffered reference images in slot order (0-4).
    """

    prompt: str = Field(..., min_length=1)
    enhance: bool = False
    images: list[ReferenceImage] = Field(default_factory=list, max_length=4)

    @property
    def should_enhance(self) -> bool:
        """Enhancement only runs for text-only requests."""
        return self.enhance and not self.images


class GenerateSuccess(BaseModel):
    """Successful generation response."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    image: str = Field(..., description="Base64-encoded generated image.")
    enhanced_prompt: str | None = Field(
        default=None,
        alias="enhancedPrompt",
        description="Rewritten prompt; omitted when enhancement did not apply.",
    )
    timestamp: str = Field(default_factory=utc_timestamp)

    def to_body(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class GenerateFailure(BaseModel):
    """Failed generation response."""

    success: bool = False
    error: str
    code: ErrorCode
    timestamp: str = Field(default_factory=utc_timestamp)

    def to_body(self) -> dict:
        return self.model_dump(mode="json")


class PromptRequired(BaseModel):
    """Validation failure response for a missing or blank prompt."""

    error: str = "Prompt required"

    def to_body(self) -> dict:
        return self.model_dump()
