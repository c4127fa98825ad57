"""Capability interfaces for the two hosted models the gateway calls.

The request handler never talks to a concrete client.  It is constructed
with a :class:`TextEnhancer` and an :class:`ImageGenerator`, which in
production are both served by
:class:`~fluxgate.clients.workers_ai.WorkersAIClient` and in tests are
simple fakes.

Results are pydantic models so that whatever an implementation returns is
validated at the boundary instead of being probed attribute by attribute.
Implementations signal failure by raising; the message of the raised
exception is what the error classifier inspects.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol, runtime_checkable

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    """A single chat-style message sent to the text model."""

    role: Literal["system", "user", "assistant"]
    content: str


class TextCompletion(BaseModel):
    """Validated result of a text-model call.

    Attributes:
        response: Generated text.  ``None`` when the model produced nothing.
    """

    response: str | None = None


class GeneratedImage(BaseModel):
    """Validated result of an image-model call.

    Attributes:
        image: Base64-encoded image data.
    """

    image: str = Field(..., min_length=1)


@dataclass(frozen=True)
class MultipartPayload:
    """A fully encoded ``multipart/form-data`` body.

    Attributes:
        body: Encoded body bytes.
        content_type: Content-Type header value including the boundary.
    """

    body: bytes
    content_type: str


@runtime_checkable
class TextEnhancer(Protocol):
    """Rewrites a prompt with a chat model."""

    async def complete(
        self,
        messages: list[ChatMessage],
        *,
        gateway_id: str | None = None,
    ) -> TextCompletion:
        """Run the text model over *messages*, optionally via an AI gateway."""
        ...


@runtime_checkable
class ImageGenerator(Protocol):
    """Produces an image from a multipart generation payload."""

    async def generate(self, payload: MultipartPayload) -> GeneratedImage:
        """Run the image model over *payload*."""
        ...
