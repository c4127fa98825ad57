"""Exception types and upstream failure classification.

Image-generation failures are mapped to a small, stable set of error codes
by looking for known substrings in the failure message.  The rules are
evaluated top to bottom and the first match wins, so a message containing
both ``3040`` and ``3030`` is reported as ``CAPACITY_EXCEEDED``.

The numeric tokens are Workers AI error codes embedded in the message by
:class:`~fluxgate.clients.workers_ai.WorkersAIClient`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class FluxgateError(Exception):
    """Base class for errors raised by Fluxgate."""


class InvalidResponseError(FluxgateError):
    """An upstream model answered with an unexpected payload shape."""


class ErrorCode(str, Enum):
    """Machine-readable codes returned in ``code`` of failure responses."""

    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    CONTENT_MODERATION = "CONTENT_MODERATION"
    RATE_LIMIT = "RATE_LIMIT"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    SERVER_ERROR = "SERVER_ERROR"


@dataclass(frozen=True)
class ErrorRule:
    """Maps a message substring to a code and a user-facing message."""

    pattern: str
    code: ErrorCode
    message: str


GENERATION_ERROR_RULES: tuple[ErrorRule, ...] = (
    ErrorRule(
        "3040",
        ErrorCode.CAPACITY_EXCEEDED,
        "Capacity temporarily exceeded. Please try again in a moment.",
    ),
    ErrorRule(
        "3030",
        ErrorCode.CONTENT_MODERATION,
        "Prompt flagged for potential copyright or public persona concerns. "
        "Please modify your prompt.",
    ),
    ErrorRule(
        "rate limit",
        ErrorCode.RATE_LIMIT,
        "Rate limit exceeded. Please try again later.",
    ),
)

DEFAULT_GENERATION_ERROR = "Image generation failed"


def classify_generation_error(message: str | None) -> tuple[ErrorCode, str]:
    """Map an image-generation failure message to ``(code, user_message)``.

    Args:
        message: Text of the upstream failure.  May be empty or ``None``.

    Returns:
        The first matching rule's code and message, or
        ``UNKNOWN_ERROR`` with the original message (falling back to
        ``"Image generation failed"`` when it is empty).
    """
    text = message or ""
    for rule in GENERATION_ERROR_RULES:
        if rule.pattern in text:
            return rule.code, rule.message
    return ErrorCode.UNKNOWN_ERROR, text or DEFAULT_GENERATION_ERROR
