"""Prompt sanitisation against known moderation false positives.

The downstream image model flags some harmless scene descriptions.  The
rewrites below keep the scene intent while removing the trigger tokens:

=============================================  ==========================
Pattern (case-insensitive)                     Replacement
=============================================  ==========================
``over|on|at|in|near`` [``the``] mountain(s)   ``with mountain landscape``
``sunset``                                     ``golden hour lighting``
``sunrise``                                    ``dawn lighting``
=============================================  ==========================

Rules are applied in order and the result is trimmed.  None of the
replacements re-introduces a pattern, so sanitising twice is a no-op.
"""

from __future__ import annotations

import re

SANITIZE_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (
        re.compile(r"\b(over|on|at|in|near)\s+(the\s+)?mountains?\b", re.IGNORECASE | re.ASCII),
        "with mountain landscape",
    ),
    (re.compile(r"\bsunset\b", re.IGNORECASE | re.ASCII), "golden hour lighting"),
    (re.compile(r"\bsunrise\b", re.IGNORECASE | re.ASCII), "dawn lighting"),
)


def sanitize_prompt(prompt: str) -> str:
    """Rewrite moderation trigger phrases in *prompt*.

    Args:
        prompt: The active prompt (original or enhanced).

    Returns:
        The sanitised, trimmed prompt.

    Example:
        >>> sanitize_prompt("sunset over the mountains")
        'golden hour lighting with mountain landscape'
    """
    sanitized = prompt
    for pattern, replacement in SANITIZE_RULES:
        sanitized = pattern.sub(replacement, sanitized)
    return sanitized.strip()
