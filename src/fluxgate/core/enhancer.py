"""Optional LLM rewrite of the user's prompt.

Enhancement asks a small chat model to improve lighting, colour and
composition wording without changing what the image depicts.  It is a
best-effort step: any failure leaves the original prompt in place and the
request carries on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fluxgate.core.capabilities import ChatMessage, TextCompletion, TextEnhancer

logger = logging.getLogger(__name__)

ENHANCEMENT_SYSTEM_PROMPT = (
    "You are a prompt enhancement specialist for image generation. STRICT RULES: "
    "1) Never add objects, people, animals, or elements not mentioned in the original "
    "prompt. Only enhance what is already there. "
    "2) Never use brand names, celebrity names, character names, or any proper nouns. "
    "3) Focus on enhancing: lighting quality, color palette, atmosphere, composition, "
    "camera angles, artistic style, texture details, and visual mood. "
    '4) Use only generic terms like "person", "building", "landscape", "object". '
    "5) Keep the core subject matter exactly as specified. "
    "Output ONLY the enhanced prompt with no preamble or explanation."
)


@dataclass(frozen=True)
class EnhancementResult:
    """Outcome of the enhancement step.

    Attributes:
        prompt: The prompt to carry forward (enhanced or original).
        enhanced_prompt: The rewritten prompt, or ``None`` when no usable
            rewrite was produced.
    """

    prompt: str
    enhanced_prompt: str | None = None


def build_enhancement_messages(prompt: str) -> list[ChatMessage]:
    """Build the chat messages for enhancing *prompt*."""
    return [
        ChatMessage(role="system", content=ENHANCEMENT_SYSTEM_PROMPT),
        ChatMessage(role="user", content=f"Enhance this for image generation: {prompt}"),
    ]


async def enhance_prompt(
    enhancer: TextEnhancer,
    prompt: str,
    *,
    gateway_id: str | None = None,
) -> EnhancementResult:
    """Ask the text model to rewrite *prompt*.

    The rewrite is accepted only if it is non-empty after trimming and
    differs from *prompt*.  Exceptions from *enhancer* are logged and
    swallowed.

    Args:
        enhancer: Text capability to call.
        prompt: The trimmed user prompt.
        gateway_id: AI gateway routing tag passed through to *enhancer*.

    Returns:
        An :class:`EnhancementResult`; ``enhanced_prompt`` is set only when
        the rewrite was used.
    """
    logger.info("Starting prompt enhancement")
    logger.debug(f"Original prompt: {prompt}")

    try:
        raw = await enhancer.complete(
            build_enhancement_messages(prompt),
            gateway_id=gateway_id,
        )
        completion = TextCompletion.model_validate(raw)
    except Exception as e:
        logger.warning(f"Prompt enhancement failed, continuing with original: {e}", exc_info=True)
        return EnhancementResult(prompt=prompt)

    enhanced = (completion.response or "").strip()
    if enhanced and enhanced != prompt:
        logger.info(f"Enhanced prompt: {enhanced}")
        return EnhancementResult(prompt=enhanced, enhanced_prompt=enhanced)

    logger.info("No enhancement applied, using original prompt")
    return EnhancementResult(prompt=prompt)
