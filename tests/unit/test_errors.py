"""Tests for fluxgate.core.errors - generation failure classification."""

from __future__ import annotations

import pytest

from fluxgate.core.errors import (
    DEFAULT_GENERATION_ERROR,
    GENERATION_ERROR_RULES,
    ErrorCode,
    classify_generation_error,
)


class TestClassifyGenerationError:
    """Ordered substring rules, first match wins."""

    def test_capacity(self):
        code, message = classify_generation_error("AiError: 3040: Capacity temporarily exceeded")
        assert code is ErrorCode.CAPACITY_EXCEEDED
        assert message == "Capacity temporarily exceeded. Please try again in a moment."

    def test_content_moderation(self):
        code, message = classify_generation_error("error 3030 while generating")
        assert code is ErrorCode.CONTENT_MODERATION
        assert message.startswith("Prompt flagged for potential copyright")

    def test_rate_limit(self):
        code, message = classify_generation_error("you have hit the rate limit")
        assert code is ErrorCode.RATE_LIMIT
        assert message == "Rate limit exceeded. Please try again later."

    def test_rate_limit_match_is_case_sensitive(self):
        code, _ = classify_generation_error("Rate Limit")
        assert code is ErrorCode.UNKNOWN_ERROR

    def test_first_rule_wins(self):
        code, _ = classify_generation_error("3030 then 3040 and a rate limit")
        assert code is ErrorCode.CAPACITY_EXCEEDED

    def test_moderation_beats_rate_limit(self):
        code, _ = classify_generation_error("rate limit 3030")
        assert code is ErrorCode.CONTENT_MODERATION

    def test_unknown_keeps_original_message(self):
        assert classify_generation_error("socket closed") == (
            ErrorCode.UNKNOWN_ERROR,
            "socket closed",
        )

    @pytest.mark.parametrize("message", ["", None])
    def test_empty_message_uses_default(self, message):
        assert classify_generation_error(message) == (
            ErrorCode.UNKNOWN_ERROR,
            DEFAULT_GENERATION_ERROR,
        )

    def test_rule_order(self):
        assert [rule.code for rule in GENERATION_ERROR_RULES] == [
            ErrorCode.CAPACITY_EXCEEDED,
            ErrorCode.CONTENT_MODERATION,
            ErrorCode.RATE_LIMIT,
        ]


class TestErrorCode:
    def test_codes_serialise_as_strings(self):
        assert ErrorCode.SERVER_ERROR.value == "SERVER_ERROR"
        assert ErrorCode("RATE_LIMIT") is ErrorCode.RATE_LIMIT
