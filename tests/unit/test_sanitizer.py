"""Tests for fluxgate.core.sanitizer - moderation false-positive rewrites."""

from __future__ import annotations

import pytest

from fluxgate.core.sanitizer import sanitize_prompt


class TestMountainRule:
    """Prepositions before mountain(s) become 'with mountain landscape'."""

    @pytest.mark.parametrize(
        "prompt, expected",
        [
            ("a cabin on the mountain", "a cabin with mountain landscape"),
            ("snow over mountains", "snow with mountain landscape"),
            ("a lake near the mountains", "a lake with mountain landscape"),
            ("a village in mountains", "a village with mountain landscape"),
            ("a hut at the mountain", "a hut with mountain landscape"),
            ("clouds OVER THE MOUNTAINS", "clouds with mountain landscape"),
            ("a hut at   the   mountain", "a hut with mountain landscape"),
        ],
    )
    def test_rewrites(self, prompt, expected):
        assert sanitize_prompt(prompt) == expected

    @pytest.mark.parametrize(
        "prompt",
        [
            "a mountain goat",
            "beyond the mountains",
            "on the mountainside",
            "a moon over them",
        ],
    )
    def test_leaves_other_phrasing_alone(self, prompt):
        assert sanitize_prompt(prompt) == prompt


class TestLightingRules:
    """sunset/sunrise become lighting descriptions."""

    def test_sunset(self):
        assert sanitize_prompt("a beach at Sunset") == "a beach at golden hour lighting"

    def test_sunrise(self):
        assert sanitize_prompt("SUNRISE over a field") == "dawn lighting over a field"

    def test_whole_words_only(self):
        assert sanitize_prompt("sunsets and sunrises") == "sunsets and sunrises"

    def test_word_boundaries_and_case_folding_are_ascii(self):
        assert sanitize_prompt("ésunset and ſunset") == "égolden hour lighting and ſunset"


class TestSanitizePrompt:
    """Combined behaviour."""

    def test_reference_example(self):
        assert (
            sanitize_prompt("sunset over the mountains")
            == "golden hour lighting with mountain landscape"
        )

    def test_result_is_trimmed(self):
        assert sanitize_prompt("  a red fox \n") == "a red fox"

    def test_clean_prompt_unchanged(self):
        assert sanitize_prompt("a red fox in a forest") == "a red fox in a forest"

    @pytest.mark.parametrize(
        "prompt",
        [
            "sunset over the mountains",
            "sunrise near mountains, then sunset in the mountain",
            "  on the mountain at sunrise  ",
            "nothing to change here",
            "",
        ],
    )
    def test_idempotent(self, prompt):
        once = sanitize_prompt(prompt)
        assert sanitize_prompt(once) == once
