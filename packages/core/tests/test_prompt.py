"""Tests for system/user prompt construction."""

import pytest

from prism_core.config import resolve_config
from prism_core.prompt import PROFILE_INSTRUCTIONS, build_messages, build_system_prompt, build_user_prompt


def _config(profile="balanced"):
    return resolve_config({"provider": "ollama", "profile": profile})


class TestSystemPrompt:
    @pytest.mark.parametrize("profile", ["balanced", "security", "performance", "strict"])
    def test_contains_profile_instruction(self, profile):
        prompt = build_system_prompt(_config(profile))
        assert PROFILE_INSTRUCTIONS[profile] in prompt
        assert f"Review profile: {profile.upper()}" in prompt

    def test_other_profiles_not_mixed_in(self):
        prompt = build_system_prompt(_config("security"))
        assert PROFILE_INSTRUCTIONS["performance"] not in prompt

    def test_embeds_output_contract(self):
        prompt = build_system_prompt(_config())
        for key in ('"summary"', '"overall_risk"', '"findings"', '"praise"', '"confidence"', '"suggestion"'):
            assert key in prompt
        assert '"bug" | "security" | "performance" | "maintainability" | "dx"' in prompt
        assert "valid JSON" in prompt

    def test_is_deterministic(self):
        assert build_system_prompt(_config()) == build_system_prompt(_config())


class TestUserPrompt:
    def test_diff_embedded_verbatim_after_separator(self):
        diff = "### a.py\n```diff\n+x = 1\n```"
        prompt = build_user_prompt(diff)
        assert prompt.endswith(diff)
        assert prompt.index("---") < prompt.index(diff)


class TestBuildMessages:
    def test_system_then_user(self):
        messages = build_messages(_config(), "+diff")
        assert [m.role for m in messages] == ["system", "user"]
        assert messages[1].content.endswith("+diff")
