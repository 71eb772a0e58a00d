"""
Tests for explain-code prompt preparation and answer parsing.
"""

import json

import pytest

from service_playground.app.explain.prompt import build_prompt, parse_explanation, preprocess_code
from shared.errors import ValidationError
from shared.test_helpers import SAMPLE_EXPLANATION


class TestPreprocessCode:

    def test_strips_and_collapses_blank_lines(self):
        code = "\n\nimport os\n\n\n   \nprint(os.name)\n\n"
        assert preprocess_code(code, 5000) == "import os\nprint(os.name)"

    def test_limit_applies_after_cleanup(self):
        code = "a\n\n\n\nb"
        assert preprocess_code(code, 3) == "a\nb"

    def test_too_long(self):
        with pytest.raises(ValidationError) as exc_info:
            preprocess_code("x" * 11, 10)
        assert exc_info.value.message == "Code too long (>10 chars)"

    @pytest.mark.parametrize("code", [None, "", 42, ["print(1)"]])
    def test_not_code(self, code):
        with pytest.raises(ValidationError) as exc_info:
            preprocess_code(code, 5000)
        assert exc_info.value.message == "No valid code provided"


class TestBuildPrompt:

    def test_code_embedded_between_markers(self):
        prompt = build_prompt("def f():\n    return {1: 2}")
        assert "---\ndef f():\n    return {1: 2}\n---" in prompt

    def test_schema_braces_survive_formatting(self):
        prompt = build_prompt("pass")
        assert '"blocks": [' in prompt
        assert "id{{Label}}" not in prompt
        assert "id{Label}" in prompt


class TestParseExplanation:

    def test_plain_json(self):
        assert parse_explanation(json.dumps(SAMPLE_EXPLANATION)) == SAMPLE_EXPLANATION

    @pytest.mark.parametrize("fence", ["```json", "```"])
    def test_fenced_json(self, fence):
        text = f"{fence}\n{json.dumps(SAMPLE_EXPLANATION)}\n```"
        assert parse_explanation(text) == SAMPLE_EXPLANATION

    @pytest.mark.parametrize("text", [
        "not json",
        json.dumps(["blocks"]),
        json.dumps({"language": "python"}),
        json.dumps({"blocks": "none"}),
    ])
    def test_rejects_unexpected_shapes(self, text):
        with pytest.raises(ValueError):
            parse_explanation(text)
