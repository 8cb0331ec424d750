"""Tests for tolerant model JSON parsing."""

from voicescreen.core.model_json import parse_model_json, strip_code_fences


class TestStripCodeFences:
    def test_removes_json_fence(self):
        assert strip_code_fences('```json\n{"score": 8}\n```') == '{"score": 8}'

    def test_plain_text_untouched(self):
        assert strip_code_fences("  just text ") == "just text"


class TestParseModelJson:
    def test_fenced_object(self):
        text = '```json\n{"score": 8, "feedback": "good"}\n```'
        assert parse_model_json(text, None) == {"score": 8, "feedback": "good"}

    def test_object_embedded_in_prose(self):
        text = 'Here you go: {"score": 4, "feedback": "thin"} Hope that helps.'
        assert parse_model_json(text, None) == {"score": 4, "feedback": "thin"}

    def test_not_json_returns_default(self):
        default = {"score": 0, "feedback": ""}
        assert parse_model_json("not json", default) is default

    def test_empty_returns_default(self):
        assert parse_model_json("", "fallback") == "fallback"
        assert parse_model_json(None, "fallback") == "fallback"

    def test_broken_embedded_object_returns_default(self):
        assert parse_model_json("{score: eight}", {}) == {}
