"""
Unit tests for backend output cleanup and validation
"""
import json

import pytest

from studypartner.services.sanitizer import parse_flashcards, parse_quiz, parse_summary, sanitize


class TestSanitize:
    def test_tagged_fence(self):
        raw = 'Here you go:\n```json\n[{"question": "Q", "answer": "A"}]\n```\nEnjoy!'
        assert sanitize(raw) == '[{"question": "Q", "answer": "A"}]'

    def test_plain_fence(self):
        raw = "Sure.\n```\n[1, 2, 3]\n```"
        assert sanitize(raw) == "[1, 2, 3]"

    def test_tagged_fence_preferred_over_plain(self):
        raw = "```\nfirst\n``` then ```json\n[]\n```"
        assert sanitize(raw) == "[]"

    def test_prose_after_closing_fence(self):
        raw = '```\n[{"question": "Q", "answer": "A"}]\n```Hope this helps!'
        assert sanitize(raw) == '[{"question": "Q", "answer": "A"}]'

    def test_word_after_closing_fence_on_own_line(self):
        raw = "Cards:\n```\n[1, 2]\n```Enjoy\nmore text"
        assert sanitize(raw) == "[1, 2]"

    def test_tagged_block_after_plain_block_with_trailing_prose(self):
        raw = "```\nfirst\n```Next up:\n```json\n[3]\n```"
        assert sanitize(raw) == "[3]"

    def test_no_fence(self):
        assert sanitize("   just text \n") == "just text"

    def test_unclosed_fence_left_alone(self):
        assert sanitize("```json\n[1]") == "```json\n[1]"

    @pytest.mark.parametrize("raw", ["plain", "  [1, 2]  ", "```json\n{}\n```", ""])
    def test_idempotent(self, raw):
        once = sanitize(raw)
        assert sanitize(once) == once


class TestParseSummary:
    def test_long_enough(self):
        text = "x" * 50
        result = parse_summary(f"  {text}  ")
        assert result.ok
        assert result.value == text

    def test_too_short(self):
        result = parse_summary("x" * 49)
        assert not result.ok


class TestParseFlashcards:
    def test_valid(self):
        result = parse_flashcards(json.dumps([{"question": " Q1 ", "answer": "A1"}]))
        assert result.ok
        assert result.value == [{"question": "Q1", "answer": "A1"}]

    @pytest.mark.parametrize("payload", [
        "not json",
        "{}",
        "[]",
        '[{"question": "Q"}]',
        '[{"question": "Q", "answer": ""}]',
        '[{"question": "Q", "answer": "A"}, "stray"]',
    ])
    def test_rejected(self, payload):
        result = parse_flashcards(payload)
        assert not result.ok
        assert result.error is not None


class TestParseQuiz:
    def _item(self, **overrides):
        item = {"question": "Q?", "options": ["a", "b", "c", "d"], "answer": 2}
        item.update(overrides)
        return item

    def test_valid(self):
        result = parse_quiz(json.dumps([self._item()]))
        assert result.ok
        assert result.value[0]["answer"] == 2
        assert len(result.value[0]["options"]) == 4

    @pytest.mark.parametrize("overrides", [
        {"options": ["a", "b", "c"]},
        {"options": ["a", "b", "c", "d", "e"]},
        {"options": ["a", "b", "c", "A"]},
        {"options": ["a", "b", "c", ""]},
        {"answer": 4},
        {"answer": -1},
        {"answer": "0"},
        {"answer": True},
        {"question": ""},
    ])
    def test_rejected(self, overrides):
        assert not parse_quiz(json.dumps([self._item(**overrides)])).ok
