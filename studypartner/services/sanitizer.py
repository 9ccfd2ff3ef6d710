"""
Cleanup and validation of free-form backend output
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, List, Optional

from studypartner.services.errors import ParseFailure

FENCE = "```"
# a tag runs to the end of its line
TAGGED_FENCE = re.compile(r"```[A-Za-z0-9_+.-]+[ \t]*\r?\n")

MIN_SUMMARY_LENGTH = 50
QUIZ_OPTION_COUNT = 4


def _tagged_opener(text: str) -> Optional[int]:
    """End offset of the first language-tagged opening fence, if any.

    Fences pair up from the start of the text, so only every other marker can
    open a block. A closing fence followed by prose is never an opener.
    """
    position = 0
    index = 0
    while True:
        position = text.find(FENCE, position)
        if position == -1:
            return None
        if index % 2 == 0:
            tagged = TAGGED_FENCE.match(text, position)
            if tagged:
                return tagged.end()
        index += 1
        position += len(FENCE)


def sanitize(raw: str) -> str:
    """Return the payload inside the first fenced block, or the trimmed text.

    A language-tagged fence (```json) wins over a plain one. An opening fence
    without a closing one leaves the text as is.
    """
    text = (raw or "").strip()
    start = _tagged_opener(text)
    if start is None:
        if FENCE not in text:
            return text
        start = text.index(FENCE) + len(FENCE)
    end = text.find(FENCE, start)
    if end == -1:
        return text
    return text[start:end].strip()


@dataclass
class ParseResult:
    """Either a validated artifact or the reason it was rejected."""

    value: Any = None
    error: Optional[ParseFailure] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def accepted(cls, value: Any) -> "ParseResult":
        return cls(value=value)

    @classmethod
    def rejected(cls, message: str) -> "ParseResult":
        return cls(error=ParseFailure(message))


def parse_summary(payload: str) -> ParseResult:
    summary = (payload or "").strip()
    if len(summary) < MIN_SUMMARY_LENGTH:
        return ParseResult.rejected(f"summary shorter than {MIN_SUMMARY_LENGTH} characters")
    return ParseResult.accepted(summary)


def _load_array(payload: str) -> ParseResult:
    try:
        data = json.loads(payload)
    except (TypeError, ValueError) as e:
        return ParseResult.rejected(f"invalid JSON: {e}")
    if not isinstance(data, list):
        return ParseResult.rejected("expected a JSON array")
    if not data:
        return ParseResult.rejected("empty array")
    return ParseResult.accepted(data)


def _text_field(item: dict, key: str) -> Optional[str]:
    value = item.get(key)
    if not isinstance(value, str) or not value.strip():
        return None
    return value.strip()


def parse_flashcards(payload: str) -> ParseResult:
    loaded = _load_array(payload)
    if not loaded.ok:
        return loaded
    cards: List[dict] = []
    for index, item in enumerate(loaded.value):
        if not isinstance(item, dict):
            return ParseResult.rejected(f"card {index} is not an object")
        question = _text_field(item, "question")
        answer = _text_field(item, "answer")
        if question is None or answer is None:
            return ParseResult.rejected(f"card {index} needs a question and an answer")
        cards.append({"question": question, "answer": answer})
    return ParseResult.accepted(cards)


def parse_quiz(payload: str) -> ParseResult:
    loaded = _load_array(payload)
    if not loaded.ok:
        return loaded
    questions: List[dict] = []
    for index, item in enumerate(loaded.value):
        if not isinstance(item, dict):
            return ParseResult.rejected(f"question {index} is not an object")
        question = _text_field(item, "question")
        if question is None:
            return ParseResult.rejected(f"question {index} has no text")

        options = item.get("options")
        if not isinstance(options, list) or len(options) != QUIZ_OPTION_COUNT:
            return ParseResult.rejected(f"question {index} needs exactly {QUIZ_OPTION_COUNT} options")
        if not all(isinstance(o, str) and o.strip() for o in options):
            return ParseResult.rejected(f"question {index} has a blank option")
        options = [o.strip() for o in options]
        if len({o.lower() for o in options}) != QUIZ_OPTION_COUNT:
            return ParseResult.rejected(f"question {index} repeats an option")

        answer = item.get("answer")
        # bool is an int subclass
        if isinstance(answer, bool) or not isinstance(answer, int):
            return ParseResult.rejected(f"question {index} answer is not an index")
        if not 0 <= answer < QUIZ_OPTION_COUNT:
            return ParseResult.rejected(f"question {index} answer out of range")

        questions.append({"question": question, "options": options, "answer": answer})
    return ParseResult.accepted(questions)
