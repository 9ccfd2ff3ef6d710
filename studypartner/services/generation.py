"""
Study material generation with an ordered fallback chain.

Each artifact kind runs the same chain: every configured backend is tried once,
in order, and the first output that survives sanitizing, parsing and validation
wins. When none does, the heuristic generator produces the result.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

import structlog

from studypartner.services import heuristics
from studypartner.services.backends import (
    STRUCTURED_MODELS,
    SUMMARY_MODELS,
    GenerationBackend,
    default_backends,
)
from studypartner.services.errors import BackendFailure, EmptyInput
from studypartner.services.logging import log_performance
from studypartner.services.monitoring import AI_GENERATION_REQUESTS
from studypartner.services.sanitizer import (
    ParseResult,
    parse_flashcards,
    parse_quiz,
    parse_summary,
    sanitize,
)

logger = structlog.get_logger()


SUMMARY_PROMPT = """Please provide a comprehensive summary of the following text. The summary should be clear, well-structured, and capture the main points and key concepts:

{text}

Summary:"""

FLASHCARDS_PROMPT = """Create 6-8 comprehensive educational flashcards from the following text. Each flashcard should have a clear, specific question and a detailed, accurate answer. Make questions diverse and cover different aspects of the content. Format the response as valid JSON with this exact structure:
[
  {{"question": "What is the main topic discussed?", "answer": "The main topic is..."}},
  {{"question": "What are the key concepts?", "answer": "The key concepts include..."}},
  {{"question": "How does this work?", "answer": "This works by..."}},
  {{"question": "What are the implications?", "answer": "The implications are..."}}
]

Text to create flashcards from:
{text}

Return only the JSON array, no additional text:"""

QUIZ_PROMPT = """Create 6-8 comprehensive multiple choice quiz questions from the following text. Each question should have 4 unique, plausible options with one correct answer. Make questions diverse and cover different aspects of the content. Ensure all options are different and meaningful. Format the response as valid JSON with this exact structure:
[
  {{
    "question": "What is the main topic discussed?",
    "options": ["The correct answer", "A plausible but wrong answer", "Another wrong option", "A third wrong option"],
    "answer": 0
  }}
]

Text to create quiz from:
{text}

Return only the JSON array, no additional text:"""


@dataclass(frozen=True)
class ArtifactKind:
    name: str
    prompt: str
    parse: Callable[[str], ParseResult]
    fallback: Callable[[str], object]

    def build_prompt(self, text: str) -> str:
        return self.prompt.format(text=text)


SUMMARY = ArtifactKind("summary", SUMMARY_PROMPT, parse_summary, heuristics.summarize)
FLASHCARDS = ArtifactKind("flashcards", FLASHCARDS_PROMPT, parse_flashcards, heuristics.make_flashcards)
QUIZ = ArtifactKind("quiz", QUIZ_PROMPT, parse_quiz, heuristics.make_quiz)


@dataclass
class Outcome:
    value: object
    source: str


class GenerationAttempt:
    """One link of the chain. Returns an Outcome, or None to pass to the next link."""

    source = "attempt"

    def attempt(self, kind: ArtifactKind, text: str) -> Optional[Outcome]:
        raise NotImplementedError


class BackendAttempt(GenerationAttempt):
    def __init__(self, backend: GenerationBackend):
        self.backend = backend
        self.source = backend.name

    def attempt(self, kind: ArtifactKind, text: str) -> Optional[Outcome]:
        try:
            raw = self.backend.generate(kind.build_prompt(text))
        except BackendFailure as e:
            logger.warning("generation_backend_failed", kind=kind.name, backend=self.source, error=str(e))
            return None
        except Exception:
            # generation must not fail while later links remain
            logger.exception("generation_backend_crashed", kind=kind.name, backend=self.source)
            return None
        if not isinstance(raw, str):
            logger.warning("generation_parse_failed", kind=kind.name, backend=self.source, error="no text returned")
            return None

        result = kind.parse(sanitize(raw))
        if not result.ok:
            logger.warning("generation_parse_failed", kind=kind.name, backend=self.source, error=str(result.error))
            return None
        return Outcome(result.value, self.source)


class HeuristicAttempt(GenerationAttempt):
    source = "heuristic"

    def attempt(self, kind: ArtifactKind, text: str) -> Optional[Outcome]:
        logger.info("generation_fallback_used", kind=kind.name)
        return Outcome(kind.fallback(text), self.source)


def run_chain(kind: ArtifactKind, text: str, attempts: Sequence[GenerationAttempt]) -> Outcome:
    for link in attempts:
        outcome = link.attempt(kind, text)
        if outcome is not None:
            logger.info("generation_accepted", kind=kind.name, source=outcome.source)
            AI_GENERATION_REQUESTS.labels(type=kind.name, status=outcome.source).inc()
            return outcome
    # The heuristic link always answers; reaching here means it was left out
    raise RuntimeError(f"No generation attempt produced a {kind.name}")


class GenerationProvider:
    """Produces summaries, flashcards and quizzes for note text.

    ``summary_backends`` and ``structured_backends`` default to the Hugging Face
    models (plus OpenAI when configured). Pass explicit lists to override.
    """

    def __init__(
        self,
        summary_backends: Optional[List[GenerationBackend]] = None,
        structured_backends: Optional[List[GenerationBackend]] = None,
    ):
        if summary_backends is None:
            summary_backends = default_backends(SUMMARY_MODELS)
        if structured_backends is None:
            structured_backends = default_backends(STRUCTURED_MODELS)
        self.summary_backends = list(summary_backends)
        self.structured_backends = list(structured_backends)

    def _attempts(self, backends: List[GenerationBackend]) -> List[GenerationAttempt]:
        return [BackendAttempt(b) for b in backends] + [HeuristicAttempt()]

    def _generate(self, kind: ArtifactKind, text: str, backends: List[GenerationBackend]):
        if text is None or not text.strip():
            raise EmptyInput(f"Cannot generate {kind.name} from empty content")
        return run_chain(kind, text, self._attempts(backends)).value

    @log_performance("generate_summary")
    def generate_summary(self, text: str) -> str:
        return self._generate(SUMMARY, text, self.summary_backends)

    @log_performance("generate_flashcards")
    def generate_flashcards(self, text: str) -> List[dict]:
        return self._generate(FLASHCARDS, text, self.structured_backends)

    @log_performance("generate_quiz")
    def generate_quiz(self, text: str) -> List[dict]:
        return self._generate(QUIZ, text, self.structured_backends)
