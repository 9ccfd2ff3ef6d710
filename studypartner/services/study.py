"""
Note pipeline: upload, study material generation and search
"""
from __future__ import annotations

from typing import List, Optional

import structlog

from studypartner.models import Flashcard, Note, QuizQuestion, Summary
from studypartner.services.embedding import EmbeddingProvider
from studypartner.services.errors import EmptyInput
from studypartner.services.extraction import extract, kind_from_filename
from studypartner.services.generation import GenerationProvider
from studypartner.services.logging import log_performance
from studypartner.services.ranking import Ranked, SimilarityRanker
from studypartner.services.store import NoteStore

logger = structlog.get_logger()


class StudyService:
    def __init__(
        self,
        store: NoteStore,
        generator: GenerationProvider,
        embedder: EmbeddingProvider,
        ranker: Optional[SimilarityRanker] = None,
    ):
        self.store = store
        self.generator = generator
        self.embedder = embedder
        self.ranker = ranker or SimilarityRanker(store, embedder)

    @log_performance("upload_note")
    def upload_note(self, user_id: int, file_name: str, data: bytes, title: Optional[str] = None) -> Note:
        """Extract text, embed it when vector search is available, store the note.

        Extraction and embedding errors propagate; nothing is stored in that case.
        """
        kind = kind_from_filename(file_name)
        content = extract(data, kind)

        embedding = None
        if self.store.vector_capability_available():
            embedding = self.embedder.embed(content)

        note = self.store.create_note(
            user_id=user_id,
            title=title or file_name,
            content=content,
            file_type=f".{kind}",
            file_name=file_name,
            file_size=len(data),
            embedding=embedding,
        )
        logger.info("note_uploaded", note_id=note.id, user_id=user_id, file_type=kind,
                    chars=len(content), embedded=embedding is not None)
        return note

    def _content(self, note: Note) -> str:
        if not note.content or not note.content.strip():
            raise EmptyInput("Note has no text content")
        return note.content

    def generate_summary(self, note: Note) -> Summary:
        summary = self.generator.generate_summary(self._content(note))
        return self.store.upsert_summary(note.id, summary)

    def generate_flashcards(self, note: Note) -> List[Flashcard]:
        cards = self.generator.generate_flashcards(self._content(note))
        return self.store.replace_flashcards(note.id, cards)

    def generate_quiz(self, note: Note) -> List[QuizQuestion]:
        questions = self.generator.generate_quiz(self._content(note))
        return self.store.replace_quiz(note.id, questions)

    def search(self, user_id: int, query: str) -> Ranked:
        # read fresh on every call
        capability = self.store.vector_capability_available()
        return self.ranker.rank(query, user_id, capability)
