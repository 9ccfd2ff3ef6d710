"""
Note search: vector similarity when available, lexical tiers otherwise
"""
from __future__ import annotations

import re
from typing import List, Optional, Tuple

import numpy as np
import structlog

from studypartner.models import Note
from studypartner.services.embedding import EmbeddingProvider
from studypartner.services.store import NoteStore

logger = structlog.get_logger()

MAX_RESULTS = 10

TITLE_MATCH = 1.0
CONTENT_MATCH = 0.8
TITLE_WORDS_MATCH = 0.6
CONTENT_WORDS_MATCH = 0.4

Ranked = List[Tuple[Note, float]]


def cosine_distance(a: np.ndarray, b: np.ndarray) -> Optional[float]:
    """1 - cosine similarity; None for empty or zero vectors."""
    if a.shape != b.shape or a.size == 0:
        return None
    norm = np.linalg.norm(a) * np.linalg.norm(b)
    if norm == 0:
        return None
    return 1.0 - float(np.dot(a, b) / norm)


def words_pattern(query: str) -> re.Pattern:
    """Query words in order with anything in between, like ILIKE '%a%b%'."""
    parts = [re.escape(p) for p in query.split()]
    return re.compile(".*".join(parts), re.IGNORECASE | re.DOTALL)


def lexical_score(query: str, note: Note) -> float:
    title = note.title or ""
    content = note.content or ""
    needle = query.lower()
    if needle in title.lower():
        return TITLE_MATCH
    if needle in content.lower():
        return CONTENT_MATCH
    pattern = words_pattern(query)
    if pattern.search(title):
        return TITLE_WORDS_MATCH
    if pattern.search(content):
        return CONTENT_WORDS_MATCH
    return 0.0


class VectorSearch:
    name = "vector"

    def __init__(self, store: NoteStore, embedder: EmbeddingProvider):
        self.store = store
        self.embedder = embedder

    def rank(self, query: str, user_id: int) -> Ranked:
        # EmbeddingUnavailable propagates to the caller
        query_vec = np.asarray(self.embedder.embed(query), dtype=np.float32)
        scored = []
        for note in self.store.embedded_notes(user_id):
            distance = cosine_distance(query_vec, np.asarray(note.embedding, dtype=np.float32))
            if distance is None:
                logger.warning("note_embedding_skipped", note_id=note.id)
                continue
            scored.append((note, 1.0 - distance))
        scored.sort(key=lambda pair: pair[1], reverse=True)
        return scored[:MAX_RESULTS]


class LexicalSearch:
    name = "lexical"

    def __init__(self, store: NoteStore):
        self.store = store

    def rank(self, query: str, user_id: int) -> Ranked:
        if not query.strip():
            return []
        scored = []
        for note in self.store.list_notes(user_id):
            score = lexical_score(query, note)
            if score > 0:
                scored.append((note, score))
        scored.sort(key=lambda pair: pair[1], reverse=True)
        return scored[:MAX_RESULTS]


class SimilarityRanker:
    """Chooses vector or lexical search per call from the capability flag."""

    def __init__(self, store: NoteStore, embedder: EmbeddingProvider):
        self.vector = VectorSearch(store, embedder)
        self.lexical = LexicalSearch(store)

    def strategy(self, capability: bool):
        return self.vector if capability else self.lexical

    def rank(self, query: str, user_id: int, capability: bool) -> Ranked:
        strategy = self.strategy(capability)
        results = strategy.rank(query, user_id)
        logger.info("notes_ranked", strategy=strategy.name, results=len(results))
        return results
