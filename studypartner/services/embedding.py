from __future__ import annotations

import os
from numbers import Real
from typing import List

import structlog

from studypartner.services.backends import huggingface_url, post_inputs
from studypartner.services.errors import BackendFailure, EmbeddingUnavailable
from studypartner.services.monitoring import EMBEDDING_REQUESTS

logger = structlog.get_logger()

MAX_EMBEDDING_INPUT = 512
DEFAULT_EMBEDDING_MODEL = "sentence-transformers/all-MiniLM-L6-v2"


def embedding_dimension() -> int:
    return int(os.getenv("EMBEDDING_DIM", "384"))


class EmbeddingProvider:
    """Maps text to a fixed-size vector with one backend call. No local fallback."""

    def __init__(self, model: str | None = None, dimension: int | None = None):
        self.model = model or os.getenv("EMBEDDING_MODEL", DEFAULT_EMBEDDING_MODEL)
        self.dimension = dimension or embedding_dimension()

    def embed(self, text: str) -> List[float]:
        # Plain character cut, no sentence awareness
        text = (text or "")[:MAX_EMBEDDING_INPUT]
        try:
            data = post_inputs(self.model, huggingface_url(self.model), text)
        except BackendFailure as e:
            EMBEDDING_REQUESTS.labels(status="error").inc()
            logger.error("embedding_failed", model=self.model, error=str(e))
            raise EmbeddingUnavailable(f"Failed to generate embedding: {e}") from e

        vector = self._validate(data)
        EMBEDDING_REQUESTS.labels(status="success").inc()
        return vector

    def _validate(self, data) -> List[float]:
        problem = None
        if not isinstance(data, list) or not data:
            problem = "response is not a numeric array"
        elif not all(isinstance(v, Real) and not isinstance(v, bool) for v in data):
            problem = "response is not a flat numeric array"
        elif len(data) != self.dimension:
            problem = f"expected {self.dimension} dimensions, got {len(data)}"
        if problem:
            EMBEDDING_REQUESTS.labels(status="error").inc()
            logger.error("embedding_failed", model=self.model, error=problem)
            raise EmbeddingUnavailable(f"Failed to generate embedding: {problem}")
        return [float(v) for v in data]
