"""
Shared fixtures: in-memory database, stub backends and an authenticated client
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-secret")
for _var in ("OPENAI_API_KEY", "HUGGINGFACE_API_KEY", "VECTOR_SEARCH_ENABLED"):
    os.environ.pop(_var, None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from studypartner.db import get_session
from studypartner.deps import get_embedding_provider, get_generation_provider
from studypartner.main import app
from studypartner.middleware.rate_limit import limiter
from studypartner.services.backends import GenerationBackend
from studypartner.services.errors import BackendFailure, EmbeddingUnavailable
from studypartner.services.generation import GenerationProvider

limiter.enabled = False


class StubBackend(GenerationBackend):
    """Returns a canned response, or raises BackendFailure when given an exception"""

    def __init__(self, name, response=None, error=None):
        self.name = name
        self.response = response
        self.error = error
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise BackendFailure(self.name, self.error)
        return self.response


class StubEmbedder:
    """Deterministic embeddings keyed on a few words"""

    dimension = 3
    VOCAB = ("cat", "dog", "fish")

    def __init__(self, fail=False):
        self.fail = fail
        self.calls = []

    def embed(self, text):
        self.calls.append(text)
        if self.fail:
            raise EmbeddingUnavailable("backend down")
        lowered = text.lower()
        vec = [float(lowered.count(word)) for word in self.VOCAB]
        if not any(vec):
            vec = [0.1, 0.1, 0.1]
        return vec


@pytest.fixture
def stub_backend():
    return StubBackend


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def embedder():
    return StubEmbedder()


@pytest.fixture
def failing_embedder():
    return StubEmbedder(fail=True)


@pytest.fixture
def offline_generator():
    # No backends: every artifact comes from the heuristic stage
    return GenerationProvider(summary_backends=[], structured_backends=[])


@pytest.fixture
def client(engine, embedder, offline_generator):
    def _get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_generation_provider] = lambda: offline_generator
    app.dependency_overrides[get_embedding_provider] = lambda: embedder
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(client):
    response = client.post(
        "/auth/register",
        json={"email": "student@example.com", "password": "secret-pass", "full_name": "Test Student"},
    )
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
