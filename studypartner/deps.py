"""
FastAPI dependencies wiring the pipeline to a request's database session
"""
from fastapi import Depends
from sqlmodel import Session

from studypartner.db import get_session
from studypartner.services.embedding import EmbeddingProvider
from studypartner.services.generation import GenerationProvider
from studypartner.services.store import NoteStore, SQLNoteStore
from studypartner.services.study import StudyService


def get_store(session: Session = Depends(get_session)) -> NoteStore:
    return SQLNoteStore(session)


def get_generation_provider() -> GenerationProvider:
    return GenerationProvider()


def get_embedding_provider() -> EmbeddingProvider:
    return EmbeddingProvider()


def get_study_service(
    store: NoteStore = Depends(get_store),
    generator: GenerationProvider = Depends(get_generation_provider),
    embedder: EmbeddingProvider = Depends(get_embedding_provider),
) -> StudyService:
    return StudyService(store, generator, embedder)
