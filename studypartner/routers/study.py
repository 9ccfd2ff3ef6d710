from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel

from studypartner.auth import get_current_user_id
from studypartner.deps import get_store, get_study_service
from studypartner.middleware.rate_limit import generation_limit
from studypartner.models import Note
from studypartner.services.errors import EmptyInput
from studypartner.services.store import STUDY_SESSION_TYPES, NoteStore
from studypartner.services.study import StudyService


router = APIRouter(prefix="/study", tags=["study"])


class StudySessionCreate(BaseModel):
    note_id: int
    type: str


class StudySessionUpdate(BaseModel):
    score: Optional[int] = None
    completed: bool = False


def _owned_note(store: NoteStore, user_id: int, note_id: int) -> Note:
    note = store.get_note(user_id, note_id)
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    return note


def _flashcard_dict(card) -> dict:
    return {"id": card.id, "note_id": card.note_id, "question": card.question,
            "answer": card.answer, "created_at": card.created_at}


def _quiz_dict(q) -> dict:
    return {"id": q.id, "note_id": q.note_id, "question": q.question,
            "options": q.options, "answer": q.answer, "created_at": q.created_at}


# ----------------- Summary -----------------
@router.get("/notes/{note_id}/summary")
def get_summary(note_id: int, user_id: int = Depends(get_current_user_id), store: NoteStore = Depends(get_store)):
    _owned_note(store, user_id, note_id)
    summary = store.get_summary(note_id)
    if not summary:
        raise HTTPException(status_code=404, detail="Summary not found")
    return summary


@router.post("/notes/{note_id}/summary")
@generation_limit()
def generate_summary(
    request: Request,
    note_id: int,
    user_id: int = Depends(get_current_user_id),
    service: StudyService = Depends(get_study_service),
):
    note = _owned_note(service.store, user_id, note_id)
    try:
        return service.generate_summary(note)
    except EmptyInput as e:
        raise HTTPException(status_code=400, detail=str(e))


# ----------------- Flashcards -----------------
@router.get("/notes/{note_id}/flashcards")
def get_flashcards(note_id: int, user_id: int = Depends(get_current_user_id), store: NoteStore = Depends(get_store)):
    _owned_note(store, user_id, note_id)
    return [_flashcard_dict(c) for c in store.list_flashcards(note_id)]


@router.post("/notes/{note_id}/flashcards")
@generation_limit()
def generate_flashcards(
    request: Request,
    note_id: int,
    user_id: int = Depends(get_current_user_id),
    service: StudyService = Depends(get_study_service),
):
    note = _owned_note(service.store, user_id, note_id)
    try:
        cards = service.generate_flashcards(note)
    except EmptyInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    return [_flashcard_dict(c) for c in cards]


# ----------------- Quiz -----------------
@router.get("/notes/{note_id}/quiz")
def get_quiz(note_id: int, user_id: int = Depends(get_current_user_id), store: NoteStore = Depends(get_store)):
    _owned_note(store, user_id, note_id)
    return [_quiz_dict(q) for q in store.list_quiz(note_id)]


@router.post("/notes/{note_id}/quiz")
@generation_limit()
def generate_quiz(
    request: Request,
    note_id: int,
    user_id: int = Depends(get_current_user_id),
    service: StudyService = Depends(get_study_service),
):
    note = _owned_note(service.store, user_id, note_id)
    try:
        questions = service.generate_quiz(note)
    except EmptyInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    return [_quiz_dict(q) for q in questions]


# ----------------- Study sessions -----------------
@router.post("/sessions", status_code=status.HTTP_201_CREATED)
def create_study_session(
    body: StudySessionCreate,
    user_id: int = Depends(get_current_user_id),
    store: NoteStore = Depends(get_store),
):
    if body.type not in STUDY_SESSION_TYPES:
        raise HTTPException(status_code=400, detail=f"type must be one of {', '.join(STUDY_SESSION_TYPES)}")
    _owned_note(store, user_id, body.note_id)
    return store.create_study_session(user_id, body.note_id, body.type)


@router.put("/sessions/{session_id}")
def update_study_session(
    session_id: int,
    body: StudySessionUpdate,
    user_id: int = Depends(get_current_user_id),
    store: NoteStore = Depends(get_store),
):
    study_session = store.update_study_session(user_id, session_id, body.score, body.completed)
    if not study_session:
        raise HTTPException(status_code=404, detail="Study session not found")
    return study_session
