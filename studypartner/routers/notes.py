from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from pydantic import BaseModel

from studypartner.auth import get_current_user_id
from studypartner.deps import get_store, get_study_service
from studypartner.middleware.rate_limit import search_limit, upload_limit
from studypartner.models import Note
from studypartner.services.errors import EmbeddingUnavailable, ExtractionError
from studypartner.services.extraction import SUPPORTED_KINDS, kind_from_filename
from studypartner.services.store import NoteStore
from studypartner.services.study import StudyService

router = APIRouter(prefix="/notes", tags=["notes"])


class SearchRequest(BaseModel):
    query: str


def note_to_dict(note: Note) -> dict:
    # embedding stays server side
    return {
        "id": note.id,
        "user_id": note.user_id,
        "title": note.title,
        "content": note.content,
        "file_type": note.file_type,
        "file_name": note.file_name,
        "file_size": note.file_size,
        "created_at": note.created_at,
        "updated_at": note.updated_at,
    }


@router.post("/upload", status_code=status.HTTP_201_CREATED)
@upload_limit()
def upload_note(
    request: Request,
    file: UploadFile = File(...),
    title: Optional[str] = Form(None),
    user_id: int = Depends(get_current_user_id),
    service: StudyService = Depends(get_study_service),
):
    if kind_from_filename(file.filename) not in SUPPORTED_KINDS:
        raise HTTPException(status_code=400, detail="Unsupported file type")
    content = file.file.read()
    try:
        note = service.upload_note(user_id, file.filename, content, title=title)
    except ExtractionError as e:
        raise HTTPException(status_code=400, detail=f"Failed to extract text: {e}")
    except EmbeddingUnavailable as e:
        raise HTTPException(status_code=502, detail=f"Failed to generate embedding: {e}")
    return note_to_dict(note)


@router.get("/")
def list_notes(user_id: int = Depends(get_current_user_id), store: NoteStore = Depends(get_store)):
    return [note_to_dict(n) for n in store.list_notes(user_id)]


@router.get("/{note_id}")
def get_note(note_id: int, user_id: int = Depends(get_current_user_id), store: NoteStore = Depends(get_store)):
    note = store.get_note(user_id, note_id)
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    return note_to_dict(note)


@router.delete("/{note_id}")
def delete_note(note_id: int, user_id: int = Depends(get_current_user_id), store: NoteStore = Depends(get_store)):
    if not store.delete_note(user_id, note_id):
        raise HTTPException(status_code=404, detail="Note not found")
    return {"message": "Note deleted successfully"}


@router.post("/search")
@search_limit()
def search_notes(
    request: Request,
    body: SearchRequest,
    user_id: int = Depends(get_current_user_id),
    service: StudyService = Depends(get_study_service),
):
    try:
        ranked = service.search(user_id, body.query)
    except EmbeddingUnavailable as e:
        raise HTTPException(status_code=502, detail=f"Failed to generate query embedding: {e}")
    return [{**note_to_dict(note), "similarity": score} for note, score in ranked]
