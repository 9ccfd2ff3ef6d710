"""
Persistence interface for notes and their study material
"""
from __future__ import annotations

import os
from abc import ABC, abstractmethod
from typing import List, Optional

import structlog
from sqlalchemy import delete, text
from sqlmodel import Session, select

from studypartner.models import Flashcard, Note, QuizQuestion, StudySession, Summary, utc_now

logger = structlog.get_logger()

STUDY_SESSION_TYPES = ("flashcard", "quiz", "summary")


class NoteStore(ABC):
    """Everything the pipeline needs from storage.

    Scoping a note to its owner is the store's job; callers pass the user id
    and get ``None``/``False`` back for notes they do not own.
    """

    @abstractmethod
    def vector_capability_available(self) -> bool: ...

    @abstractmethod
    def create_note(self, user_id: int, title: str, content: str, file_type: str,
                    file_name: str, file_size: int, embedding: Optional[List[float]] = None) -> Note: ...

    @abstractmethod
    def list_notes(self, user_id: int) -> List[Note]: ...

    @abstractmethod
    def get_note(self, user_id: int, note_id: int) -> Optional[Note]: ...

    @abstractmethod
    def delete_note(self, user_id: int, note_id: int) -> bool: ...

    @abstractmethod
    def embedded_notes(self, user_id: int) -> List[Note]: ...

    @abstractmethod
    def get_summary(self, note_id: int) -> Optional[Summary]: ...

    @abstractmethod
    def upsert_summary(self, note_id: int, content: str) -> Summary: ...

    @abstractmethod
    def list_flashcards(self, note_id: int) -> List[Flashcard]: ...

    @abstractmethod
    def replace_flashcards(self, note_id: int, cards: List[dict]) -> List[Flashcard]: ...

    @abstractmethod
    def list_quiz(self, note_id: int) -> List[QuizQuestion]: ...

    @abstractmethod
    def replace_quiz(self, note_id: int, questions: List[dict]) -> List[QuizQuestion]: ...

    @abstractmethod
    def create_study_session(self, user_id: int, note_id: int, kind: str) -> StudySession: ...

    @abstractmethod
    def update_study_session(self, user_id: int, session_id: int, score: Optional[int],
                             completed: bool) -> Optional[StudySession]: ...


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes", "on")


class SQLNoteStore(NoteStore):
    def __init__(self, session: Session):
        self.session = session

    # ----------------- capability -----------------
    def vector_capability_available(self) -> bool:
        bind = self.session.get_bind()
        if bind.dialect.name != "postgresql":
            return _env_flag("VECTOR_SEARCH_ENABLED")
        try:
            row = self.session.exec(
                text("SELECT EXISTS(SELECT 1 FROM pg_extension WHERE extname = 'vector')")
            ).first()
        except Exception as e:
            logger.warning("vector_capability_check_failed", error=str(e))
            self.session.rollback()
            return False
        return bool(row and row[0])

    # ----------------- notes -----------------
    def create_note(self, user_id, title, content, file_type, file_name, file_size, embedding=None):
        note = Note(
            user_id=user_id,
            title=title,
            content=content,
            file_type=file_type,
            file_name=file_name,
            file_size=file_size,
            embedding=embedding,
        )
        self.session.add(note)
        self.session.commit()
        self.session.refresh(note)
        return note

    def list_notes(self, user_id):
        stmt = select(Note).where(Note.user_id == user_id).order_by(Note.created_at.desc(), Note.id.desc())
        return list(self.session.exec(stmt).all())

    def get_note(self, user_id, note_id):
        return self.session.exec(select(Note).where(Note.id == note_id, Note.user_id == user_id)).first()

    def delete_note(self, user_id, note_id):
        note = self.get_note(user_id, note_id)
        if not note:
            return False
        for model in (Summary, Flashcard, QuizQuestion, StudySession):
            self.session.exec(delete(model).where(model.note_id == note.id))
        self.session.delete(note)
        self.session.commit()
        return True

    def embedded_notes(self, user_id):
        return [n for n in self.list_notes(user_id) if n.embedding]

    # ----------------- summary -----------------
    def get_summary(self, note_id):
        return self.session.exec(select(Summary).where(Summary.note_id == note_id)).first()

    def upsert_summary(self, note_id, content):
        summary = self.get_summary(note_id)
        if summary:
            summary.content = content
            summary.updated_at = utc_now()
        else:
            summary = Summary(note_id=note_id, content=content)
        self.session.add(summary)
        self.session.commit()
        self.session.refresh(summary)
        return summary

    # ----------------- flashcards / quiz -----------------
    def list_flashcards(self, note_id):
        stmt = select(Flashcard).where(Flashcard.note_id == note_id).order_by(Flashcard.position)
        return list(self.session.exec(stmt).all())

    def replace_flashcards(self, note_id, cards):
        rows = [
            Flashcard(note_id=note_id, position=i, question=c["question"], answer=c["answer"])
            for i, c in enumerate(cards)
        ]
        return self._replace(Flashcard, note_id, rows)

    def list_quiz(self, note_id):
        stmt = select(QuizQuestion).where(QuizQuestion.note_id == note_id).order_by(QuizQuestion.position)
        return list(self.session.exec(stmt).all())

    def replace_quiz(self, note_id, questions):
        rows = [
            QuizQuestion(note_id=note_id, position=i, question=q["question"],
                         options=list(q["options"]), answer=q["answer"])
            for i, q in enumerate(questions)
        ]
        return self._replace(QuizQuestion, note_id, rows)

    def _replace(self, model, note_id, rows):
        """Swap a note's rows in one transaction; nothing changes if a write fails."""
        try:
            self.session.exec(delete(model).where(model.note_id == note_id))
            self.session.add_all(rows)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        for row in rows:
            self.session.refresh(row)
        return rows

    # ----------------- study sessions -----------------
    def create_study_session(self, user_id, note_id, kind):
        study_session = StudySession(user_id=user_id, note_id=note_id, type=kind)
        self.session.add(study_session)
        self.session.commit()
        self.session.refresh(study_session)
        return study_session

    def update_study_session(self, user_id, session_id, score, completed):
        study_session = self.session.exec(
            select(StudySession).where(StudySession.id == session_id, StudySession.user_id == user_id)
        ).first()
        if not study_session:
            return None
        study_session.score = score
        study_session.completed = completed
        self.session.add(study_session)
        self.session.commit()
        self.session.refresh(study_session)
        return study_session
