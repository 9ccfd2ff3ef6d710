"""
Unit tests for the SQL note store
"""
from datetime import timedelta

import pytest

from studypartner.models import Note, Summary, User
from studypartner.services.store import SQLNoteStore


@pytest.fixture
def store(session):
    return SQLNoteStore(session)


@pytest.fixture
def user_id(session):
    user = User(email="store@example.com", full_name="Store", hashed_password="x")
    session.add(user)
    session.commit()
    return user.id


class TestTimestamps:
    def test_defaults_are_timezone_aware(self):
        note = Note(user_id=1, title="t", content="c", file_type=".txt", file_name="t.txt")
        assert note.created_at.utcoffset() == timedelta(0)
        assert note.updated_at.utcoffset() == timedelta(0)
        assert Summary(note_id=1, content="s").created_at.utcoffset() == timedelta(0)

    def test_rows_insert(self, store, user_id):
        note = store.create_note(user_id, "Cells", "text", ".txt", "cells.txt", 4)
        assert note.id is not None
        assert note.created_at is not None


class TestArtifacts:
    def test_summary_upsert_keeps_one_row(self, store, user_id):
        note = store.create_note(user_id, "Cells", "text", ".txt", "cells.txt", 4)
        first = store.upsert_summary(note.id, "first version")
        second = store.upsert_summary(note.id, "second version")
        assert first.id == second.id
        assert store.get_summary(note.id).content == "second version"

    def test_replace_flashcards(self, store, user_id):
        note = store.create_note(user_id, "Cells", "text", ".txt", "cells.txt", 4)
        store.replace_flashcards(note.id, [{"question": "Q1", "answer": "A1"}, {"question": "Q2", "answer": "A2"}])
        store.replace_flashcards(note.id, [{"question": "Q3", "answer": "A3"}])
        assert [c.question for c in store.list_flashcards(note.id)] == ["Q3"]

    def test_delete_removes_artifacts(self, store, user_id):
        note = store.create_note(user_id, "Cells", "text", ".txt", "cells.txt", 4)
        store.upsert_summary(note.id, "summary")
        store.replace_quiz(note.id, [{"question": "Q", "options": ["a", "b", "c", "d"], "answer": 1}])
        note_id = note.id

        assert store.delete_note(user_id, note_id)
        assert store.get_summary(note_id) is None
        assert store.list_quiz(note_id) == []
        assert store.get_note(user_id, note_id) is None

    def test_vector_flag_from_env(self, store, monkeypatch):
        monkeypatch.delenv("VECTOR_SEARCH_ENABLED", raising=False)
        assert store.vector_capability_available() is False
        monkeypatch.setenv("VECTOR_SEARCH_ENABLED", "true")
        assert store.vector_capability_available() is True
