import os

from sqlmodel import SQLModel, Session, create_engine

from studypartner import models  # noqa: F401  registers tables on SQLModel.metadata

# Prefer DATABASE_URL (e.g. Postgres with pgvector). Fallback to local SQLite.
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./studypartner.db")

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, echo=False, connect_args=connect_args)


def init_db() -> None:
    """Create all tables if they don't exist."""
    SQLModel.metadata.create_all(engine)


def get_session():
    with Session(engine) as session:
        yield session
