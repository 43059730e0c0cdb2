import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from uuid import uuid4

import pytest

TEST_DB_FILE = Path(tempfile.gettempdir()) / f"test_event_tasks_{uuid4().hex}.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_FILE.as_posix()}"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ALGORITHM", "HS256")
os.environ.setdefault("ACCESS_TOKEN_EXPIRE_MINUTES", "60")
os.environ.setdefault("DB_BOOTSTRAP_MODE", "off")

from event_tasks.database.base import Base  # noqa: E402
from event_tasks.database.session import SessionLocal, engine  # noqa: E402
from event_tasks.models import Assignment, Event, Task, User  # noqa: E402,F401
from event_tasks.services.store import EntityStore  # noqa: E402


@pytest.fixture(autouse=True)
def reset_database():
    engine.dispose()
    if TEST_DB_FILE.exists():
        TEST_DB_FILE.unlink()
    Base.metadata.create_all(bind=engine)
    try:
        yield
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()
        if TEST_DB_FILE.exists():
            TEST_DB_FILE.unlink()


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def store(db_session):
    return EntityStore(db_session)


def create_event(db, event_id: str = "E1", name: str = "Launch") -> Event:
    event = Event(
        id=event_id,
        name=name,
        location="Main hall",
        start_time=datetime(2025, 6, 1, 8, 0, tzinfo=timezone.utc),
        end_time=datetime(2025, 6, 1, 18, 0, tzinfo=timezone.utc),
    )
    db.add(event)
    db.commit()
    return event


def create_users(db, *user_ids: int) -> list[User]:
    users = [
        User(id=user_id, name=f"User {user_id}", email=f"user{user_id}@test.local", password="x")
        for user_id in user_ids
    ]
    db.add_all(users)
    db.commit()
    return users


def count_rows(db, model, *criteria) -> int:
    return db.query(model).filter(*criteria).count()


@pytest.fixture
def seeded(db_session):
    create_event(db_session, "E1")
    create_users(db_session, 1, 2, 3)
    return db_session
