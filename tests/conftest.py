"""Shared fixtures: an in-memory database per test and an API client bound to it."""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ADMIN_EMAILS"] = '["admin@example.com"]'
os.environ["TEACHER_EMAILS"] = '{"bardia@example.com": "bardia"}'

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from lessonbook.db import Base, get_db
from lessonbook.main import app
from lessonbook.store import STUDENTS, ScheduleStore

ADMIN = {"X-User-Email": "admin@example.com"}
TEACHER = {"X-User-Email": "bardia@example.com"}


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store(db):
    return ScheduleStore(db)


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def seed_student(store):
    def _seed(student_id="s1", current_session=0, total_sessions=8, **extra):
        students, version = store.get(STUDENTS)
        students.append({
            "id": student_id,
            "name": extra.pop("name", f"Student {student_id}"),
            "totalSessions": total_sessions,
            "currentSession": current_session,
            "hasPaid": False,
            "makeupLessons": 0,
            **extra,
        })
        store.set(STUDENTS, students, version)

    return _seed
