"""Shared pytest fixtures for backend tests."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from examhub.core.errors import AlreadySubmitted, AttemptNotFound
from examhub.db import models  # noqa: F401  (registers tables on Base.metadata)
from examhub.db.session import Base, get_db
from examhub.main import app
from examhub.schemas.attempt import StudentExamAttempt
from examhub.schemas.exam import Exam
from examhub.services.ports import ExamRepository


# Use an in-memory SQLite database for testing with static pool
SQLALCHEMY_TEST_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_TEST_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,  # Use StaticPool to keep connection alive
    echo=False,
)
TestSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)

# Create all tables once at startup
Base.metadata.create_all(bind=engine)


@pytest.fixture(scope="function")
def db():
    """Get a fresh DB session for each test."""
    session = TestSession()
    try:
        yield session
    finally:
        session.rollback()  # Rollback changes after each test
        session.close()


@pytest.fixture(scope="function")
def client(db: Session):
    """FastAPI test client with overridden DB dependency."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    # Remove TrustedHostMiddleware for tests to allow 'testserver' host
    app.user_middleware = [m for m in app.user_middleware if "TrustedHost" not in str(m)]

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ── Engine-level helpers (no database) ────────────────────────────────────────


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class InMemoryExamRepository(ExamRepository):
    """Dict-backed repository; stores copies so callers cannot mutate storage."""

    def __init__(self):
        self.exams: dict[uuid.UUID, Exam] = {}
        self.attempts: dict[uuid.UUID, StudentExamAttempt] = {}
        self.submit_writes = 0

    def add_exam(self, exam: Exam) -> Exam:
        self.exams[exam.id] = exam
        return exam

    def fetch_active_exams(self):
        return [e for e in self.exams.values() if e.is_active]

    def fetch_exams_owned_by(self, teacher_id):
        return [e for e in self.exams.values() if e.created_by == teacher_id]

    def fetch_exam_by_id(self, exam_id):
        return self.exams.get(exam_id)

    def fetch_attempt(self, attempt_id):
        stored = self.attempts.get(attempt_id)
        return stored.model_copy(deep=True) if stored else None

    def fetch_attempts_for_student(self, student_id):
        return [a.model_copy(deep=True) for a in self.attempts.values() if a.student_id == student_id]

    def fetch_attempts_for_exam(self, exam_id):
        return [a.model_copy(deep=True) for a in self.attempts.values() if a.exam_id == exam_id]

    def find_open_attempt(self, exam_id, student_id):
        for a in self.attempts.values():
            if a.exam_id == exam_id and a.student_id == student_id and not a.is_submitted:
                return a.model_copy(deep=True)
        return None

    def create_attempt(self, exam_id, student_id, started_at):
        existing = self.find_open_attempt(exam_id, student_id)
        if existing is not None:
            return existing
        attempt = StudentExamAttempt(
            id=uuid.uuid4(), exam_id=exam_id, student_id=student_id, started_at=started_at
        )
        self.attempts[attempt.id] = attempt
        return attempt.model_copy(deep=True)

    def save_answers(self, attempt):
        stored = self._stored(attempt.id)
        if stored.is_submitted:
            raise AlreadySubmitted()
        stored.answers = [e.model_copy() for e in attempt.answers]

    def persist_submitted_attempt(self, attempt):
        stored = self._stored(attempt.id)
        if stored.is_submitted:
            raise AlreadySubmitted()
        self.submit_writes += 1
        self.attempts[attempt.id] = attempt.model_copy(deep=True)

    def fetch_expired_open_attempts(self, now):
        expired = []
        for a in self.attempts.values():
            exam = self.exams.get(a.exam_id)
            if a.is_submitted or exam is None or not exam.time_limit:
                continue
            if a.started_at + timedelta(minutes=exam.time_limit) <= now:
                expired.append(a.model_copy(deep=True))
        return expired

    def _stored(self, attempt_id):
        stored = self.attempts.get(attempt_id)
        if stored is None:
            raise AttemptNotFound()
        return stored


def make_exam(questions: list[dict], **overrides) -> Exam:
    """Build a domain Exam from plain question dicts."""
    data = {
        "id": uuid.uuid4(),
        "title": "Test exam",
        "description": "",
        "created_by": uuid.uuid4(),
        "is_active": True,
        "time_limit": None,
        "questions": questions,
        "created_at": datetime(2024, 4, 30, tzinfo=timezone.utc),
    }
    data.update(overrides)
    return Exam.model_validate(data)


def make_attempt(exam: Exam, answers: dict | None = None) -> StudentExamAttempt:
    """Unsubmitted attempt on *exam* with ``{question_id: answer}`` answers."""
    return StudentExamAttempt(
        id=uuid.uuid4(),
        exam_id=exam.id,
        student_id=uuid.uuid4(),
        answers=[{"question_id": q, "answer": a} for q, a in (answers or {}).items()],
        started_at=datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc),
    )


SCENARIO_QUESTIONS = [
    {
        "id": "mc1",
        "type": "multiple_choice",
        "question": "Pick B",
        "options": ["A", "B", "C"],
        "correct_answer": "B",
        "points": 2,
    },
    {
        "id": "mc2",
        "type": "multiple_choice",
        "question": "Pick X and Y",
        "options": ["X", "Y", "Z"],
        "correct_answer": ["X", "Y"],
        "points": 3,
    },
    {
        "id": "sa1",
        "type": "short_answer",
        "question": "Small domestic feline?",
        "correct_answer": "cat",
        "points": 1,
    },
]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_repo() -> InMemoryExamRepository:
    return InMemoryExamRepository()


@pytest.fixture
def scenario_exam() -> Exam:
    return make_exam(SCENARIO_QUESTIONS)
