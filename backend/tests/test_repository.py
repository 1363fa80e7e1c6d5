"""Tests for the SQLAlchemy exam repository against SQLite."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.orm import Session

from conftest import SCENARIO_QUESTIONS, FakeClock
from examhub.core.errors import AlreadySubmitted, AttemptNotFound
from examhub.db.models import RoleEnum, User
from examhub.db.repository import SqlAlchemyExamRepository
from examhub.schemas.exam import ExamCreate
from examhub.services.attempts import AttemptLocks, AttemptService


NOW = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


def _user(db: Session, role: RoleEnum) -> User:
    user = User(
        email=f"{role.value}_{uuid.uuid4().hex[:8]}@ex.com",
        hashed_password="x",
        name=f"Test {role.value}",
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def repo(db: Session) -> SqlAlchemyExamRepository:
    return SqlAlchemyExamRepository(db)


@pytest.fixture
def teacher(db: Session) -> User:
    return _user(db, RoleEnum.TEACHER)


@pytest.fixture
def student(db: Session) -> User:
    return _user(db, RoleEnum.STUDENT)


def _exam(repo, teacher, **overrides):
    data = {"title": "Repo exam", "is_active": True, "questions": SCENARIO_QUESTIONS}
    data.update(overrides)
    return repo.create_exam(teacher.id, ExamCreate(**data))


def test_exam_round_trips_tagged_questions(repo, teacher):
    exam = _exam(repo, teacher, time_limit=20)
    loaded = repo.fetch_exam_by_id(exam.id)
    assert [q.type for q in loaded.questions] == ["multiple_choice", "multiple_choice", "short_answer"]
    assert loaded.questions[1].correct_answer == ["X", "Y"]
    assert loaded.time_limit == 20
    assert loaded.total_points == 6


def test_active_and_owned_listings(repo, teacher):
    active = _exam(repo, teacher)
    hidden = _exam(repo, teacher, is_active=False)

    active_ids = {e.id for e in repo.fetch_active_exams()}
    assert active.id in active_ids
    assert hidden.id not in active_ids
    assert {e.id for e in repo.fetch_exams_owned_by(teacher.id)} == {active.id, hidden.id}


def test_create_attempt_reuses_open_attempt(repo, teacher, student):
    exam = _exam(repo, teacher)
    first = repo.create_attempt(exam.id, student.id, NOW)
    second = repo.create_attempt(exam.id, student.id, NOW + timedelta(minutes=1))
    assert second.id == first.id
    assert repo.find_open_attempt(exam.id, student.id).id == first.id


def test_started_at_comes_back_timezone_aware(repo, teacher, student):
    exam = _exam(repo, teacher)
    attempt = repo.create_attempt(exam.id, student.id, NOW)
    assert repo.fetch_attempt(attempt.id).started_at == NOW


def test_persist_submitted_is_conditional(repo, teacher, student):
    exam = _exam(repo, teacher)
    attempt = repo.create_attempt(exam.id, student.id, NOW)

    first = attempt.model_copy(update={"submitted_at": NOW + timedelta(minutes=5), "score": 0.5})
    repo.persist_submitted_attempt(first)

    second = attempt.model_copy(update={"submitted_at": NOW + timedelta(minutes=6), "score": 1.0})
    with pytest.raises(AlreadySubmitted):
        repo.persist_submitted_attempt(second)

    stored = repo.fetch_attempt(attempt.id)
    assert stored.score == 0.5
    assert stored.submitted_at == NOW + timedelta(minutes=5)
    assert repo.find_open_attempt(exam.id, student.id) is None


def test_save_answers_rejected_after_submit(repo, teacher, student):
    exam = _exam(repo, teacher)
    attempt = repo.create_attempt(exam.id, student.id, NOW)
    repo.persist_submitted_attempt(attempt.model_copy(update={"submitted_at": NOW, "score": 0.0}))
    with pytest.raises(AlreadySubmitted):
        repo.save_answers(attempt)


def test_save_answers_unknown_attempt(repo, teacher, student):
    exam = _exam(repo, teacher)
    ghost = repo.create_attempt(exam.id, student.id, NOW).model_copy(update={"id": uuid.uuid4()})
    with pytest.raises(AttemptNotFound):
        repo.save_answers(ghost)


def test_expired_open_attempts(repo, teacher, db):
    timed = _exam(repo, teacher, time_limit=10)
    untimed = _exam(repo, teacher)
    late = _user(db, RoleEnum.STUDENT)
    early = _user(db, RoleEnum.STUDENT)

    expired = repo.create_attempt(timed.id, late.id, NOW - timedelta(minutes=11))
    running = repo.create_attempt(timed.id, early.id, NOW - timedelta(minutes=2))
    repo.create_attempt(untimed.id, late.id, NOW - timedelta(days=1))

    ids = {a.id for a in repo.fetch_expired_open_attempts(NOW)}
    assert expired.id in ids
    assert running.id not in ids


def test_service_flow_over_sqlalchemy(repo, teacher, student):
    exam = _exam(repo, teacher)
    service = AttemptService(repo, clock=FakeClock(NOW), locks=AttemptLocks())

    attempt = service.start_exam(exam.id, student.id)
    assert service.start_exam(exam.id, student.id).id == attempt.id

    service.record_answer(attempt, "mc1", "B", exam=exam)
    service.record_answer(attempt, "mc2", ["Y", "X"], exam=exam)
    repo.save_answers(attempt)

    resumed = service.start_exam(exam.id, student.id)
    assert resumed.answer_for("mc2") == ["Y", "X"]

    service.record_answer(resumed, "sa1", "cat", exam=exam)
    finalized = service.submit_exam(resumed, exam)
    assert finalized.score == 1.0
    stored = repo.fetch_attempt(attempt.id)
    assert (stored.earned_points, stored.total_points) == (6, 6)
    assert [r.question_id for r in stored.results] == ["mc1", "mc2", "sa1"]
    assert all(r.is_correct for r in stored.results)

    with pytest.raises(AlreadySubmitted):
        service.submit_exam(attempt, exam)
    assert repo.fetch_attempt(attempt.id).score == 1.0


def test_delete_exam_cascades_attempts(repo, teacher, student):
    exam = _exam(repo, teacher)
    attempt = repo.create_attempt(exam.id, student.id, NOW)
    assert repo.delete_exam(exam.id) is True
    assert repo.fetch_exam_by_id(exam.id) is None
    assert repo.fetch_attempt(attempt.id) is None
