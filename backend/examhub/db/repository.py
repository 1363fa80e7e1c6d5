"""SqlAlchemyExamRepository - ExamRepository implementation.

The attempt engine never touches ORM rows: everything crossing this boundary
is converted to the pydantic domain models in ``examhub.schemas``.
"""

from __future__ import annotations

import functools
import logging
import uuid
from datetime import datetime, timedelta

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from examhub.core.errors import AlreadySubmitted, AttemptNotFound, PersistenceFailure
from examhub.db.models import Exam as ExamRow
from examhub.db.models import ExamAttempt
from examhub.schemas.attempt import StudentExamAttempt
from examhub.schemas.exam import Exam, ExamCreate
from examhub.services.ports import ExamRepository
from examhub.services.timer import as_utc

logger = logging.getLogger(__name__)


def _guarded(method):
    """Roll back and re-raise storage errors as PersistenceFailure."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Repository call %s failed", method.__name__)
            raise PersistenceFailure(operation=method.__name__) from exc

    return wrapper


def _to_exam(row: ExamRow) -> Exam:
    return Exam.model_validate(row)


def _to_attempt(row: ExamAttempt) -> StudentExamAttempt:
    return StudentExamAttempt(
        id=row.id,
        exam_id=row.exam_id,
        student_id=row.student_id,
        answers=row.answers or [],
        started_at=as_utc(row.started_at),
        submitted_at=as_utc(row.submitted_at) if row.submitted_at else None,
        score=row.score,
        earned_points=row.earned_points,
        total_points=row.total_points,
        results=row.results or [],
    )


def _dump_answers(attempt: StudentExamAttempt) -> list[dict]:
    return [entry.model_dump() for entry in attempt.answers]


class SqlAlchemyExamRepository(ExamRepository):
    """ExamRepository backed by a SQLAlchemy session (one per request)."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # ── Exams ────────────────────────────────────────────────────────────

    @_guarded
    def fetch_active_exams(self) -> list[Exam]:
        rows = (
            self.db.query(ExamRow)
            .filter(ExamRow.is_active.is_(True))
            .order_by(ExamRow.created_at.desc())
            .all()
        )
        return [_to_exam(r) for r in rows]

    @_guarded
    def fetch_exams_owned_by(self, teacher_id: uuid.UUID) -> list[Exam]:
        rows = (
            self.db.query(ExamRow)
            .filter(ExamRow.created_by == teacher_id)
            .order_by(ExamRow.created_at.desc())
            .all()
        )
        return [_to_exam(r) for r in rows]

    @_guarded
    def fetch_exam_by_id(self, exam_id: uuid.UUID) -> Exam | None:
        row = self.db.get(ExamRow, exam_id)
        return _to_exam(row) if row else None

    @_guarded
    def create_exam(self, owner_id: uuid.UUID, body: ExamCreate) -> Exam:
        row = ExamRow(
            title=body.title,
            description=body.description,
            created_by=owner_id,
            is_active=body.is_active,
            time_limit=body.time_limit,
            questions=[q.model_dump() for q in body.questions],
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        logger.info("Exam %s created by %s (%d questions)", row.id, owner_id, len(body.questions))
        return _to_exam(row)

    @_guarded
    def update_exam(self, exam_id: uuid.UUID, body: ExamCreate) -> Exam | None:
        row = self.db.get(ExamRow, exam_id)
        if row is None:
            return None
        row.title = body.title
        row.description = body.description
        row.is_active = body.is_active
        row.time_limit = body.time_limit
        row.questions = [q.model_dump() for q in body.questions]
        self.db.commit()
        self.db.refresh(row)
        return _to_exam(row)

    @_guarded
    def set_exam_active(self, exam_id: uuid.UUID, is_active: bool) -> Exam | None:
        row = self.db.get(ExamRow, exam_id)
        if row is None:
            return None
        row.is_active = is_active
        self.db.commit()
        self.db.refresh(row)
        return _to_exam(row)

    @_guarded
    def delete_exam(self, exam_id: uuid.UUID) -> bool:
        row = self.db.get(ExamRow, exam_id)
        if row is None:
            return False
        # Attempts go with the exam (cascade="all, delete-orphan")
        self.db.delete(row)
        self.db.commit()
        logger.info("Exam %s deleted", exam_id)
        return True

    # ── Attempts ─────────────────────────────────────────────────────────

    @_guarded
    def fetch_attempt(self, attempt_id: uuid.UUID) -> StudentExamAttempt | None:
        row = self.db.get(ExamAttempt, attempt_id)
        return _to_attempt(row) if row else None

    @_guarded
    def fetch_attempts_for_student(
        self, student_id: uuid.UUID
    ) -> list[StudentExamAttempt]:
        rows = (
            self.db.query(ExamAttempt)
            .filter(ExamAttempt.student_id == student_id)
            .order_by(ExamAttempt.started_at.desc())
            .all()
        )
        return [_to_attempt(r) for r in rows]

    @_guarded
    def fetch_attempts_for_exam(self, exam_id: uuid.UUID) -> list[StudentExamAttempt]:
        rows = (
            self.db.query(ExamAttempt)
            .filter(ExamAttempt.exam_id == exam_id)
            .order_by(ExamAttempt.started_at.desc())
            .all()
        )
        return [_to_attempt(r) for r in rows]

    @_guarded
    def find_open_attempt(
        self, exam_id: uuid.UUID, student_id: uuid.UUID
    ) -> StudentExamAttempt | None:
        row = (
            self.db.query(ExamAttempt)
            .filter(
                ExamAttempt.exam_id == exam_id,
                ExamAttempt.student_id == student_id,
                ExamAttempt.submitted_at.is_(None),
            )
            .first()
        )
        return _to_attempt(row) if row else None

    @_guarded
    def create_attempt(
        self, exam_id: uuid.UUID, student_id: uuid.UUID, started_at: datetime
    ) -> StudentExamAttempt:
        row = ExamAttempt(
            exam_id=exam_id,
            student_id=student_id,
            answers=[],
            started_at=started_at,
        )
        self.db.add(row)
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race against another start for the same student/exam
            self.db.rollback()
            existing = self.find_open_attempt(exam_id, student_id)
            if existing is None:
                raise
            logger.info("Concurrent start for exam %s: reusing attempt %s", exam_id, existing.id)
            return existing
        self.db.refresh(row)
        return _to_attempt(row)

    @_guarded
    def save_answers(self, attempt: StudentExamAttempt) -> None:
        result = self.db.execute(
            update(ExamAttempt)
            .where(
                ExamAttempt.id == attempt.id,
                ExamAttempt.submitted_at.is_(None),
            )
            .values(answers=_dump_answers(attempt))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            self.db.rollback()
            self._raise_for_missing_or_submitted(attempt.id)
        self.db.commit()

    @_guarded
    def persist_submitted_attempt(self, attempt: StudentExamAttempt) -> None:
        # Conditional write: only the first submit finds submitted_at still NULL
        result = self.db.execute(
            update(ExamAttempt)
            .where(
                ExamAttempt.id == attempt.id,
                ExamAttempt.submitted_at.is_(None),
            )
            .values(
                answers=_dump_answers(attempt),
                score=attempt.score,
                earned_points=attempt.earned_points,
                total_points=attempt.total_points,
                results=[r.model_dump() for r in attempt.results],
                submitted_at=attempt.submitted_at,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            self.db.rollback()
            self._raise_for_missing_or_submitted(attempt.id)
        self.db.commit()

    @_guarded
    def fetch_expired_open_attempts(self, now: datetime) -> list[StudentExamAttempt]:
        rows = (
            self.db.query(ExamAttempt, ExamRow.time_limit)
            .join(ExamRow, ExamAttempt.exam_id == ExamRow.id)
            .filter(
                ExamAttempt.submitted_at.is_(None),
                ExamRow.time_limit.is_not(None),
            )
            .all()
        )
        now = as_utc(now)
        return [
            _to_attempt(attempt)
            for attempt, time_limit in rows
            if as_utc(attempt.started_at) + timedelta(minutes=time_limit) <= now
        ]

    def _raise_for_missing_or_submitted(self, attempt_id: uuid.UUID) -> None:
        if self.db.get(ExamAttempt, attempt_id) is None:
            raise AttemptNotFound(attempt_id=str(attempt_id))
        raise AlreadySubmitted(attempt_id=str(attempt_id))
