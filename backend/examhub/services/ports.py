"""Exam repository port (interface).

The attempt engine only touches storage through this interface; the
SQLAlchemy implementation lives in ``examhub.db.repository``.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from datetime import datetime

from examhub.schemas.attempt import StudentExamAttempt
from examhub.schemas.exam import Exam


class ExamRepository(ABC):
    """Storage for exams and attempts."""

    # ── Exams ────────────────────────────────────────────────────────────

    @abstractmethod
    def fetch_active_exams(self) -> list[Exam]:
        pass

    @abstractmethod
    def fetch_exams_owned_by(self, teacher_id: uuid.UUID) -> list[Exam]:
        pass

    @abstractmethod
    def fetch_exam_by_id(self, exam_id: uuid.UUID) -> Exam | None:
        pass

    # ── Attempts ─────────────────────────────────────────────────────────

    @abstractmethod
    def fetch_attempt(self, attempt_id: uuid.UUID) -> StudentExamAttempt | None:
        pass

    @abstractmethod
    def fetch_attempts_for_student(
        self, student_id: uuid.UUID
    ) -> list[StudentExamAttempt]:
        pass

    @abstractmethod
    def fetch_attempts_for_exam(self, exam_id: uuid.UUID) -> list[StudentExamAttempt]:
        pass

    @abstractmethod
    def find_open_attempt(
        self, exam_id: uuid.UUID, student_id: uuid.UUID
    ) -> StudentExamAttempt | None:
        """The unsubmitted attempt for ``(exam_id, student_id)``, if any."""

    @abstractmethod
    def create_attempt(
        self, exam_id: uuid.UUID, student_id: uuid.UUID, started_at: datetime
    ) -> StudentExamAttempt:
        """Insert a new in-progress attempt.

        Must never leave two unsubmitted attempts for the same student and
        exam: if one already exists it is returned instead.
        """

    @abstractmethod
    def save_answers(self, attempt: StudentExamAttempt) -> None:
        """Persist draft answers of an in-progress attempt."""

    @abstractmethod
    def persist_submitted_attempt(self, attempt: StudentExamAttempt) -> None:
        """Store answers, score and submitted_at in one conditional write.

        Raises AlreadySubmitted if the stored attempt was already submitted.
        """

    @abstractmethod
    def fetch_expired_open_attempts(self, now: datetime) -> list[StudentExamAttempt]:
        """In-progress attempts whose exam time limit has run out at *now*."""
