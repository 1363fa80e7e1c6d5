"""Attempt lifecycle: start / resume, record answers, submit.

States are ``NONE → IN_PROGRESS → SUBMITTED``. Submission happens at most
once per attempt: the in-memory check, a per-attempt lock and the
repository's conditional write each reject a second submit, so a manual
submit racing the timer's auto-submit can never score twice.
"""

from __future__ import annotations

import logging
import threading
import uuid
import weakref
from typing import Callable

from examhub.core.errors import (
    AlreadySubmitted,
    AttemptNotFound,
    ExamHubError,
    ExamUnavailable,
    InvalidAnswer,
    NotAuthenticated,
)
from examhub.schemas.attempt import AnswerEntry, StudentExamAttempt
from examhub.schemas.exam import Exam
from examhub.services.grading import grade_attempt
from examhub.services.ports import ExamRepository
from examhub.services.timer import Clock, ExamTimer, utcnow

logger = logging.getLogger(__name__)


def _validate_answer(answer: object) -> None:
    if isinstance(answer, str):
        return
    if isinstance(answer, list) and all(isinstance(a, str) for a in answer):
        return
    raise InvalidAnswer(
        "Answer must be a string or a list of strings",
        answer_type=type(answer).__name__,
    )


class AttemptLocks:
    """Process-wide registry of per-attempt locks.

    Entries disappear once no thread holds a reference to the lock.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary = weakref.WeakValueDictionary()
        self._guard = threading.Lock()

    def for_attempt(self, attempt_id: uuid.UUID) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(attempt_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[attempt_id] = lock
            return lock


_submit_locks = AttemptLocks()


class AttemptService:
    """Attempt state machine over an injected :class:`ExamRepository`.

    Services are cheap and usually built per request; they share the
    process-wide submit locks unless given their own.
    """

    def __init__(
        self,
        repository: ExamRepository,
        clock: Clock | None = None,
        locks: AttemptLocks | None = None,
    ) -> None:
        self.repository = repository
        self._clock = clock or utcnow
        self._locks = locks or _submit_locks

    def _lock_for(self, attempt_id: uuid.UUID) -> threading.Lock:
        return self._locks.for_attempt(attempt_id)

    # ── Lookups ──────────────────────────────────────────────────────────

    def get_exam(self, exam_id: uuid.UUID) -> Exam:
        exam = self.repository.fetch_exam_by_id(exam_id)
        if exam is None:
            raise ExamUnavailable("Exam not found", exam_id=str(exam_id))
        return exam

    def get_attempt(self, attempt_id: uuid.UUID) -> StudentExamAttempt:
        attempt = self.repository.fetch_attempt(attempt_id)
        if attempt is None:
            raise AttemptNotFound(attempt_id=str(attempt_id))
        return attempt

    def timer_for(self, attempt: StudentExamAttempt, exam: Exam) -> ExamTimer:
        """Countdown for *attempt*; expiry routes through :meth:`auto_submit`."""
        return ExamTimer(
            started_at=attempt.started_at,
            time_limit_minutes=exam.time_limit,
            clock=self._clock,
            on_expire=lambda: self.auto_submit(attempt.id),
        )

    # ── Transitions ──────────────────────────────────────────────────────

    def start_exam(
        self, exam_id: uuid.UUID, student_id: uuid.UUID | None
    ) -> StudentExamAttempt:
        """Create an attempt, or resume the student's unsubmitted one."""
        if student_id is None:
            raise NotAuthenticated("You must be logged in to start an exam")

        exam = self.repository.fetch_exam_by_id(exam_id)
        if exam is None:
            raise ExamUnavailable("Exam not found", exam_id=str(exam_id))
        if not exam.is_active:
            raise ExamUnavailable("This exam is not currently active", exam_id=str(exam_id))

        existing = self.repository.find_open_attempt(exam_id, student_id)
        if existing is not None:
            logger.info(
                "Resuming attempt %s for student %s on exam %s",
                existing.id, student_id, exam_id,
            )
            return existing

        attempt = self.repository.create_attempt(exam_id, student_id, self._clock())
        logger.info(
            "Started attempt %s for student %s on exam %s",
            attempt.id, student_id, exam_id,
        )
        return attempt

    def record_answer(
        self,
        attempt: StudentExamAttempt,
        question_id: str,
        answer: object,
        exam: Exam | None = None,
    ) -> StudentExamAttempt:
        """Upsert ``{question_id, answer}`` into ``attempt.answers`` (last write wins)."""
        if attempt.is_submitted:
            raise AlreadySubmitted(attempt_id=str(attempt.id))
        if not question_id:
            raise InvalidAnswer("Question id is required")
        if exam is not None and exam.question_by_id(question_id) is None:
            raise InvalidAnswer(
                "Question does not belong to this exam", question_id=question_id
            )
        _validate_answer(answer)

        entry = AnswerEntry(question_id=question_id, answer=answer)
        for i, existing in enumerate(attempt.answers):
            if existing.question_id == question_id:
                attempt.answers[i] = entry
                break
        else:
            attempt.answers.append(entry)
        return attempt

    def submit_exam(
        self, attempt: StudentExamAttempt, exam: Exam
    ) -> StudentExamAttempt:
        """Score and finalize *attempt*. Raises AlreadySubmitted on a repeat."""
        with self._lock_for(attempt.id):
            if attempt.is_submitted:
                raise AlreadySubmitted(attempt_id=str(attempt.id))
            stored = self.repository.fetch_attempt(attempt.id)
            if stored is not None and stored.is_submitted:
                raise AlreadySubmitted(attempt_id=str(attempt.id))

            report = grade_attempt(exam, attempt)
            finalized = attempt.model_copy(
                update={
                    "submitted_at": self._clock(),
                    "score": report.score,
                    "earned_points": report.earned,
                    "total_points": report.total,
                    "results": report.results,
                }
            )
            self.repository.persist_submitted_attempt(finalized)

            attempt.submitted_at = finalized.submitted_at
            attempt.score = finalized.score
            attempt.earned_points = finalized.earned_points
            attempt.total_points = finalized.total_points
            attempt.results = finalized.results

        logger.info(
            "Attempt %s submitted: score %.2f, %d/%d points (exam %s)",
            attempt.id, report.score, report.earned, report.total, exam.id,
        )
        return finalized

    def auto_submit(self, attempt_id: uuid.UUID) -> StudentExamAttempt:
        """Timer-expiry submit; an already-submitted attempt is left as is."""
        attempt = self.get_attempt(attempt_id)
        exam = self.get_exam(attempt.exam_id)
        try:
            return self.submit_exam(attempt, exam)
        except AlreadySubmitted:
            logger.info("Auto-submit skipped: attempt %s already submitted", attempt_id)
            return self.get_attempt(attempt_id)

    def sweep_expired(
        self, submit: Callable[[uuid.UUID], object] | None = None
    ) -> int:
        """Auto-submit every in-progress attempt whose time is up.

        Each expired attempt id is handed to *submit* (by default
        :meth:`auto_submit`; the Celery sweep passes a function that enqueues
        the retrying task instead). A failure on one attempt is logged and
        does not stop the others.

        Returns:
            How many attempts were handed off without error.
        """
        submit = submit or self.auto_submit
        expired = self.repository.fetch_expired_open_attempts(self._clock())
        handled = 0
        for attempt in expired:
            try:
                submit(attempt.id)
            except ExamHubError as exc:
                logger.error(
                    "Auto-submit of expired attempt %s failed: %s (%s)",
                    attempt.id, exc.error_code, exc.message,
                )
                continue
            handled += 1
        if len(expired) > handled:
            logger.warning(
                "Sweep left %d of %d expired attempt(s) open",
                len(expired) - handled, len(expired),
            )
        return handled
