"""Attempt routes: start / resume, save answers, submit, timer, review."""

import logging
import uuid

from fastapi import APIRouter, Depends, Response, status

from examhub.api.deps import get_attempt_service, get_current_user, require_student
from examhub.core.errors import AttemptNotFound
from examhub.db.models import RoleEnum, User
from examhub.schemas.attempt import (
    AnswersUpdate,
    AttemptStart,
    AttemptSubmit,
    StudentExamAttempt,
    TimerRead,
)
from examhub.services.attempts import AttemptService

logger = logging.getLogger(__name__)
router = APIRouter()


def _own_attempt(
    service: AttemptService, attempt_id: uuid.UUID, student: User
) -> StudentExamAttempt:
    attempt = service.get_attempt(attempt_id)
    if attempt.student_id != student.id:
        # Do not reveal other students' attempts exist
        raise AttemptNotFound(attempt_id=str(attempt_id))
    return attempt


@router.post("/", response_model=StudentExamAttempt, status_code=status.HTTP_201_CREATED)
def start_attempt(
    body: AttemptStart,
    response: Response,
    current_user: User = Depends(require_student),
    service: AttemptService = Depends(get_attempt_service),
):
    """Start an exam, or resume the caller's unsubmitted attempt on it."""
    resumed = service.repository.find_open_attempt(body.exam_id, current_user.id)
    attempt = service.start_exam(body.exam_id, current_user.id)
    if resumed is not None:
        response.status_code = status.HTTP_200_OK
    return attempt


@router.get("/", response_model=list[StudentExamAttempt])
def list_attempts(
    current_user: User = Depends(require_student),
    service: AttemptService = Depends(get_attempt_service),
):
    """List the current student's attempts, newest first."""
    return service.repository.fetch_attempts_for_student(current_user.id)


@router.get("/{attempt_id}", response_model=StudentExamAttempt)
def get_attempt(
    attempt_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    service: AttemptService = Depends(get_attempt_service),
):
    """Attempt with the per-question results captured when it was submitted.

    Visible to the student who owns it and to the teacher who owns the exam.
    """
    attempt = service.get_attempt(attempt_id)
    exam = service.get_exam(attempt.exam_id)

    if current_user.role == RoleEnum.TEACHER:
        allowed = exam.created_by == current_user.id
    else:
        allowed = attempt.student_id == current_user.id
    if not allowed:
        raise AttemptNotFound(attempt_id=str(attempt_id))

    return attempt


@router.put("/{attempt_id}/answers", response_model=StudentExamAttempt)
def save_answers(
    attempt_id: uuid.UUID,
    body: AnswersUpdate,
    current_user: User = Depends(require_student),
    service: AttemptService = Depends(get_attempt_service),
):
    """Record a batch of draft answers (upsert by question id)."""
    attempt = _own_attempt(service, attempt_id, current_user)
    exam = service.get_exam(attempt.exam_id)
    for entry in body.answers:
        service.record_answer(attempt, entry.question_id, entry.answer, exam=exam)
    service.repository.save_answers(attempt)
    return attempt


@router.post("/{attempt_id}/submit", response_model=StudentExamAttempt)
def submit_attempt(
    attempt_id: uuid.UUID,
    body: AttemptSubmit | None = None,
    current_user: User = Depends(require_student),
    service: AttemptService = Depends(get_attempt_service),
):
    """Apply any final answers, then score and finalize the attempt."""
    attempt = _own_attempt(service, attempt_id, current_user)
    exam = service.get_exam(attempt.exam_id)
    if body is not None and body.answers:
        for entry in body.answers:
            service.record_answer(attempt, entry.question_id, entry.answer, exam=exam)

    return service.submit_exam(attempt, exam)


@router.get("/{attempt_id}/timer", response_model=TimerRead)
def get_timer(
    attempt_id: uuid.UUID,
    current_user: User = Depends(require_student),
    service: AttemptService = Depends(get_attempt_service),
):
    """Remaining time, recomputed from the attempt's start.

    Polling an expired attempt triggers its auto-submit.
    """
    attempt = _own_attempt(service, attempt_id, current_user)
    exam = service.get_exam(attempt.exam_id)
    timer = service.timer_for(attempt, exam)

    submitted = attempt.is_submitted
    if not submitted and timer.tick():
        submitted = True

    return TimerRead(
        attempt_id=attempt.id,
        time_limit=exam.time_limit,
        remaining_seconds=timer.remaining_seconds(),
        display=timer.display(),
        expired=timer.is_expired(),
        submitted=submitted,
    )
