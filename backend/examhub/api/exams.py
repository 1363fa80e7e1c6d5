"""Exam routes.

Teachers manage the exams they own; students only ever see active exams,
with correct answers stripped.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, Response, status

from examhub.api.deps import get_current_user, get_repository, require_teacher
from examhub.core.errors import ExamUnavailable, NotAuthorized
from examhub.db.models import RoleEnum, User
from examhub.db.repository import SqlAlchemyExamRepository
from examhub.schemas.attempt import StudentExamAttempt
from examhub.schemas.exam import Exam, ExamCreate, ExamStudentRead

logger = logging.getLogger(__name__)
router = APIRouter()


def _owned_exam(repo: SqlAlchemyExamRepository, exam_id: uuid.UUID, user: User) -> Exam:
    exam = repo.fetch_exam_by_id(exam_id)
    if exam is None:
        raise ExamUnavailable("Exam not found", exam_id=str(exam_id))
    if exam.created_by != user.id:
        raise NotAuthorized("Only the exam's owner can do that")
    return exam


@router.get("/", response_model=None)
def list_exams(
    current_user: User = Depends(get_current_user),
    repo: SqlAlchemyExamRepository = Depends(get_repository),
):
    """Teachers get their own exams; students get every active exam."""
    if current_user.role == RoleEnum.TEACHER:
        return repo.fetch_exams_owned_by(current_user.id)
    return [ExamStudentRead.from_exam(e) for e in repo.fetch_active_exams()]


@router.post("/", response_model=Exam, status_code=status.HTTP_201_CREATED)
def create_exam(
    body: ExamCreate,
    current_user: User = Depends(require_teacher),
    repo: SqlAlchemyExamRepository = Depends(get_repository),
):
    return repo.create_exam(current_user.id, body)


@router.get("/{exam_id}", response_model=None)
def get_exam(
    exam_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    repo: SqlAlchemyExamRepository = Depends(get_repository),
):
    if current_user.role == RoleEnum.TEACHER:
        return _owned_exam(repo, exam_id, current_user)

    exam = repo.fetch_exam_by_id(exam_id)
    if exam is None or not exam.is_active:
        raise ExamUnavailable(exam_id=str(exam_id))
    return ExamStudentRead.from_exam(exam)


@router.put("/{exam_id}", response_model=Exam)
def update_exam(
    exam_id: uuid.UUID,
    body: ExamCreate,
    current_user: User = Depends(require_teacher),
    repo: SqlAlchemyExamRepository = Depends(get_repository),
):
    _owned_exam(repo, exam_id, current_user)
    return repo.update_exam(exam_id, body)


@router.post("/{exam_id}/toggle-active", response_model=Exam)
def toggle_exam_active(
    exam_id: uuid.UUID,
    current_user: User = Depends(require_teacher),
    repo: SqlAlchemyExamRepository = Depends(get_repository),
):
    """Flip the exam's visibility to students."""
    exam = _owned_exam(repo, exam_id, current_user)
    return repo.set_exam_active(exam_id, not exam.is_active)


@router.delete("/{exam_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_exam(
    exam_id: uuid.UUID,
    current_user: User = Depends(require_teacher),
    repo: SqlAlchemyExamRepository = Depends(get_repository),
):
    """Delete an exam together with every attempt made on it."""
    _owned_exam(repo, exam_id, current_user)
    repo.delete_exam(exam_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{exam_id}/attempts", response_model=list[StudentExamAttempt])
def list_exam_attempts(
    exam_id: uuid.UUID,
    current_user: User = Depends(require_teacher),
    repo: SqlAlchemyExamRepository = Depends(get_repository),
):
    """Read-only view of every student's attempt on an exam the caller owns."""
    _owned_exam(repo, exam_id, current_user)
    return repo.fetch_attempts_for_exam(exam_id)
