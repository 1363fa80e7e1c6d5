"""Exam schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from examhub.schemas.question import PublicQuestion, Question


class ExamCreate(BaseModel):
    """POST /api/exams and PUT /api/exams/{id} — full exam definition."""

    title: str = Field(min_length=1, max_length=500)
    description: str = ""
    is_active: bool = False
    time_limit: int | None = Field(default=None, gt=0)  # minutes
    questions: list[Question] = []

    @field_validator("questions")
    @classmethod
    def _unique_question_ids(cls, questions: list) -> list:
        seen: set[str] = set()
        for q in questions:
            if q.id in seen:
                raise ValueError(f"duplicate question id: {q.id}")
            seen.add(q.id)
        return questions


class Exam(BaseModel):
    """Exam as the attempt engine sees it (questions include correct answers)."""

    id: uuid.UUID
    title: str
    description: str = ""
    created_by: uuid.UUID
    is_active: bool
    time_limit: int | None = None
    questions: list[Question] = []
    created_at: datetime

    model_config = {"from_attributes": True}

    def question_by_id(self, question_id: str):
        for q in self.questions:
            if q.id == question_id:
                return q
        return None

    @property
    def total_points(self) -> int:
        return sum(q.points for q in self.questions)


class ExamStudentRead(BaseModel):
    """Exam as returned to students — correct answers stripped."""

    id: uuid.UUID
    title: str
    description: str = ""
    is_active: bool
    time_limit: int | None = None
    questions: list[PublicQuestion] = []
    total_points: int = 0
    created_at: datetime

    @classmethod
    def from_exam(cls, exam: Exam) -> "ExamStudentRead":
        return cls(
            id=exam.id,
            title=exam.title,
            description=exam.description,
            is_active=exam.is_active,
            time_limit=exam.time_limit,
            questions=[PublicQuestion.from_question(q) for q in exam.questions],
            total_points=exam.total_points,
            created_at=exam.created_at,
        )
