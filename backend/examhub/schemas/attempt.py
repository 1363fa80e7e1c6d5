"""Attempt schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel

from examhub.schemas.question import AnswerValue


class AnswerEntry(BaseModel):
    """One recorded answer, keyed by question id."""

    question_id: str
    answer: AnswerValue


class QuestionResult(BaseModel):
    """Per-question outcome; ``is_correct`` is None for manually graded questions."""

    question_id: str
    question_type: str
    points: int
    earned: int
    submitted: AnswerValue | None = None
    is_correct: bool | None = None


class StudentExamAttempt(BaseModel):
    """A student's attempt — the object the attempt state machine works on.

    The grading outcome (score, earned/total points, per-question results) is
    captured once at submission and never recomputed, so later edits to the
    exam cannot change a submitted attempt.
    """

    id: uuid.UUID
    exam_id: uuid.UUID
    student_id: uuid.UUID
    answers: list[AnswerEntry] = []
    started_at: datetime
    submitted_at: datetime | None = None
    score: float | None = None
    earned_points: int | None = None
    total_points: int | None = None
    results: list[QuestionResult] = []

    model_config = {"from_attributes": True}

    @property
    def is_submitted(self) -> bool:
        return self.submitted_at is not None

    def answer_for(self, question_id: str) -> AnswerValue | None:
        for entry in self.answers:
            if entry.question_id == question_id:
                return entry.answer
        return None


class AttemptStart(BaseModel):
    """POST /api/attempts — start or resume an attempt."""

    exam_id: uuid.UUID


class AnswersUpdate(BaseModel):
    """PUT /api/attempts/{id}/answers — batch of draft answers."""

    answers: list[AnswerEntry]


class AttemptSubmit(BaseModel):
    """POST /api/attempts/{id}/submit — optional final answers flushed before scoring."""

    answers: list[AnswerEntry] | None = None


class TimerRead(BaseModel):
    """GET /api/attempts/{id}/timer"""

    attempt_id: uuid.UUID
    time_limit: int | None = None
    remaining_seconds: int | None = None
    display: str | None = None
    expired: bool = False
    submitted: bool = False
