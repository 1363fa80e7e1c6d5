"""Question schemas — a tagged union keyed by ``type``.

Each variant only carries the fields it needs, so a short-answer question
can never hold an ``options`` list and a long answer never has a
``correct_answer``.
"""

import uuid
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, model_validator

AnswerValue = str | list[str]


def _short_id() -> str:
    return uuid.uuid4().hex[:8]


class _QuestionBase(BaseModel):
    id: str = Field(default_factory=_short_id, min_length=1)
    question: str
    points: int = Field(default=1, ge=0)

    model_config = {"extra": "forbid"}


class MultipleChoiceQuestion(_QuestionBase):
    """Single- or multi-select question; a list ``correct_answer`` means multi-select."""

    type: Literal["multiple_choice"] = "multiple_choice"
    options: list[str] = Field(min_length=1)
    correct_answer: AnswerValue

    @property
    def is_multi_select(self) -> bool:
        return isinstance(self.correct_answer, list)

    @model_validator(mode="after")
    def _correct_answer_in_options(self) -> "MultipleChoiceQuestion":
        if self.correct_answer == []:
            raise ValueError("a multi-select correct_answer needs at least one option")
        expected = (
            self.correct_answer
            if isinstance(self.correct_answer, list)
            else [self.correct_answer]
        )
        unknown = [a for a in expected if a not in self.options]
        if unknown:
            raise ValueError(f"correct_answer not among options: {unknown}")
        return self


class ShortAnswerQuestion(_QuestionBase):
    type: Literal["short_answer"] = "short_answer"
    correct_answer: str


class LongAnswerQuestion(_QuestionBase):
    """Free-text question, always graded by hand."""

    type: Literal["long_answer"] = "long_answer"


Question = Annotated[
    Union[MultipleChoiceQuestion, ShortAnswerQuestion, LongAnswerQuestion],
    Field(discriminator="type"),
]


class PublicQuestion(BaseModel):
    """Question as shown to a student taking the exam — no correct answer."""

    id: str
    type: Literal["multiple_choice", "short_answer", "long_answer"]
    question: str
    points: int
    options: list[str] | None = None
    multi_select: bool = False

    @classmethod
    def from_question(cls, q: "Question") -> "PublicQuestion":
        if isinstance(q, MultipleChoiceQuestion):
            return cls(
                id=q.id,
                type=q.type,
                question=q.question,
                points=q.points,
                options=list(q.options),
                multi_select=q.is_multi_select,
            )
        return cls(id=q.id, type=q.type, question=q.question, points=q.points)
