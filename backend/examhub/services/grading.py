"""Automatic grading for exam attempts.

Multiple-choice questions use exact option comparison; multi-select answers
are compared as sorted lists, so selection order does not matter but
duplicate selections do.
Short-answer questions use exact, case-sensitive string equality.
Long-answer questions are never graded automatically: they count towards
the total points but earn nothing until a teacher reviews them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from fractions import Fraction
from math import floor

from examhub.schemas.attempt import QuestionResult, StudentExamAttempt
from examhub.schemas.exam import Exam
from examhub.schemas.question import (
    AnswerValue,
    LongAnswerQuestion,
    MultipleChoiceQuestion,
    Question,
)

logger = logging.getLogger(__name__)


# ── Answer matching ───────────────────────────────────────────────────────────


def _multiple_choice_match(correct: AnswerValue, submitted: AnswerValue) -> bool:
    if isinstance(correct, list) and isinstance(submitted, list):
        # No dedup: ["A", "B", "A"] never equals ["A", "B"]
        return sorted(correct) == sorted(submitted)
    if isinstance(correct, str) and isinstance(submitted, str):
        return correct == submitted
    return False


def is_correct(question: Question, submitted: AnswerValue | None) -> bool | None:
    """Grade one submitted answer against a question's canonical answer.

    Returns:
        True / False for automatically gradeable questions, or None when the
        question needs manual review (long answers). An unanswered
        multiple-choice or short-answer question is False.
    """
    if isinstance(question, LongAnswerQuestion):
        return None

    if submitted is None:
        return False

    if isinstance(question, MultipleChoiceQuestion):
        return _multiple_choice_match(question.correct_answer, submitted)

    # Short answer: exact match, no trimming or case folding
    return isinstance(submitted, str) and submitted == question.correct_answer


# ── Scoring ───────────────────────────────────────────────────────────────────


def round_half_up(value: Fraction) -> int:
    """Round a non-negative rational to the nearest integer, .5 rounding up."""
    return floor(value + Fraction(1, 2))


def score_fraction(earned: int, total: int) -> float:
    """``earned / total`` as a fraction in [0, 1] with two decimal places."""
    if total <= 0:
        return 0.0
    percent = round_half_up(Fraction(earned * 100, total))
    return percent / 100


@dataclass
class GradeReport:
    """Full grading outcome for one attempt."""

    earned: int = 0
    total: int = 0
    results: list[QuestionResult] = field(default_factory=list)

    @property
    def score(self) -> float:
        return score_fraction(self.earned, self.total)


def grade_attempt(exam: Exam, attempt: StudentExamAttempt) -> GradeReport:
    """Grade every question of *exam* against the answers in *attempt*."""
    report = GradeReport()
    for question in exam.questions:
        submitted = attempt.answer_for(question.id)
        outcome = is_correct(question, submitted)
        earned = question.points if outcome is True else 0

        report.total += question.points
        report.earned += earned
        report.results.append(
            QuestionResult(
                question_id=question.id,
                question_type=question.type,
                points=question.points,
                earned=earned,
                submitted=submitted,
                is_correct=outcome,
            )
        )
    return report


def compute_score(exam: Exam, attempt: StudentExamAttempt) -> float:
    """Weighted score of *attempt* in [0, 1], rounded to two decimals.

    Pure and deterministic; an exam worth zero points scores 0.
    """
    return grade_attempt(exam, attempt).score
