"""Pydantic schemas — re‑exported for convenience."""

from examhub.schemas.common import ErrorResponse  # noqa: F401
from examhub.schemas.user import (  # noqa: F401
    AuthResponse,
    UserCreate,
    UserLogin,
    UserRead,
    UserUpdate,
)
from examhub.schemas.question import (  # noqa: F401
    LongAnswerQuestion,
    MultipleChoiceQuestion,
    PublicQuestion,
    Question,
    ShortAnswerQuestion,
)
from examhub.schemas.exam import Exam, ExamCreate, ExamStudentRead  # noqa: F401
from examhub.schemas.attempt import (  # noqa: F401
    AnswerEntry,
    AnswersUpdate,
    AttemptStart,
    AttemptSubmit,
    QuestionResult,
    StudentExamAttempt,
    TimerRead,
)
