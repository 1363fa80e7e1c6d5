"""Domain errors raised by the attempt engine and repositories.

Each error carries a stable ``error_code`` and the HTTP status the API layer
renders it with (see ``examhub.main``).
"""

from typing import Any


class ExamHubError(Exception):
    """Base class for every error the service layer raises on purpose."""

    error_code = "examhub_error"
    status_code = 400
    default_message = "Request could not be completed"

    def __init__(self, message: str | None = None, **details: Any) -> None:
        self.message = message or self.default_message
        self.details = details or None
        super().__init__(self.message)


class NotAuthenticated(ExamHubError):
    error_code = "not_authenticated"
    status_code = 401
    default_message = "You must be logged in"


class NotAuthorized(ExamHubError):
    error_code = "forbidden"
    status_code = 403
    default_message = "You do not have access to this resource"


class ExamUnavailable(ExamHubError):
    error_code = "exam_unavailable"
    status_code = 404
    default_message = "Exam not found or not currently active"


class AttemptNotFound(ExamHubError):
    error_code = "attempt_not_found"
    status_code = 404
    default_message = "Attempt not found"


class AlreadySubmitted(ExamHubError):
    error_code = "already_submitted"
    status_code = 409
    default_message = "This attempt has already been submitted"


class InvalidAnswer(ExamHubError):
    error_code = "invalid_answer"
    status_code = 422
    default_message = "Answer could not be recorded"


class PersistenceFailure(ExamHubError):
    error_code = "persistence_failure"
    status_code = 503
    default_message = "Storage is temporarily unavailable"
