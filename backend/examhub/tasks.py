"""Background tasks executed by Celery workers."""

import logging
import uuid

from examhub.celery_app import celery_app
from examhub.core.errors import AttemptNotFound, ExamUnavailable, PersistenceFailure
from examhub.db.repository import SqlAlchemyExamRepository
from examhub.db.session import get_session_factory, session_scope
from examhub.services.attempts import AttemptService

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, name="auto_submit_attempt", max_retries=3)
def auto_submit_attempt(self, attempt_id: str) -> dict:
    """Submit one attempt whose timer ran out (no-op if already submitted)."""
    with session_scope(get_session_factory()) as db:
        service = AttemptService(SqlAlchemyExamRepository(db))
        try:
            attempt = service.auto_submit(uuid.UUID(attempt_id))
        except (AttemptNotFound, ExamUnavailable) as exc:
            logger.warning("Auto-submit of %s skipped: %s", attempt_id, exc.message)
            return {"success": False, "error": exc.error_code}
        except PersistenceFailure as exc:
            # Retry with exponential back-off (10s, 30s, 90s)
            raise self.retry(exc=exc, countdown=10 * (3**self.request.retries))
        return {"success": True, "attempt_id": attempt_id, "score": attempt.score}


@celery_app.task(name="sweep_expired_attempts")
def sweep_expired_attempts() -> dict:
    """Enqueue an auto-submit for every in-progress attempt past its time limit."""
    with session_scope(get_session_factory()) as db:
        service = AttemptService(SqlAlchemyExamRepository(db))
        count = service.sweep_expired(
            submit=lambda attempt_id: auto_submit_attempt.delay(str(attempt_id))
        )
    if count:
        logger.info("Queued auto-submit for %d expired attempt(s)", count)
    return {"success": True, "submitted": count}
