"""Celery application — background worker for timed exam submission."""

from celery import Celery

from examhub.config import settings

celery_app = Celery(
    "examhub",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    # Run tasks synchronously in-process when True (dev default, no Redis needed).
    # Set CELERY_TASK_ALWAYS_EAGER=false in .env when running a real worker.
    task_always_eager=settings.CELERY_TASK_ALWAYS_EAGER,
    task_eager_propagates=True,  # Raise task exceptions immediately when eager
    beat_schedule={
        "sweep-expired-attempts": {
            "task": "sweep_expired_attempts",
            "schedule": float(settings.AUTO_SUBMIT_SWEEP_SECONDS),
        },
    },
)

celery_app.autodiscover_tasks(["examhub"])
