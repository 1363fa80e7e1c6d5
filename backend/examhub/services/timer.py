"""Exam countdown derived from an attempt's start time.

The remaining time is always recomputed from the stored ``started_at``, so
reloading the page (or a worker picking the attempt up later) never restarts
the countdown.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (e.g. read back from SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def format_remaining(seconds: int) -> str:
    """Render seconds the way the exam page shows them: ``1h 2m 3s`` / ``4m 5s``."""
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    prefix = f"{hours}h " if hours > 0 else ""
    return f"{prefix}{minutes}m {secs}s"


class ExamTimer:
    """Countdown for one attempt.

    Inactive when the exam has no time limit. :meth:`tick` reports expiry
    exactly once and then stays quiet, whoever calls it.
    """

    def __init__(
        self,
        started_at: datetime,
        time_limit_minutes: int | None,
        clock: Clock | None = None,
        on_expire: Callable[[], object] | None = None,
    ) -> None:
        self.started_at = as_utc(started_at)
        self.time_limit_minutes = time_limit_minutes
        self._clock = clock or utcnow
        self._on_expire = on_expire
        self._fired = False

    @property
    def active(self) -> bool:
        return bool(self.time_limit_minutes)

    @property
    def deadline(self) -> datetime | None:
        if not self.active:
            return None
        return self.started_at + timedelta(minutes=self.time_limit_minutes)

    @property
    def fired(self) -> bool:
        return self._fired

    def remaining(self, now: datetime | None = None) -> timedelta | None:
        if not self.active:
            return None
        now = as_utc(now or self._clock())
        return max(timedelta(0), self.deadline - now)

    def remaining_seconds(self, now: datetime | None = None) -> int | None:
        left = self.remaining(now)
        if left is None:
            return None
        return int(left.total_seconds())

    def is_expired(self, now: datetime | None = None) -> bool:
        left = self.remaining(now)
        return left is not None and left == timedelta(0)

    def tick(self, now: datetime | None = None) -> bool:
        """Advance the timer; returns True only on the tick that expires it."""
        if self._fired or not self.is_expired(now):
            return False
        self._fired = True
        logger.info("Timer expired (started %s, limit %s min)", self.started_at, self.time_limit_minutes)
        if self._on_expire is not None:
            self._on_expire()
        return True

    def display(self, now: datetime | None = None) -> str | None:
        seconds = self.remaining_seconds(now)
        return None if seconds is None else format_remaining(seconds)
