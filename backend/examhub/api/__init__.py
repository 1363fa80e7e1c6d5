"""API route package — imports all routers for main.py."""

from examhub.api.health import router as health_router  # noqa: F401
from examhub.api.users import router as users_router  # noqa: F401
from examhub.api.exams import router as exams_router  # noqa: F401
from examhub.api.attempts import router as attempts_router  # noqa: F401
