"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse

from examhub.config import settings
from examhub.core.errors import ExamHubError
from examhub.db.session import create_tables
from examhub.api import (
    health_router,
    users_router,
    exams_router,
    attempts_router,
)
from examhub.schemas.common import ErrorResponse

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s  %(name)-25s  %(levelname)-8s  %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 ExamHub backend starting…")
    if settings.CREATE_TABLES_ON_STARTUP:
        create_tables()
        logger.info("Database tables ensured")
    yield
    logger.info("✅ ExamHub backend shut down")


app = FastAPI(
    title="ExamHub API",
    description="Exam management with automatic scoring for teachers and students",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Middleware ─────────────────────────────────────────────────────────────────

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

# ── Errors ────────────────────────────────────────────────────────────────────


@app.exception_handler(ExamHubError)
async def examhub_error_handler(request: Request, exc: ExamHubError):
    level = logging.ERROR if exc.status_code >= 500 else logging.INFO
    logger.log(level, "%s %s → %s: %s", request.method, request.url.path, exc.error_code, exc.message)
    body = ErrorResponse(error_code=exc.error_code, message=exc.message, details=exc.details)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


# ── Routers ───────────────────────────────────────────────────────────────────

app.include_router(health_router, tags=["Health"])
app.include_router(users_router, prefix="/api/users", tags=["Users"])
app.include_router(exams_router, prefix="/api/exams", tags=["Exams"])
app.include_router(attempts_router, prefix="/api/attempts", tags=["Attempts"])


@app.get("/")
async def root():
    return {
        "name": "ExamHub API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
    }
