"""SQLAlchemy ORM models for ExamHub.

Tables
------
- users          – teacher / student profiles
- exams          – teacher-owned exams; questions embedded as JSON
- exam_attempts  – one row per student attempt; answers embedded as JSON
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from examhub.db.session import Base


# ── helpers ───────────────────────────────────────────────────────────────────


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _uuid() -> uuid.UUID:
    return uuid.uuid4()


# ── Enums (stored as VARCHAR via SQLAlchemy Enum) ─────────────────────────────


class RoleEnum(str, enum.Enum):
    TEACHER = "teacher"
    STUDENT = "student"


class ProfileTypeEnum(str, enum.Enum):
    BACHELOR = "bachelor"
    MASTER = "master"


# ── Users ─────────────────────────────────────────────────────────────────────


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=_uuid
    )
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255))
    name: Mapped[str] = mapped_column(String(255))
    role: Mapped[RoleEnum] = mapped_column(
        Enum(RoleEnum, name="role_enum"), default=RoleEnum.STUDENT
    )
    avatar_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    profile_type: Mapped[ProfileTypeEnum | None] = mapped_column(
        Enum(ProfileTypeEnum, name="profile_type_enum"), nullable=True
    )
    school_class: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    exams: Mapped[list["Exam"]] = relationship(back_populates="owner")
    attempts: Mapped[list["ExamAttempt"]] = relationship(back_populates="student")


# ── Exams ─────────────────────────────────────────────────────────────────────


class Exam(Base):
    __tablename__ = "exams"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=_uuid
    )
    title: Mapped[str] = mapped_column(String(500))
    description: Mapped[str] = mapped_column(Text, default="")
    created_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), index=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    time_limit: Mapped[int | None] = mapped_column(
        Integer, nullable=True
    )  # minutes
    questions: Mapped[list] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )

    owner: Mapped["User"] = relationship(back_populates="exams")
    attempts: Mapped[list["ExamAttempt"]] = relationship(
        back_populates="exam", cascade="all, delete-orphan"
    )


# ── Attempts ──────────────────────────────────────────────────────────────────


class ExamAttempt(Base):
    """A student's attempt at an exam; answers are kept as a JSON list."""

    __tablename__ = "exam_attempts"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=_uuid
    )
    exam_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("exams.id", ondelete="CASCADE")
    )
    student_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), index=True
    )
    answers: Mapped[list] = mapped_column(JSON, default=list)
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )
    submitted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    score: Mapped[float | None] = mapped_column(Float, nullable=True)
    # Grading snapshot taken at submission; never recomputed from the exam
    earned_points: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_points: Mapped[int | None] = mapped_column(Integer, nullable=True)
    results: Mapped[list | None] = mapped_column(JSON, nullable=True)

    exam: Mapped["Exam"] = relationship(back_populates="attempts")
    student: Mapped["User"] = relationship(back_populates="attempts")

    __table_args__ = (
        # At most one unsubmitted attempt per student per exam.
        Index(
            "uq_attempt_open_per_student",
            "exam_id",
            "student_id",
            unique=True,
            postgresql_where=text("submitted_at IS NULL"),
            sqlite_where=text("submitted_at IS NULL"),
        ),
    )
