"""User & authentication schemas."""

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, EmailStr, Field


class Role(str, Enum):
    TEACHER = "teacher"
    STUDENT = "student"


class ProfileType(str, Enum):
    BACHELOR = "bachelor"
    MASTER = "master"


class UserCreate(BaseModel):
    """POST /api/users/register"""

    email: EmailStr
    password: str = Field(min_length=4)
    name: str
    role: Role = Role.STUDENT
    profile_type: ProfileType | None = None
    school_class: str | None = None


class UserLogin(BaseModel):
    """POST /api/users/login"""

    email: EmailStr
    password: str


class UserUpdate(BaseModel):
    """PATCH /api/users/me — update own profile."""

    name: str | None = None
    avatar_url: str | None = None
    profile_type: ProfileType | None = None
    school_class: str | None = None


class UserRead(BaseModel):
    """User returned from API — never exposes password."""

    id: uuid.UUID
    email: str
    name: str
    role: Role
    avatar_url: str | None = None
    profile_type: ProfileType | None = None
    school_class: str | None = None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    """Combined auth response: token + user profile."""

    access_token: str
    token_type: str = "bearer"
    user: UserRead
