"""FastAPI dependencies shared across routes."""

import uuid

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from examhub.core.security import decode_access_token
from examhub.db.models import RoleEnum, User
from examhub.db.repository import SqlAlchemyExamRepository
from examhub.db.session import get_db
from examhub.services.attempts import AttemptService

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/users/login")


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Decode JWT and return the authenticated user, or 401."""
    payload = decode_access_token(token)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        user_uuid = uuid.UUID(payload["sub"])
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload"
        )
    user = db.get(User, user_uuid)
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )
    return user


def require_teacher(current_user: User = Depends(get_current_user)) -> User:
    """Raise 403 unless the caller is a teacher."""
    if current_user.role != RoleEnum.TEACHER:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Teacher access required"
        )
    return current_user


def require_student(current_user: User = Depends(get_current_user)) -> User:
    """Raise 403 unless the caller is a student."""
    if current_user.role != RoleEnum.STUDENT:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Student access required"
        )
    return current_user


def get_repository(db: Session = Depends(get_db)) -> SqlAlchemyExamRepository:
    return SqlAlchemyExamRepository(db)


def get_attempt_service(
    repository: SqlAlchemyExamRepository = Depends(get_repository),
) -> AttemptService:
    return AttemptService(repository)
