"""User registration, login, and profile routes."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from examhub.api.deps import get_current_user
from examhub.core.security import create_access_token, hash_password, verify_password
from examhub.db.models import ProfileTypeEnum, RoleEnum, User
from examhub.db.session import get_db
from examhub.schemas.user import AuthResponse, UserCreate, UserLogin, UserRead, UserUpdate

logger = logging.getLogger(__name__)
router = APIRouter()


def _issue_token(user: User) -> AuthResponse:
    token = create_access_token(user.id, user.role.value)
    return AuthResponse(access_token=token, user=UserRead.model_validate(user))


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(body: UserCreate, db: Session = Depends(get_db)):
    """Create a new teacher or student account."""
    existing = db.query(User).filter(User.email == body.email).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )

    try:
        hashed = hash_password(body.password)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))

    user = User(
        email=body.email,
        hashed_password=hashed,
        name=body.name,
        role=RoleEnum(body.role.value),
        profile_type=(
            ProfileTypeEnum(body.profile_type.value) if body.profile_type else None
        ),
        school_class=body.school_class,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered %s account %s", user.role.value, user.id)

    return _issue_token(user)


@router.post("/login", response_model=AuthResponse)
def login(body: UserLogin, db: Session = Depends(get_db)):
    """Authenticate and return a JWT access token + user profile."""
    user = db.query(User).filter(User.email == body.email).first()
    if not user or not verify_password(body.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account deactivated",
        )

    return _issue_token(user)


@router.get("/me", response_model=UserRead)
def me(current_user: User = Depends(get_current_user)):
    """Return the authenticated user's profile."""
    return current_user


@router.patch("/me", response_model=UserRead)
def update_profile(
    body: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update the authenticated user's profile (name, avatar, profile type, class)."""
    if body.name is not None:
        current_user.name = body.name
    if body.avatar_url is not None:
        current_user.avatar_url = body.avatar_url
    if body.profile_type is not None:
        current_user.profile_type = ProfileTypeEnum(body.profile_type.value)
    if body.school_class is not None:
        current_user.school_class = body.school_class
    db.commit()
    db.refresh(current_user)
    return current_user
