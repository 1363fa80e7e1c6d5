"""Password hashing and JWT token utilities."""

import uuid
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
import bcrypt

from examhub.config import settings

# ── Password hashing ──────────────────────────────────────────────────────────


def hash_password(plain: str) -> str:
    """Return bcrypt hash of *plain* password.

    Raises:
        ValueError: If password is longer than 72 bytes (bcrypt limit)
    """
    size = len(plain.encode("utf-8"))
    if size > 72:
        raise ValueError(
            f"Password is {size} bytes, but bcrypt has a 72-byte limit. "
            "Please use a shorter password."
        )
    hashed = bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Check *plain* against a bcrypt *hashed* password."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed hash (e.g. placeholder rows)
        return False


# ── JWT tokens ────────────────────────────────────────────────────────────────


def create_access_token(
    user_id: uuid.UUID,
    role: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Signed access token with ``sub`` (user id), ``role`` and ``exp`` claims."""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    claims = {"sub": str(user_id), "role": role, "exp": expire}
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    """Decode and validate a JWT. Returns the claims, or None if invalid or expired."""
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    if "sub" not in claims:
        return None
    return claims
