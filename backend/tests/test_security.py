"""Unit tests for password hashing and access tokens."""

import uuid
from datetime import timedelta

import pytest
from jose import jwt

from examhub.config import settings
from examhub.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


def test_password_round_trip():
    hashed = hash_password("s3cret")
    assert hashed != "s3cret"
    assert verify_password("s3cret", hashed)
    assert not verify_password("S3cret", hashed)


def test_password_over_bcrypt_limit_rejected():
    with pytest.raises(ValueError):
        hash_password("x" * 73)


def test_malformed_hash_does_not_verify():
    assert verify_password("anything", "not-a-bcrypt-hash") is False


def test_token_carries_user_and_role():
    user_id = uuid.uuid4()
    claims = decode_access_token(create_access_token(user_id, "student"))
    assert claims["sub"] == str(user_id)
    assert claims["role"] == "student"


def test_expired_token_rejected():
    token = create_access_token(uuid.uuid4(), "teacher", expires_delta=timedelta(seconds=-1))
    assert decode_access_token(token) is None


def test_token_without_subject_rejected():
    token = jwt.encode({"role": "teacher"}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    assert decode_access_token(token) is None
