"""
Unit tests for password hashing and bearer tokens.
"""

import uuid
from datetime import timedelta

import pytest
from jose import ExpiredSignatureError, JWTError, jwt

from app.config import settings
from app.utils.auth import (
    create_access_token,
    create_user_token,
    decode_access_token,
    extract_user_id_from_token,
    get_password_hash,
    verify_password,
)


def test_password_hash_round_trip():
    hashed = get_password_hash("secret123")
    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("wrong-password", hashed)


def test_password_hashes_are_salted():
    assert get_password_hash("secret123") != get_password_hash("secret123")


def test_verify_password_rejects_malformed_hash():
    assert verify_password("secret123", "not-a-bcrypt-hash") is False


def test_user_token_carries_user_id_and_expiry():
    user_id = uuid.uuid4()
    token = create_user_token(user_id)
    payload = decode_access_token(token)
    assert payload["userId"] == str(user_id)
    assert "exp" in payload
    assert extract_user_id_from_token(token) == str(user_id)


def test_expired_token_raises_expired_signature():
    token = create_access_token({"userId": "x"}, expires_delta=timedelta(seconds=-30))
    with pytest.raises(ExpiredSignatureError):
        decode_access_token(token)


def test_token_signed_with_other_secret_is_rejected():
    token = jwt.encode({"userId": "x"}, "another-secret", algorithm=settings.jwt_algorithm)
    with pytest.raises(JWTError) as exc_info:
        decode_access_token(token)
    assert not isinstance(exc_info.value, ExpiredSignatureError)


def test_garbage_token_is_rejected():
    with pytest.raises(JWTError):
        decode_access_token("definitely.not.a-token")
