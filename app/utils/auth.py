"""
Authentication utilities with JWT tokens and bcrypt password hashing.

Tokens carry the user id in a `userId` claim and are signed with HS256 using
the configured secret. Passwords are hashed with a per-password bcrypt salt.
"""

from datetime import UTC, datetime, timedelta

import bcrypt
from jose import jwt

from app.config import settings

USER_ID_CLAIM = "userId"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain text password against a hashed password."""
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"), hashed_password.encode("utf-8")
        )
    except ValueError:
        # Malformed stored hash
        return False


def get_password_hash(password: str) -> str:
    """Hash a plain text password using bcrypt."""
    pwd_bytes = password.encode("utf-8")
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    hashed_password = bcrypt.hashpw(password=pwd_bytes, salt=salt)
    return hashed_password.decode("utf-8")


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create a JWT access token with the given data."""
    to_encode = data.copy()
    if expires_delta is not None:
        expire = datetime.now(UTC) + expires_delta
    else:
        expire = datetime.now(UTC) + timedelta(
            minutes=settings.access_token_expire_minutes
        )

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(
        to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm
    )
    return encoded_jwt


def create_user_token(user_id, expires_delta: timedelta | None = None) -> str:
    """Issue a token for the given user id."""
    return create_access_token({USER_ID_CLAIM: str(user_id)}, expires_delta)


def decode_access_token(token: str) -> dict:
    """
    Decode and verify a JWT access token.

    Raises `jose.ExpiredSignatureError` for expired tokens and
    `jose.JWTError` for any other verification failure.
    """
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])


def extract_user_id_from_token(token: str) -> str | None:
    """Return the `userId` claim of a verified token."""
    payload = decode_access_token(token)
    return payload.get(USER_ID_CLAIM)
