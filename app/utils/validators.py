"""
Input validation helpers shared by request schemas, models and routes.
"""

import re
import uuid

from app.errors import InvalidIdentifierError

EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
USERNAME_REGEX = re.compile(r"^[a-zA-Z0-9_]+$")

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
PASSWORD_MIN_LENGTH = 6
# bcrypt rejects passwords longer than 72 bytes
PASSWORD_MAX_BYTES = 72


def is_valid_email(email: str | None) -> bool:
    return bool(email) and EMAIL_REGEX.match(email) is not None


def is_valid_username(username: str | None) -> bool:
    """3-20 characters, letters, digits and underscores only."""
    if not username or not (
        USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH
    ):
        return False
    return USERNAME_REGEX.match(username) is not None


def parse_identifier(value: str, path: str = "id") -> uuid.UUID:
    """Parse a path identifier, raising InvalidIdentifierError when malformed."""
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError) as e:
        raise InvalidIdentifierError(value=value, path=path) from e
