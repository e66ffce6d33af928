"""
User model for registration, authentication and resource ownership.

Users own posts and are referenced by likes and comments. Deleting a user
removes everything they own.

Architecture:
    User → Post → (PostLike, PostComment)
"""

from sqlalchemy import Boolean, Column, Index, String
from sqlalchemy.orm import relationship, validates

from app.errors import ValidationError
from app.models.base import Base, TimestampMixin, UUIDMixin
from app.utils.validators import (
    USERNAME_MAX_LENGTH,
    USERNAME_MIN_LENGTH,
    is_valid_email,
    is_valid_username,
)

NAME_MAX_LENGTH = 50


class User(Base, UUIDMixin, TimestampMixin):
    """
    Registered account.

    The bcrypt hash is stored in `hashed_password` and is excluded from
    `to_dict`. Usernames and emails are trimmed; emails are lowercased.
    """

    __tablename__ = "users"
    __table_args__ = (
        Index("ix_users_username", "username", unique=True),
        Index("ix_users_email", "email", unique=True),
    )
    __private_fields__ = ("hashed_password",)

    username = Column(
        String(USERNAME_MAX_LENGTH),
        nullable=False,
        comment="Unique username, alphanumeric and underscores",
    )

    email = Column(
        String(255),
        nullable=False,
        comment="Unique lowercased email address",
    )

    hashed_password = Column(
        String(255),
        nullable=False,
        comment="Bcrypt hashed password",
    )

    first_name = Column(String(NAME_MAX_LENGTH), nullable=True)
    last_name = Column(String(NAME_MAX_LENGTH), nullable=True)
    avatar = Column(String(500), nullable=True, default=None)
    is_active = Column(Boolean, nullable=False, default=True)

    posts = relationship(
        "Post",
        back_populates="author",
        cascade="all, delete-orphan",
        passive_deletes=True,
        doc="Posts written by this user",
    )

    @validates("username")
    def validate_username(self, key, value):
        if value is None or not value.strip():
            raise ValidationError({key: "Username is required"})
        value = value.strip()
        if len(value) < USERNAME_MIN_LENGTH:
            raise ValidationError(
                {key: f"Username must be at least {USERNAME_MIN_LENGTH} characters"}
            )
        if len(value) > USERNAME_MAX_LENGTH:
            raise ValidationError(
                {key: f"Username cannot exceed {USERNAME_MAX_LENGTH} characters"}
            )
        if not is_valid_username(value):
            raise ValidationError(
                {key: "Username can only contain letters, numbers and underscores"}
            )
        return value

    @validates("email")
    def validate_email(self, key, value):
        if value is None or not value.strip():
            raise ValidationError({key: "Email is required"})
        value = value.strip().lower()
        if not is_valid_email(value):
            raise ValidationError({key: "Please enter a valid email"})
        return value

    @validates("first_name", "last_name")
    def validate_name(self, key, value):
        if value is None:
            return None
        value = value.strip()
        if len(value) > NAME_MAX_LENGTH:
            label = "First name" if key == "first_name" else "Last name"
            raise ValidationError(
                {key: f"{label} cannot exceed {NAME_MAX_LENGTH} characters"}
            )
        return value

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}')>"
