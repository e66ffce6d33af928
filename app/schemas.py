from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import (
    AliasGenerator,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from app.utils.validators import (
    PASSWORD_MAX_BYTES,
    PASSWORD_MIN_LENGTH,
    USERNAME_MAX_LENGTH,
    USERNAME_MIN_LENGTH,
    is_valid_email,
    is_valid_username,
)

# Request bodies are camelCase on the wire; populate_by_name keeps snake_case usable in code
REQUEST_CONFIG = ConfigDict(
    alias_generator=AliasGenerator(validation_alias=to_camel),
    populate_by_name=True,
    str_strip_whitespace=True,
)

RESPONSE_CONFIG = ConfigDict(
    alias_generator=AliasGenerator(serialization_alias=to_camel),
    from_attributes=True,
)


def _check_password(value: str, label: str) -> str:
    if len(value) < PASSWORD_MIN_LENGTH:
        raise ValueError(
            f"{label} must be at least {PASSWORD_MIN_LENGTH} characters"
        )
    if len(value.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError(f"{label} cannot exceed {PASSWORD_MAX_BYTES} bytes")
    return value


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    username: str = Field(..., description="Username for the new account")
    email: str = Field(..., description="Email address")
    password: str = Field(..., description="Password for the new account")
    first_name: str | None = Field(default=None, max_length=50)
    last_name: str | None = Field(default=None, max_length=50)

    model_config = REQUEST_CONFIG

    @field_validator("username")
    @classmethod
    def check_username(cls, v: str) -> str:
        if not is_valid_username(v):
            raise ValueError(
                f"Username must be {USERNAME_MIN_LENGTH}-{USERNAME_MAX_LENGTH} characters "
                "and contain only letters, numbers and underscores"
            )
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        if not is_valid_email(v):
            raise ValueError("Please enter a valid email")
        return v.lower()

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        return _check_password(v, "Password")


class LoginRequest(BaseModel):
    """Login accepts either an email or a username."""

    email: str | None = None
    username: str | None = None
    password: str = Field(..., description="Password for login")

    model_config = REQUEST_CONFIG

    @model_validator(mode="after")
    def check_identifier(self) -> "LoginRequest":
        if not self.email and not self.username:
            raise ValueError("Email or username is required")
        return self


class UserUpdateRequest(BaseModel):
    """
    Profile update body.

    `username` and `password` are accepted only so the route can reject them
    with a specific message.
    """

    first_name: str | None = Field(default=None, max_length=50)
    last_name: str | None = Field(default=None, max_length=50)
    email: str | None = None
    avatar: str | None = None
    username: str | None = None
    password: str | None = None

    model_config = REQUEST_CONFIG

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str | None) -> str | None:
        if v is not None and not is_valid_email(v):
            raise ValueError("Please enter a valid email")
        return v.lower() if v else v

    def profile_changes(self) -> dict[str, Any]:
        """Fields explicitly sent by the client, keyed by model attribute."""
        return self.model_dump(
            include={"first_name", "last_name", "email", "avatar"},
            exclude_unset=True,
        )


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., description="Current password")
    new_password: str = Field(..., description="New password")

    model_config = REQUEST_CONFIG

    @field_validator("new_password")
    @classmethod
    def check_new_password(cls, v: str) -> str:
        return _check_password(v, "New password")


class PostCreateRequest(BaseModel):
    title: str
    content: str
    tags: list[str] = Field(default_factory=list)
    is_published: bool = True

    model_config = REQUEST_CONFIG


class PostUpdateRequest(BaseModel):
    title: str | None = None
    content: str | None = None
    tags: list[str] | None = None
    is_published: bool | None = None

    model_config = REQUEST_CONFIG

    @field_validator("is_published")
    @classmethod
    def check_is_published(cls, v: bool | None) -> bool:
        # Runs only for a value sent explicitly; an omitted field keeps the default
        if v is None:
            raise ValueError("Published flag must be true or false")
        return v

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class CommentCreateRequest(BaseModel):
    content: str

    model_config = REQUEST_CONFIG


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class UserSummary(BaseModel):
    id: UUID
    username: str
    first_name: str | None = None
    last_name: str | None = None
    full_name: str = ""
    avatar: str | None = None

    model_config = RESPONSE_CONFIG


class UserOut(UserSummary):
    """Public user representation. The password hash is never part of it."""

    email: str
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CommentOut(BaseModel):
    id: UUID
    user: UserSummary | None = None
    content: str
    created_at: datetime | None = None

    model_config = RESPONSE_CONFIG


class PostOut(BaseModel):
    id: UUID
    title: str
    content: str
    author: UserSummary | None = None
    tags: list[str] = Field(default_factory=list)
    is_published: bool = True
    likes: list[UUID] = Field(default_factory=list)
    comments: list[CommentOut] = Field(default_factory=list)
    like_count: int = 0
    comment_count: int = 0
    reading_time: int = 0
    slug: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = RESPONSE_CONFIG

    @field_validator("likes", mode="before")
    @classmethod
    def like_user_ids(cls, v: Any) -> list:
        """Likes are exposed as the ids of the users who liked the post."""
        return [getattr(like, "user_id", like) for like in v or []]


def dump(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True)


def serialize_user(user) -> dict[str, Any]:
    return dump(UserOut.model_validate(user))


def serialize_post(post) -> dict[str, Any]:
    return dump(PostOut.model_validate(post))


def serialize_comment(comment) -> dict[str, Any]:
    return dump(CommentOut.model_validate(comment))


def success(message: str | None = None, **data: Any) -> dict[str, Any]:
    """Success envelope: {"status": "success", "message"?, "data"?}."""
    body: dict[str, Any] = {"status": "success"}
    if message:
        body["message"] = message
    if data:
        body["data"] = data
    return body
