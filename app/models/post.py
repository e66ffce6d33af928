"""
Post model with its like and comment child entities.

Likes and comments are rows of their own tables keyed by (post, user). The
"one like per user" rule is the unique constraint on post_likes, not a scan
of a list. Comments are append-only.

Architecture:
    User → Post → PostLike
                → PostComment
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship, validates

from app.errors import ValidationError
from app.models.base import Base, TimestampMixin, UUIDMixin, utcnow
from app.utils.text_processing import calculate_reading_time, generate_slug

TITLE_MAX_LENGTH = 100
CONTENT_MAX_LENGTH = 2000
TAG_MAX_LENGTH = 20
COMMENT_MAX_LENGTH = 500


def _require_text(key: str, label: str, value: str | None, max_length: int) -> str:
    if value is None or not value.strip():
        raise ValidationError({key: f"{label} is required"})
    value = value.strip()
    if len(value) > max_length:
        raise ValidationError({key: f"{label} cannot exceed {max_length} characters"})
    return value


class Post(Base, UUIDMixin, TimestampMixin):
    """
    A user's blog post.

    `author_id` is fixed at creation. Counts are derived from the child
    collections and never stored.
    """

    __tablename__ = "posts"
    __table_args__ = (
        Index("ix_posts_author_id", "author_id"),
        Index("ix_posts_is_published", "is_published"),
    )

    title = Column(String(TITLE_MAX_LENGTH), nullable=False)
    content = Column(Text, nullable=False)

    author_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        comment="Owning user; never changes after creation",
    )

    tags = Column(JSON, nullable=False, default=list)
    is_published = Column(Boolean, nullable=False, default=True)

    author = relationship("User", back_populates="posts")

    likes = relationship(
        "PostLike",
        back_populates="post",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PostLike.created_at",
    )

    comments = relationship(
        "PostComment",
        back_populates="post",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PostComment.created_at",
    )

    @validates("title")
    def validate_title(self, key, value):
        return _require_text(key, "Title", value, TITLE_MAX_LENGTH)

    @validates("content")
    def validate_content(self, key, value):
        return _require_text(key, "Content", value, CONTENT_MAX_LENGTH)

    @validates("tags")
    def validate_tags(self, key, value):
        if value is None:
            return []
        cleaned = []
        for index, tag in enumerate(value):
            tag = str(tag).strip()
            if len(tag) > TAG_MAX_LENGTH:
                raise ValidationError(
                    {f"tags.{index}": f"Tag cannot exceed {TAG_MAX_LENGTH} characters"}
                )
            if tag:
                cleaned.append(tag)
        return cleaned

    @validates("author_id")
    def validate_author_id(self, key, value):
        if self.author_id is not None and value != self.author_id:
            raise ValidationError({key: "Post author cannot be changed"})
        return value

    @property
    def like_count(self) -> int:
        return len(self.likes)

    @property
    def comment_count(self) -> int:
        return len(self.comments)

    @property
    def reading_time(self) -> int:
        return calculate_reading_time(self.content)

    @property
    def slug(self) -> str:
        return generate_slug(self.title)

    def __repr__(self):
        return f"<Post(id={self.id}, title='{self.title}')>"


class PostLike(Base, UUIDMixin):
    __tablename__ = "post_likes"
    __table_args__ = (
        UniqueConstraint("post_id", "user_id", name="uq_post_likes_post_user"),
    )

    post_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    post = relationship("Post", back_populates="likes")
    user = relationship("User")


class PostComment(Base, UUIDMixin):
    """Comment on a post. Comments are only ever appended."""

    __tablename__ = "post_comments"

    post_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    content = Column(String(COMMENT_MAX_LENGTH), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    post = relationship("Post", back_populates="comments")
    user = relationship("User")

    @validates("content")
    def validate_content(self, key, value):
        if value is None or not value.strip():
            raise ValidationError({key: "Comment content is required"})
        value = value.strip()
        if len(value) > COMMENT_MAX_LENGTH:
            raise ValidationError(
                {key: f"Comment cannot exceed {COMMENT_MAX_LENGTH} characters"}
            )
        return value
