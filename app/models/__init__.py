"""
Database models for the Postboard blog API.

Architecture: User → Post → (PostLike, PostComment).
"""

from app.models.post import Post, PostComment, PostLike
from app.models.user import User

__all__ = [
    "User",
    "Post",
    "PostLike",
    "PostComment",
]
