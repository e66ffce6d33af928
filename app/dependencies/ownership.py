"""
Ownership checks for mutating routes.

Each dependency loads the target by its path id and compares its owner with
the authenticated user: missing target is a 404, someone else's target is a
403, otherwise the target is handed to the route.
"""

from collections.abc import Awaitable, Callable

from fastapi import Depends, Path

from app.db_handlers.post import PostDBHandler
from app.db_handlers.user import UserDBHandler
from app.dependencies.auth import get_current_user
from app.errors import ForbiddenError, NotFoundError
from app.models import Post, User
from app.utils.logger import setup_logger
from app.utils.validators import parse_identifier

logger = setup_logger("ownership")


async def get_post_or_404(
    post_id: str = Path(..., alias="id", description="The ID of the post"),
) -> Post:
    """Load a post with its relations or raise 404 "Post not found"."""
    post = await PostDBHandler().get_post(parse_identifier(post_id))
    if post is None:
        raise NotFoundError("Post not found")
    return post


def owned_post(action: str) -> Callable[..., Awaitable[Post]]:
    """Dependency factory: the post, if the current user authored it."""

    # Authentication is resolved before the lookup so anonymous callers get 401
    async def dependency(
        current_user: User = Depends(get_current_user),
        post: Post = Depends(get_post_or_404),
    ) -> Post:
        if post.author_id != current_user.id:
            logger.warning(
                f"User {current_user.id} tried to {action} post {post.id} owned by {post.author_id}"
            )
            raise ForbiddenError(f"Not authorized to {action} this post")
        return post

    return dependency


def owned_user(action: str) -> Callable[..., Awaitable[User]]:
    """Dependency factory: the user record, if it is the current user's own."""

    async def dependency(
        user_id: str = Path(..., alias="id", description="The ID of the user"),
        current_user: User = Depends(get_current_user),
    ) -> User:
        target = await UserDBHandler().get(parse_identifier(user_id))
        if target is None:
            raise NotFoundError("User not found")
        if target.id != current_user.id:
            logger.warning(
                f"User {current_user.id} tried to {action} user {target.id}"
            )
            raise ForbiddenError(f"Not authorized to {action} this user")
        return target

    return dependency
