"""
Post API Routes - publishing, browsing, likes and comments.

Reading is public. Creating, liking and commenting need an authenticated
user; updating and deleting are reserved to the post's author.
"""

from fastapi import APIRouter, Depends, Query, status

from app.db_handlers.post import PostDBHandler
from app.dependencies.auth import get_current_user, get_current_user_optional
from app.dependencies.ownership import get_post_or_404, owned_post
from app.models import Post, User
from app.schemas import (
    CommentCreateRequest,
    PostCreateRequest,
    PostUpdateRequest,
    serialize_comment,
    serialize_post,
    success,
)
from app.utils.logger import setup_logger
from app.utils.text_processing import build_pagination

logger = setup_logger("api.posts")

router = APIRouter(prefix="/api/posts", tags=["Posts"])


@router.post("", status_code=status.HTTP_201_CREATED)
@router.post("/", status_code=status.HTTP_201_CREATED, include_in_schema=False)
async def create_post(
    payload: PostCreateRequest,
    current_user: User = Depends(get_current_user),
    post_db_handler: PostDBHandler = Depends(),
):
    post = await post_db_handler.create_post(current_user.id, payload.model_dump())
    return success("Post created successfully", post=serialize_post(post))


@router.get("")
@router.get("/", include_in_schema=False)
async def list_posts(
    page: int = Query(1, ge=1, description="Page number, starting at 1"),
    limit: int = Query(10, ge=1, le=100, description="Posts per page"),
    search: str | None = Query(None, description="Match on title, content or tag"),
    post_db_handler: PostDBHandler = Depends(),
):
    """Published posts, newest first."""
    posts, total = await post_db_handler.list_published(
        search=search, skip=(page - 1) * limit, limit=limit
    )
    return success(
        posts=[serialize_post(post) for post in posts],
        pagination=build_pagination(page, limit, total),
    )


@router.get("/{id}")
async def get_post(
    post: Post = Depends(get_post_or_404),
    current_user: User | None = Depends(get_current_user_optional),
):
    """A single post with its comments. `likedByMe` is added for signed-in callers."""
    if current_user is None:
        return success(post=serialize_post(post))
    liked_by_me = any(like.user_id == current_user.id for like in post.likes)
    return success(post=serialize_post(post), likedByMe=liked_by_me)


@router.put("/{id}")
async def update_post(
    payload: PostUpdateRequest,
    post: Post = Depends(owned_post("update")),
    post_db_handler: PostDBHandler = Depends(),
):
    changes = payload.changes()
    updated = await post_db_handler.update_post(post, changes)
    logger.info(f"Post {post.id} updated fields: {sorted(changes)}")
    return success("Post updated successfully", post=serialize_post(updated))


@router.delete("/{id}")
async def delete_post(
    post: Post = Depends(owned_post("delete")),
    post_db_handler: PostDBHandler = Depends(),
):
    await post_db_handler.remove(post.id)
    logger.info(f"Post {post.id} deleted by its author")
    return success("Post deleted successfully")


@router.post("/{id}/like")
async def toggle_like(
    current_user: User = Depends(get_current_user),
    post: Post = Depends(get_post_or_404),
    post_db_handler: PostDBHandler = Depends(),
):
    """Like the post, or remove the caller's like if it is already there."""
    liked, like_count = await post_db_handler.toggle_like(post.id, current_user.id)
    return success(
        "Post liked" if liked else "Post unliked",
        liked=liked,
        likeCount=like_count,
    )


@router.post("/{id}/comment", status_code=status.HTTP_201_CREATED)
async def add_comment(
    payload: CommentCreateRequest,
    current_user: User = Depends(get_current_user),
    post: Post = Depends(get_post_or_404),
    post_db_handler: PostDBHandler = Depends(),
):
    comment, comment_count = await post_db_handler.add_comment(
        post.id, current_user.id, payload.content
    )
    return success(
        "Comment added successfully",
        comment=serialize_comment(comment),
        commentCount=comment_count,
    )
