from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.db_handlers.base import BaseDBHandler, check_local_db
from app.models.post import Post, PostComment, PostLike
from app.utils.logger import log_performance, setup_logger

logger = setup_logger("db_handlers.post")


def post_load_options() -> list:
    """Eager loads needed to serialize a post outside the session."""
    return [
        selectinload(Post.author),
        selectinload(Post.likes),
        selectinload(Post.comments).selectinload(PostComment.user),
    ]


class PostDBHandler(BaseDBHandler[Post]):
    def __init__(self):
        super().__init__(Post)

    @check_local_db
    async def get_post(
        self, post_id: uuid.UUID, *, db: AsyncSession = None
    ) -> Post | None:
        """Get a post with its author, likes and comments loaded."""
        stmt = (
            select(Post)
            .where(Post.id == post_id)
            .options(*post_load_options())
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        return result.scalars().first()

    @check_local_db
    @log_performance("DB Query: posts list_published")
    async def list_published(
        self,
        *,
        search: str | None = None,
        skip: int = 0,
        limit: int = 10,
        db: AsyncSession = None,
    ) -> tuple[list[Post], int]:
        """
        Page through published posts, newest first.

        `search` matches title, content or any tag, case-insensitively.
        Returns the page and the total number of matches.
        """
        conditions = [Post.is_published.is_(True)]
        if search:
            # Wildcards in the term match literally
            term = search.strip()
            conditions.append(
                or_(
                    Post.title.icontains(term, autoescape=True),
                    Post.content.icontains(term, autoescape=True),
                    cast(Post.tags, String).icontains(term, autoescape=True),
                )
            )

        stmt = (
            select(Post)
            .where(*conditions)
            .options(*post_load_options())
            .order_by(Post.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        count_stmt = select(func.count()).select_from(Post).where(*conditions)

        posts = list((await db.execute(stmt)).scalars().all())
        total = (await db.execute(count_stmt)).scalar_one()
        return posts, total

    @check_local_db
    async def create_post(
        self, author_id: uuid.UUID, data: dict[str, Any], *, db: AsyncSession = None
    ) -> Post:
        post = await self.create({**data, "author_id": author_id}, db=db)
        logger.info(f"Post {post.id} created by user {author_id}")
        return await self.get_post(post.id, db=db)

    @check_local_db
    async def update_post(
        self, post: Post, data: dict[str, Any], *, db: AsyncSession = None
    ) -> Post:
        post = await self.update(post, data, db=db)
        return await self.get_post(post.id, db=db)

    @check_local_db
    async def toggle_like(
        self, post_id: uuid.UUID, user_id: uuid.UUID, *, db: AsyncSession = None
    ) -> tuple[bool, int]:
        """
        Like the post if `user_id` has not liked it yet, otherwise unlike it.

        Runs as one transaction. A concurrent like from the same user that
        trips the unique constraint counts as liked. Returns the new liked
        state and like count.
        """
        stmt = select(PostLike).where(
            PostLike.post_id == post_id, PostLike.user_id == user_id
        )
        existing = (await db.execute(stmt)).scalars().first()

        if existing is not None:
            await db.delete(existing)
            await db.flush()
            liked = False
        else:
            db.add(PostLike(post_id=post_id, user_id=user_id))
            try:
                await db.flush()
            except IntegrityError:
                logger.info(
                    f"Concurrent like on post {post_id} by user {user_id}; keeping existing like"
                )
                await db.rollback()
            liked = True

        count_stmt = (
            select(func.count())
            .select_from(PostLike)
            .where(PostLike.post_id == post_id)
        )
        like_count = (await db.execute(count_stmt)).scalar_one()
        return liked, like_count

    @check_local_db
    async def add_comment(
        self,
        post_id: uuid.UUID,
        user_id: uuid.UUID,
        content: str,
        *,
        db: AsyncSession = None,
    ) -> tuple[PostComment, int]:
        """Append a comment. Returns the comment and the post's comment count."""
        comment = PostComment(post_id=post_id, user_id=user_id, content=content)
        db.add(comment)
        await db.flush()

        stmt = (
            select(PostComment)
            .where(PostComment.id == comment.id)
            .options(selectinload(PostComment.user))
            .execution_options(populate_existing=True)
        )
        comment = (await db.execute(stmt)).scalars().one()

        count_stmt = (
            select(func.count())
            .select_from(PostComment)
            .where(PostComment.post_id == post_id)
        )
        comment_count = (await db.execute(count_stmt)).scalar_one()
        return comment, comment_count
