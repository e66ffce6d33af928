from __future__ import annotations

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db_handlers.base import BaseDBHandler, check_local_db
from app.models.user import User
from app.utils.logger import log_performance, setup_logger

logger = setup_logger("db_handlers.user")


class UserDBHandler(BaseDBHandler[User]):
    def __init__(self):
        super().__init__(User)

    @check_local_db
    async def get_user_by_email(
        self, email: str, *, db: AsyncSession = None
    ) -> User | None:
        """Get a user by email. Emails are stored lowercased."""
        stmt = select(User).filter(User.email == email.strip().lower())
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @check_local_db
    async def get_by_email_or_username(
        self,
        *,
        email: str | None = None,
        username: str | None = None,
        db: AsyncSession = None,
    ) -> User | None:
        """Get the first user matching either the email or the username."""
        conditions = []
        if email:
            conditions.append(User.email == email.strip().lower())
        if username:
            conditions.append(User.username == username.strip())
        if not conditions:
            return None
        stmt = select(User).filter(or_(*conditions)).limit(1)
        result = await db.execute(stmt)
        return result.scalars().first()

    @check_local_db
    async def get_login_user(
        self,
        *,
        email: str | None = None,
        username: str | None = None,
        db: AsyncSession = None,
    ) -> User | None:
        """
        The account a login body refers to.

        When an email is given it alone decides the account; the username is
        used only for email-less logins.
        """
        if email:
            return await self.get_user_by_email(email, db=db)
        if not username:
            return None
        stmt = select(User).filter(User.username == username.strip())
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @check_local_db
    @log_performance("DB Query: users search")
    async def search_users(
        self,
        *,
        search: str | None = None,
        skip: int = 0,
        limit: int = 10,
        db: AsyncSession = None,
    ) -> tuple[list[User], int]:
        """
        Page through users, newest first.

        `search` is a case-insensitive substring match over username and
        email. Returns the page and the total number of matches.
        """
        stmt = select(User)
        count_stmt = select(func.count()).select_from(User)
        if search:
            term = search.strip()
            condition = or_(
                User.username.icontains(term, autoescape=True),
                User.email.icontains(term, autoescape=True),
            )
            stmt = stmt.filter(condition)
            count_stmt = count_stmt.filter(condition)

        stmt = stmt.order_by(User.created_at.desc()).offset(skip).limit(limit)
        users = list((await db.execute(stmt)).scalars().all())
        total = (await db.execute(count_stmt)).scalar_one()
        return users, total
