from __future__ import annotations

import asyncio
from functools import wraps
from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import AppAsyncSessionLocal
from app.errors import AppError
from app.models.base import Base
from app.utils.logger import setup_logger
from app.utils.retry_utils import is_connection_error

logger = setup_logger("db_handlers")

MAX_ATTEMPTS = 3

ModelType = TypeVar("ModelType", bound=Base)


def check_local_db(func):
    """Database session decorator with transaction management and retry logic."""

    @wraps(func)
    async def wrapper(*args, **kwargs):
        # A caller-provided session means the caller owns the transaction
        if kwargs.get("db"):
            return await func(*args, **kwargs)

        last_exception = None
        for attempt in range(MAX_ATTEMPTS):
            async with AppAsyncSessionLocal() as db:
                kwargs["db"] = db
                try:
                    result = await func(*args, **kwargs)
                    await db.commit()
                    return result
                except AppError:
                    await db.rollback()
                    raise
                except Exception as e:
                    await db.rollback()
                    if is_connection_error(e) and attempt < MAX_ATTEMPTS - 1:
                        last_exception = e
                        logger.warning(
                            f"Connection error in {func.__name__} (attempt {attempt + 1}/{MAX_ATTEMPTS}): {e}. Retrying..."
                        )
                        await asyncio.sleep(1 + attempt)
                        continue
                    if isinstance(e, IntegrityError):
                        logger.warning(f"IntegrityError in {func.__name__}: {e.orig}")
                    else:
                        logger.error(
                            f"Transaction failed in {func.__name__} (attempt {attempt + 1}/{MAX_ATTEMPTS}): {e}",
                            exc_info=True,
                        )
                    raise

        logger.error(
            f"All retries failed for {func.__name__}. Last error: {last_exception}"
        )
        raise last_exception

    return wrapper


class BaseDBHandler(Generic[ModelType]):
    """Generic handler for database operations with basic CRUD methods."""

    def __init__(self, model: type[ModelType]):
        self.model = model

    @check_local_db
    async def create(
        self, obj_dict: dict[str, Any], *, db: AsyncSession = None
    ) -> ModelType:
        """Create a new record; the enclosing transaction commits it."""
        db_obj = self.model(**obj_dict)
        db.add(db_obj)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.warning(f"Error creating {self.model.__name__}: {e}")
            raise
        await db.refresh(db_obj)
        return db_obj

    @check_local_db
    async def get(self, id: Any, *, db: AsyncSession = None) -> ModelType | None:
        """Get a single record by its primary key."""
        stmt = select(self.model).where(self.model.id == id)
        result = await db.execute(stmt)
        return result.scalars().first()

    @check_local_db
    async def update(
        self,
        db_obj: ModelType,
        update_data: dict[str, Any],
        *,
        db: AsyncSession = None,
    ) -> ModelType:
        """Apply `update_data` to `db_obj` and persist it."""
        db_obj = await db.merge(db_obj)
        # Attributes are unreadable once a failed flush leaves the session pending rollback
        obj_id = db_obj.id
        for field, value in update_data.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)

        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.warning(
                f"Error updating {self.model.__name__} with id {obj_id}: {e}"
            )
            raise
        await db.refresh(db_obj)
        return db_obj

    @check_local_db
    async def remove(self, id: Any, *, db: AsyncSession = None) -> ModelType | None:
        """Remove a record from the database by its primary key."""
        obj = await self.get(id=id, db=db)
        if obj is None:
            return None
        await db.delete(obj)
        await db.flush()
        return obj
