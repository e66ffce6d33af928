"""
Base configurations and mixins for database models.

This module provides the foundation for all database models in the Postboard
application: the declarative base with dictionary serialization, timestamp
and UUID primary key mixins.
"""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, Uuid, inspect
from sqlalchemy.orm import declarative_base


def utcnow() -> datetime:
    return datetime.now(UTC)


class CustomBase:
    """
    Custom base class for SQLAlchemy models with enhanced serialization.

    `to_dict` converts model instances to dictionaries, rendering UUID and
    datetime values as strings. Columns listed in `__private_fields__` are
    never serialized.
    """

    __private_fields__: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        d = {}
        if not self:
            return d
        for column in inspect(self).mapper.column_attrs:
            if column.key in self.__private_fields__:
                continue
            value = getattr(self, column.key)
            if isinstance(value, uuid.UUID):
                d[column.key] = str(value)
            elif isinstance(value, datetime):
                d[column.key] = value.isoformat()
            else:
                d[column.key] = value
        return d


Base = declarative_base(cls=CustomBase)


class TimestampMixin:
    """
    Adds created_at and updated_at columns.

    Values are set application-side in UTC so ordering by creation time keeps
    sub-second precision on every backend.
    """

    created_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        comment="Timestamp when the record was created",
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
        comment="Timestamp when the record was last updated",
    )


class UUIDMixin:
    """UUID4 primary key, native UUID on PostgreSQL and CHAR(32) elsewhere."""

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        index=True,
        comment="Primary key using UUID4 format",
    )


__all__ = ["Base", "TimestampMixin", "UUIDMixin", "utcnow"]
