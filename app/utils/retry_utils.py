"""
Database error classification used for retries and error responses.

Separates transient connectivity failures (worth a retry, reported as 503)
from constraint violations and other database errors.
"""

import errno

from asyncpg.exceptions import ConnectionDoesNotExistError
from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError

from app.utils.logger import setup_logger

logger = setup_logger("retry_utils")

CONNECTION_ERRNOS = (
    errno.ETIMEDOUT,
    errno.ECONNREFUSED,
    errno.EHOSTUNREACH,
    errno.ENETUNREACH,
)

# SQLSTATE for unique_violation in PostgreSQL
UNIQUE_VIOLATION_SQLSTATE = "23505"


def is_connection_error(e: BaseException) -> bool:
    """
    Classify an exception as a database connectivity failure.

    Handles driver errors wrapped by SQLAlchemy, lost asyncpg connections,
    and the common POSIX/Windows network errors.
    """
    if isinstance(e, DBAPIError):
        if isinstance(getattr(e, "orig", None), ConnectionDoesNotExistError):
            logger.info("ConnectionDoesNotExistError detected.")
            return True
        if e.connection_invalidated:
            return True
        return isinstance(e, OperationalError | InterfaceError)

    if isinstance(e, ConnectionDoesNotExistError | ConnectionError | TimeoutError):
        return True

    if isinstance(e, OSError):
        # Windows "semaphore timeout"
        if getattr(e, "winerror", None) == 121:
            return True
        if e.errno in CONNECTION_ERRNOS:
            return True

    return False


def is_unique_violation(e: BaseException) -> bool:
    """True when an IntegrityError comes from a unique constraint or index."""
    if not isinstance(e, IntegrityError):
        return False
    orig = getattr(e, "orig", None)
    if getattr(orig, "sqlstate", None) == UNIQUE_VIOLATION_SQLSTATE:
        return True
    text = str(orig if orig is not None else e).lower()
    return "unique" in text or "duplicate" in text
