"""
Authentication dependencies for FastAPI route protection.

`get_current_user` is the gate for protected routes: it reads the bearer
token from the Authorization header, verifies it, loads the user and stores
it on `request.state.user`. Every rejection is a 401:

- no header: "No token, authorization denied"
- anything else (malformed header, bad signature, expired token, unknown
  user): "Token is not valid"

Expired and invalid tokens are logged differently so they can be told apart.
"""

import uuid

from fastapi import Depends, Request
from jose import ExpiredSignatureError, JWTError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_app_db
from app.db_handlers.user import UserDBHandler
from app.errors import AppError, InvalidTokenError, UnauthenticatedError
from app.models import User
from app.utils.auth import extract_user_id_from_token
from app.utils.logger import setup_logger

logger = setup_logger("auth")

BEARER_PREFIX = "Bearer "


def _extract_bearer_token(request: Request) -> str:
    header = request.headers.get("Authorization")
    if not header:
        logger.info(f"Auth rejected: no token ({request.method} {request.url.path})")
        raise UnauthenticatedError()
    if not header.startswith(BEARER_PREFIX) or not header[len(BEARER_PREFIX) :].strip():
        logger.warning(
            f"Auth rejected: malformed authorization header ({request.method} {request.url.path})"
        )
        raise InvalidTokenError()
    return header[len(BEARER_PREFIX) :].strip()


async def _resolve_user(token: str, request: Request, db: AsyncSession) -> User:
    try:
        user_id = extract_user_id_from_token(token)
    except ExpiredSignatureError as e:
        logger.warning(f"Auth rejected: expired token ({request.method} {request.url.path})")
        raise InvalidTokenError() from e
    except JWTError as e:
        logger.warning(
            f"Auth rejected: invalid token ({request.method} {request.url.path}): {e}"
        )
        raise InvalidTokenError() from e

    try:
        user_uuid = uuid.UUID(str(user_id))
    except ValueError as e:
        logger.warning(f"Auth rejected: token without a valid userId claim: {user_id!r}")
        raise InvalidTokenError() from e

    try:
        user = await UserDBHandler().get(user_uuid, db=db)
    except SQLAlchemyError as e:
        logger.error(f"Auth rejected: user lookup failed for {user_uuid}: {e}", exc_info=True)
        raise InvalidTokenError() from e

    if user is None:
        logger.warning(f"Auth rejected: token for unknown user {user_uuid}")
        raise InvalidTokenError()

    return user


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_app_db),
) -> User:
    """
    Dependency to get the current authenticated user from JWT token.
    """
    token = _extract_bearer_token(request)
    user = await _resolve_user(token, request, db)
    request.state.user = user
    return user


async def get_current_user_optional(
    request: Request,
    db: AsyncSession = Depends(get_app_db),
) -> User | None:
    """
    Optional dependency to get the current authenticated user.
    Returns None if no valid token is provided instead of raising an exception.
    """
    if not request.headers.get("Authorization"):
        return None

    try:
        token = _extract_bearer_token(request)
        user = await _resolve_user(token, request, db)
    except AppError:
        return None

    request.state.user = user
    return user
