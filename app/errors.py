"""
Domain errors and the error normalizer.

Every failure raised while handling a request ends up in `normalize_error`,
which maps it to a status code and a message for the uniform error envelope:

    {"status": "error", "message": ..., "errors"?: [...], "timestamp": ..., "requestId": ...}

Precedence follows the order of the checks in `normalize_error`.
"""

import re
import traceback
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from fastapi.exceptions import RequestValidationError
from jose import ExpiredSignatureError, JWTError
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.utils.logger import setup_logger
from app.utils.retry_utils import is_connection_error, is_unique_violation

logger = setup_logger("errors")

GENERIC_MESSAGE = "Server Error"


class AppError(Exception):
    """Base class for errors that carry their own HTTP status."""

    status_code = 500
    default_message = GENERIC_MESSAGE

    def __init__(self, message: str | None = None, status_code: int | None = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(AppError):
    """Schema-level validation failure; `errors` maps field path to message."""

    status_code = 400
    default_message = "Validation failed"

    def __init__(self, errors: dict[str, str] | str, message: str | None = None):
        if isinstance(errors, str):
            errors = {"__root__": errors}
        self.errors = errors
        super().__init__(message or ", ".join(errors.values()))


class DuplicateError(AppError):
    status_code = 400
    default_message = "Duplicate field value entered"


class InvalidIdentifierError(AppError):
    """A path identifier that cannot be parsed into a primary key."""

    status_code = 404
    default_message = "Resource not found"

    def __init__(self, value: Any = None, path: str = "id"):
        self.value = value
        self.path = path
        super().__init__()


class NotFoundError(AppError):
    status_code = 404
    default_message = "Resource not found"


class ForbiddenError(AppError):
    status_code = 403
    default_message = "Not authorized to access this resource"


class UnauthenticatedError(AppError):
    status_code = 401
    default_message = "No token, authorization denied"


class InvalidTokenError(AppError):
    status_code = 401
    default_message = "Token is not valid"


class RateLimitedError(AppError):
    status_code = 429
    default_message = "Too many requests, please try again later"


class ServiceUnavailableError(AppError):
    status_code = 503
    default_message = "Database connection error"


@dataclass
class NormalizedError:
    status_code: int
    message: str
    errors: list[dict[str, str]] | None = field(default=None)


def _humanize(name: str) -> str:
    """'firstName' -> 'First name', 'new_password' -> 'New password'."""
    words = re.sub(r"(?<!^)(?=[A-Z])", " ", name).replace("_", " ").split()
    if not words:
        return name
    text = " ".join(words).lower()
    return text[0].upper() + text[1:]


def _pydantic_error_items(raw_errors: list[dict[str, Any]]) -> list[dict[str, str]]:
    items = []
    for err in raw_errors:
        loc = [str(part) for part in err.get("loc", ())]
        if loc and loc[0] in ("body", "query", "path", "header"):
            loc = loc[1:]
        path = ".".join(loc)
        err_type = err.get("type", "")
        ctx = err.get("ctx") or {}

        if err_type == "value_error" and "error" in ctx:
            msg = str(ctx["error"])
        elif err_type == "missing":
            msg = f"{_humanize(loc[-1]) if loc else 'Value'} is required"
        elif err_type == "json_invalid":
            msg = "Malformed JSON body"
        else:
            msg = err.get("msg", "Invalid value")
            if path:
                msg = f"{_humanize(loc[-1])}: {msg}"
        items.append({"path": path, "msg": msg})
    return items


def _status_of(exc: BaseException) -> int | None:
    status = getattr(exc, "status_code", None)
    if status is None:
        status = getattr(exc, "status", None)
    return status if isinstance(status, int) else None


def normalize_error(exc: BaseException, *, path: str | None = None, expose_message: bool = False) -> NormalizedError:
    """
    Map any exception to a status code and public message.

    Unexpected exceptions answer with their own message, or "Server Error"
    when it is empty. Database errors answer "Server Error" unless
    `expose_message` is set (development).
    """
    # Malformed identifiers
    if isinstance(exc, InvalidIdentifierError):
        logger.warning(f"Invalid identifier: value={exc.value!r} path={exc.path}")
        return NormalizedError(404, "Resource not found")

    # Uniqueness conflicts
    if isinstance(exc, DuplicateError):
        logger.warning(f"Duplicate Key Error: {exc.message}")
        return NormalizedError(400, exc.message)
    if isinstance(exc, IntegrityError) and is_unique_violation(exc):
        logger.warning(f"Duplicate Key Error: {exc.orig}")
        return NormalizedError(400, DuplicateError.default_message)

    # Schema validation
    if isinstance(exc, ValidationError):
        items = [
            {"path": key, "msg": msg} for key, msg in exc.errors.items()
        ]
        logger.warning(f"Validation Error: fields={list(exc.errors)}")
        return NormalizedError(400, ", ".join(exc.errors.values()), items)
    if isinstance(exc, RequestValidationError | PydanticValidationError):
        items = _pydantic_error_items(list(exc.errors()))
        logger.warning(f"Validation Error: fields={[item['path'] for item in items]}")
        return NormalizedError(400, ", ".join(item["msg"] for item in items), items)

    # Tokens; ExpiredSignatureError subclasses JWTError so it is checked first
    if isinstance(exc, ExpiredSignatureError):
        logger.warning("JWT Error: type=expired_token")
        return NormalizedError(401, "Token expired")
    if isinstance(exc, JWTError):
        logger.warning("JWT Error: type=invalid_token")
        return NormalizedError(401, "Invalid token")

    # Rate limiting
    if isinstance(exc, RateLimitedError) or _status_of(exc) == 429:
        logger.warning("Rate Limit Exceeded")
        return NormalizedError(429, RateLimitedError.default_message)

    # Connectivity
    if isinstance(exc, ServiceUnavailableError) or is_connection_error(exc):
        logger.error(f"Database Connection Error: {exc}")
        return NormalizedError(503, ServiceUnavailableError.default_message)

    # Framework HTTP errors (unknown routes, wrong methods, ...)
    if isinstance(exc, StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == "Not Found" and path:
            return NormalizedError(404, f"Route {path} not found")
        detail = exc.detail if isinstance(exc.detail, str) else GENERIC_MESSAGE
        return NormalizedError(exc.status_code, detail)

    if isinstance(exc, AppError):
        return NormalizedError(exc.status_code, exc.message)

    status = _status_of(exc) or 500
    if isinstance(exc, SQLAlchemyError) and not expose_message:
        return NormalizedError(status, GENERIC_MESSAGE)
    return NormalizedError(status, str(exc) or GENERIC_MESSAGE)


def build_error_body(
    exc: BaseException,
    normalized: NormalizedError,
    *,
    request_id: str,
    include_stack: bool = False,
) -> dict[str, Any]:
    """Assemble the uniform error envelope."""
    body: dict[str, Any] = {"status": "error", "message": normalized.message}
    if normalized.errors:
        body["errors"] = normalized.errors
    if include_stack:
        body["stack"] = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )
    body["timestamp"] = datetime.now(UTC).isoformat()
    body["requestId"] = request_id
    return body
