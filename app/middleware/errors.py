"""
Error responses for the HTTP layer.

`error_response` turns any exception into the uniform JSON error envelope via
`normalize_error`. It backs the FastAPI exception handlers registered in
`register_exception_handlers` as well as the request pipeline's catch-all.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from jose import JWTError
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.errors import AppError, build_error_body, normalize_error
from app.utils.logger import setup_logger
from app.utils.text_processing import generate_request_id

logger = setup_logger("error_handler")


def error_response(request: Request, exc: BaseException) -> JSONResponse:
    """Log the failure with its traceback and build the error envelope."""
    request_id = getattr(request.state, "request_id", None) or generate_request_id()
    normalized = normalize_error(
        exc, path=request.url.path, expose_message=settings.is_development
    )

    log_line = (
        f"{request.method} {request.url.path} -> {normalized.status_code} "
        f"{type(exc).__name__}: {exc} [requestId={request_id}]"
    )
    if normalized.status_code >= 500:
        logger.error(log_line, exc_info=exc)
    else:
        logger.warning(log_line, exc_info=exc)

    body = build_error_body(
        exc,
        normalized,
        request_id=request_id,
        include_stack=settings.is_development,
    )
    headers = {"X-Request-ID": request_id}
    extra_headers = getattr(exc, "headers", None)
    if isinstance(extra_headers, dict):
        headers.update(extra_headers)
    return JSONResponse(status_code=normalized.status_code, content=body, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    async def handle(request: Request, exc: Exception) -> JSONResponse:
        return error_response(request, exc)

    for exc_class in (
        AppError,
        RequestValidationError,
        StarletteHTTPException,
        SQLAlchemyError,
        JWTError,
        OSError,
    ):
        app.add_exception_handler(exc_class, handle)
