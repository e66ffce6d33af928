"""
Request pipeline built from an explicit, ordered list of interceptors.

Each interceptor may act on the way in (`before`) and on the way out
(`after`). `before` returns None to let the request continue, or a response
to stop the chain there; `after` hooks of every interceptor that was entered
run in reverse order. Exceptions escaping the application are turned into
the error envelope before the `after` hooks run, so every response carries
an `X-Request-ID`.
"""

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from app.middleware.errors import error_response
from app.services.metrics import RequestMetrics
from app.utils.logger import setup_logger
from app.utils.text_processing import generate_request_id

logger = setup_logger("request")

REQUEST_ID_HEADER = "X-Request-ID"

# Noisy paths that are not logged per request
SKIP_LOGGING_PATHS = {"/api/health", "/favicon.ico", "/docs", "/openapi.json"}


def route_template(request: Request) -> str:
    """The matched route's path template, or the raw path when unrouted."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


class Interceptor:
    """Base interceptor; both hooks are no-ops."""

    name = "interceptor"

    async def before(self, request: Request) -> Response | None:
        return None

    async def after(self, request: Request, response: Response) -> Response:
        return response


class RequestIdInterceptor(Interceptor):
    """Echo the caller's X-Request-ID or assign a new one."""

    name = "request_id"

    async def before(self, request: Request) -> Response | None:
        request.state.request_id = (
            request.headers.get(REQUEST_ID_HEADER) or generate_request_id()
        )
        return None

    async def after(self, request: Request, response: Response) -> Response:
        response.headers[REQUEST_ID_HEADER] = request.state.request_id
        return response


class RequestLoggingInterceptor(Interceptor):
    name = "request_logging"

    async def before(self, request: Request) -> Response | None:
        if request.url.path not in SKIP_LOGGING_PATHS:
            client_ip = request.client.host if request.client else "unknown"
            logger.info(
                f"→ {request.method} {request.url.path} from {client_ip} "
                f"[requestId={getattr(request.state, 'request_id', '-')}]"
            )
        return None

    async def after(self, request: Request, response: Response) -> Response:
        if request.url.path in SKIP_LOGGING_PATHS:
            return response

        status_code = response.status_code
        if status_code >= 500:
            log = logger.error
        elif status_code >= 400:
            log = logger.warning
        else:
            log = logger.info
        log(
            f"← {request.method} {request.url.path} - {status_code} "
            f"[requestId={getattr(request.state, 'request_id', '-')}]"
        )
        return response


class PerformanceInterceptor(Interceptor):
    """Time the request, warn when slow and feed the request metrics."""

    name = "performance"

    def __init__(self, metrics: RequestMetrics):
        self.metrics = metrics

    async def before(self, request: Request) -> Response | None:
        request.state.started_at = time.perf_counter()
        return None

    async def after(self, request: Request, response: Response) -> Response:
        started_at = getattr(request.state, "started_at", None)
        if started_at is None:
            return response

        duration_ms = (time.perf_counter() - started_at) * 1000
        route = route_template(request)
        self.metrics.track(request.method, route, duration_ms, response.status_code)
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"

        if duration_ms > self.metrics.slow_threshold_ms:
            logger.warning(
                f"Slow Request Detected: {request.method} {route} took {duration_ms:.2f}ms"
            )
        else:
            logger.debug(f"{request.method} {route} took {duration_ms:.2f}ms")
        return response


def default_interceptors(metrics: RequestMetrics) -> list[Interceptor]:
    """The standard chain: request id first so later hooks can log it."""
    return [
        RequestIdInterceptor(),
        RequestLoggingInterceptor(),
        PerformanceInterceptor(metrics),
    ]


class RequestPipelineMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, interceptors: list[Interceptor]):
        super().__init__(app)
        self.interceptors = list(interceptors)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        entered: list[Interceptor] = []
        response: Response | None = None

        try:
            for interceptor in self.interceptors:
                entered.append(interceptor)
                response = await interceptor.before(request)
                if response is not None:
                    logger.debug(
                        f"Request short-circuited by {interceptor.name}: "
                        f"{request.method} {request.url.path}"
                    )
                    break
            if response is None:
                response = await call_next(request)
        except Exception as exc:
            response = error_response(request, exc)

        for interceptor in reversed(entered):
            response = await interceptor.after(request, response)
        return response
