from app.middleware.errors import error_response, register_exception_handlers
from app.middleware.pipeline import (
    Interceptor,
    PerformanceInterceptor,
    RequestIdInterceptor,
    RequestLoggingInterceptor,
    RequestPipelineMiddleware,
    default_interceptors,
)

__all__ = [
    "error_response",
    "register_exception_handlers",
    "Interceptor",
    "PerformanceInterceptor",
    "RequestIdInterceptor",
    "RequestLoggingInterceptor",
    "RequestPipelineMiddleware",
    "default_interceptors",
]
