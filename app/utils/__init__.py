"""
Common utilities package for the Postboard application.

Logging, connection-error detection and text helpers. Token and password
helpers live in `app.utils.auth`, which depends on the settings module.
"""

from app.utils.logger import PerformanceLogger, log_performance, setup_logger
from app.utils.retry_utils import is_connection_error, is_unique_violation
from app.utils.text_processing import (
    build_pagination,
    calculate_reading_time,
    generate_request_id,
    generate_slug,
)

__all__ = [
    # Logging utilities
    "setup_logger",
    "PerformanceLogger",
    "log_performance",
    # Error classification
    "is_connection_error",
    "is_unique_violation",
    # Text helpers
    "build_pagination",
    "calculate_reading_time",
    "generate_request_id",
    "generate_slug",
]
