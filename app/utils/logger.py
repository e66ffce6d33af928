"""
Logging utilities with Windows-compatible file rotation and performance monitoring.

Key Features:
    - Windows-safe file rotation with permission error handling
    - Separate error log so failures and stack traces are always persisted
    - Performance monitoring with context managers and decorators
    - Dynamic log level management
    - Automatic log cleanup and size management
"""

import datetime
import functools
import logging
import os
import sys
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path

try:
    import resource
except ImportError:  # Windows
    resource = None

LOG_DIR = Path(os.getenv("LOG_DIR", "logs"))
LOG_DIR.mkdir(parents=True, exist_ok=True)

# Global variables to ensure all loggers use the same log files
_GLOBAL_LOG_FILE = None
_GLOBAL_ERROR_LOG_FILE = None

LOG_FILE_BASENAME = "postboard"

LOG_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
)
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Log rotation settings
MAX_LOG_SIZE_MB = 5
MAX_LOG_SIZE_BYTES = MAX_LOG_SIZE_MB * 1024 * 1024
MAX_BACKUP_COUNT = 10

if _GLOBAL_LOG_FILE is None:
    now = datetime.datetime.now()
    run_timestamp = now.strftime("%Y-%m-%d_%H-%M-%S")

    date_dir = LOG_DIR / now.strftime("%Y-%m-%d")
    date_dir.mkdir(exist_ok=True)

    _GLOBAL_LOG_FILE = date_dir / f"{LOG_FILE_BASENAME}_{run_timestamp}.log"
    _GLOBAL_ERROR_LOG_FILE = (
        date_dir / f"{LOG_FILE_BASENAME}_errors_{run_timestamp}.log"
    )


class SafeRotatingFileHandler(RotatingFileHandler):
    """Windows-compatible size-based rotation handler with graceful error handling."""

    def doRollover(self):
        try:
            super().doRollover()
        except (OSError, PermissionError) as e:
            # The logger itself cannot be used here
            sys.stderr.write(
                f"Log rotation failed: {e}. Continuing with current log file.\n"
            )
            sys.stderr.flush()


class CombinedRotatingFileHandler(logging.Handler):
    """
    Handler that rotates logs based on size and writes to a shared log file.
    All loggers created by setup_logger share the same underlying file.
    """

    def __init__(
        self,
        log_file: Path = None,
        max_bytes=MAX_LOG_SIZE_BYTES,
        backup_count=MAX_BACKUP_COUNT,
    ):
        super().__init__()
        self.log_file = log_file or _GLOBAL_LOG_FILE
        self.max_bytes = max_bytes
        self.backup_count = backup_count
        self.current_handler = SafeRotatingFileHandler(
            self.log_file,
            maxBytes=self.max_bytes,
            backupCount=self.backup_count,
            encoding="utf-8",
        )

    def emit(self, record):
        if record.levelno < self.level:
            return
        self.current_handler.emit(record)

    def setFormatter(self, formatter):
        super().setFormatter(formatter)
        self.current_handler.setFormatter(formatter)

    def close(self):
        self.current_handler.close()
        super().close()


def _get_log_level(level_str: str) -> int:
    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    return level_map.get(level_str.upper(), logging.INFO)


def setup_logger(name: str, level: str = None) -> logging.Logger:
    """Set up logger with console, combined file and error file handlers."""
    logger = logging.getLogger(name)

    log_level = _get_log_level(level or DEFAULT_LOG_LEVEL)
    logger.setLevel(log_level)

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, DATE_FORMAT))

    file_formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    file_handler = CombinedRotatingFileHandler(_GLOBAL_LOG_FILE)
    file_handler.setLevel(log_level)
    file_handler.setFormatter(file_formatter)

    # Errors (with their tracebacks) always land here, whatever LOG_LEVEL says
    error_handler = CombinedRotatingFileHandler(_GLOBAL_ERROR_LOG_FILE)
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(file_formatter)

    logger.addHandler(console_handler)
    logger.addHandler(file_handler)
    logger.addHandler(error_handler)

    cleanup_old_logs(keep_days=7)

    return logger


def cleanup_old_logs(keep_days: int = 7):
    """
    Clean up log directories older than specified days.
    Handles Windows file locking issues gracefully.
    """
    cutoff_time = datetime.datetime.now() - datetime.timedelta(days=keep_days)
    deleted_count = 0
    failed_count = 0

    for date_dir in LOG_DIR.iterdir():
        if not date_dir.is_dir():
            continue
        try:
            dir_date = datetime.datetime.strptime(date_dir.name, "%Y-%m-%d")
        except ValueError:
            # Directory name doesn't match date format, skip
            continue
        if dir_date >= cutoff_time:
            continue

        for log_file in date_dir.iterdir():
            try:
                log_file.unlink()
                deleted_count += 1
            except (PermissionError, FileNotFoundError):
                failed_count += 1
        try:
            date_dir.rmdir()
        except OSError:
            pass  # Directory may not be empty due to failed deletions

    if deleted_count > 0 or failed_count > 0:
        print(
            f"Log cleanup completed: {deleted_count} files deleted, {failed_count} files failed to delete"
        )


_perf_logger = setup_logger("performance")


class PerformanceLogger:
    """
    Context manager timing a block of work.

        with PerformanceLogger("DB Query: users find") as timer:
            ...
        timer.duration_ms
    """

    def __init__(self, label: str, logger: logging.Logger = None):
        self.label = label
        self.logger = logger or _perf_logger
        self.duration_ms: float | None = None
        self._start: float | None = None

    def __enter__(self) -> "PerformanceLogger":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.duration_ms = (time.perf_counter() - self._start) * 1000
        if exc_type is None:
            self.logger.debug(
                f"Performance: {self.label} completed in {self.duration_ms:.2f}ms"
            )
        else:
            self.logger.debug(
                f"Performance: {self.label} failed after {self.duration_ms:.2f}ms"
            )
        return False


def log_performance(label: str = None):
    """Decorator logging the duration of an async function."""

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            with PerformanceLogger(label or func.__qualname__):
                return await func(*args, **kwargs)

        return wrapper

    return decorator


def get_memory_usage_mb() -> float | None:
    """Peak resident set size of this process in MB, None where unsupported."""
    if resource is None:
        return None
    max_rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # ru_maxrss is bytes on macOS and kilobytes on Linux
    if sys.platform == "darwin":
        return max_rss / 1024 / 1024
    return max_rss / 1024


def log_memory_usage(logger: logging.Logger = None) -> None:
    rss_mb = get_memory_usage_mb()
    if rss_mb is None:
        return
    (logger or _perf_logger).info(f"Memory Usage: rss={rss_mb:.0f} MB")
