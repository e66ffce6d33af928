"""
Request metrics: per-endpoint counters for slow and failing requests.

A `RequestMetrics` instance is owned by the application (`app.state.metrics`)
and fed by the performance interceptor. `run_periodic_report` logs its report
on an interval until cancelled.
"""

import asyncio
from collections import Counter
from datetime import UTC, datetime
from typing import Any

from app.utils.logger import log_memory_usage, setup_logger

logger = setup_logger("metrics")

DEFAULT_TOP_N = 10


class RequestMetrics:
    def __init__(self, slow_threshold_ms: float = 1000.0, top_n: int = DEFAULT_TOP_N):
        self.slow_threshold_ms = slow_threshold_ms
        self.top_n = top_n
        self.total_requests = 0
        self.slow: Counter[str] = Counter()
        self.errors: Counter[str] = Counter()

    @staticmethod
    def endpoint_key(method: str, route: str) -> str:
        return f"{method.upper()} {route}"

    def track(self, method: str, route: str, duration_ms: float, status_code: int) -> None:
        """Record one finished request."""
        endpoint = self.endpoint_key(method, route)
        self.total_requests += 1
        if duration_ms > self.slow_threshold_ms:
            self.slow[endpoint] += 1
        if status_code >= 400:
            self.errors[endpoint] += 1

    def get_slow_endpoints(self) -> list[tuple[str, int]]:
        """Slowest endpoints by number of slow requests, most frequent first."""
        return self.slow.most_common(self.top_n)

    def get_error_endpoints(self) -> list[tuple[str, int]]:
        return self.errors.most_common(self.top_n)

    def generate_report(self) -> dict[str, Any]:
        report = {
            "totalRequests": self.total_requests,
            "slowEndpoints": self.get_slow_endpoints(),
            "errorEndpoints": self.get_error_endpoints(),
            "timestamp": datetime.now(UTC).isoformat(),
        }
        logger.info(f"Performance Report: {report}")
        return report

    def reset(self) -> None:
        self.total_requests = 0
        self.slow.clear()
        self.errors.clear()


async def run_periodic_report(metrics: RequestMetrics, interval_seconds: float) -> None:
    """Log a metrics report and memory usage every `interval_seconds`."""
    while True:
        await asyncio.sleep(interval_seconds)
        metrics.generate_report()
        log_memory_usage(logger)
