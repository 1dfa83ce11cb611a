"""
Prometheus instrumentation for the Leave Desk API.

This module sets up:
- HTTP request/exception counters and latency histogram
- Leave workflow counters (submissions, stage decisions, admission rejections)
- The /metrics endpoint
"""

from __future__ import annotations

import logging
import re
import time

from fastapi import Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

http_requests_total = Counter(
    "http_server_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

http_request_duration_seconds = Histogram(
    "http_server_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

http_exceptions_total = Counter(
    "http_server_exceptions_total",
    "Total unhandled exceptions",
    ["method", "path", "exception_type"],
)

leave_requests_submitted_total = Counter(
    "leave_requests_submitted_total",
    "Leave requests admitted",
    ["requester_kind"],
)

leave_stage_decisions_total = Counter(
    "leave_stage_decisions_total",
    "Approval stage decisions recorded",
    ["stage", "decision"],
)

leave_admission_rejections_total = Counter(
    "leave_admission_rejections_total",
    "Leave submissions refused at admission",
    ["code"],
)

_NUMERIC_SEGMENT = re.compile(r"/\d+(?=/|$)")


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to collect Prometheus metrics for all requests."""

    async def dispatch(self, request: Request, call_next) -> Response:
        # Skip metrics endpoint to avoid recursion
        if request.url.path == "/metrics":
            return await call_next(request)

        method = request.method
        path = self._normalize_path(request.url.path)
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            http_exceptions_total.labels(method=method, path=path, exception_type=type(e).__name__).inc()
            http_requests_total.labels(method=method, path=path, status=500).inc()
            http_request_duration_seconds.labels(method=method, path=path).observe(time.perf_counter() - start_time)
            raise

        http_requests_total.labels(method=method, path=path, status=response.status_code).inc()
        http_request_duration_seconds.labels(method=method, path=path).observe(time.perf_counter() - start_time)
        return response

    @staticmethod
    def _normalize_path(path: str) -> str:
        # Replace numeric ids to keep label cardinality bounded.
        return _NUMERIC_SEGMENT.sub("/{id}", path)


def metrics_endpoint() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
