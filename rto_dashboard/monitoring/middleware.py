"""HTTP middleware that records every completed request in the metrics store."""

import logging
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from rto_dashboard.config import settings
from rto_dashboard.monitoring.metrics import MetricsAggregator, metrics

logger = logging.getLogger(__name__)


class RequestMetricsMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        aggregator: MetricsAggregator | None = None,
        slow_request_ms: int | None = None,
    ):
        super().__init__(app)
        self.aggregator = aggregator or metrics
        self.slow_request_ms = settings.slow_request_ms if slow_request_ms is None else slow_request_ms

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start = time.perf_counter()
        method = request.method
        path = request.url.path
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - start) * 1000
            self.aggregator.record_request(method, path, 500, duration_ms)
            logger.exception("Unhandled error on %s %s", method, path)
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        self.aggregator.record_request(method, path, response.status_code, duration_ms)

        if duration_ms > self.slow_request_ms:
            logger.warning("Slow request: %s %s took %.0fms", method, path, duration_ms)

        return response
