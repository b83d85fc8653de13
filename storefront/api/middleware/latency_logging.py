"""Request latency logging middleware."""

import logging
import re
import time
from collections import defaultdict, deque
from typing import Callable

from fastapi import Request, Response

logger = logging.getLogger(__name__)

# Thresholds for log levels (in milliseconds)
SLOW_REQUEST_THRESHOLD_MS = 1000
VERY_SLOW_REQUEST_THRESHOLD_MS = 3000

HEALTH_PATHS = ("/health", "/health/ready", "/health/stats")

# Requests that matched no route, and routes beyond the cap, share one bucket
OTHER_ROUTE = "other"
MAX_ROUTES = 100

# Cart IDs and order UUIDs collapse into one route so stats stay bounded
_PATH_PARAMS = (
    (re.compile(r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE), "{id}"),
    (re.compile(r"^(/api/v1/cart)/(?!$)[^/]+"), r"\1/{cart_id}"),
    (re.compile(r"^(/api/v1/payments)/(?!webhook$|delivery-methods$)[^/]+$"), r"\1/{cart_id}"),
    (re.compile(r"^(/api/v1/(?:cart/\{cart_id\}/coupon|coupons))/[^/]+$"), r"\1/{code}"),
)


def route_key(method: str, path: str) -> str:
    """Group a request under its route template, e.g. "POST /api/v1/payments/{cart_id}"."""
    for pattern, replacement in _PATH_PARAMS:
        path = pattern.sub(replacement, path)
    return f"{method} {path}"


class LatencyStats:
    """In-memory latency samples per route, exposed through /health/stats."""

    def __init__(self, max_samples: int = 500, max_routes: int = MAX_ROUTES):
        self._samples: dict[str, deque[float]] = defaultdict(lambda: deque(maxlen=max_samples))
        self._max_routes = max_routes

    def record(self, route: str, latency_ms: float) -> None:
        if route not in self._samples and len(self._samples) >= self._max_routes:
            route = OTHER_ROUTE
        self._samples[route].append(latency_ms)

    @staticmethod
    def _summary(latencies: list[float]) -> dict:
        latencies = sorted(latencies)
        total = len(latencies)
        return {
            "count": total,
            "avg_latency_ms": round(sum(latencies) / total, 2),
            "p50_latency_ms": round(latencies[int(total * 0.5)], 2),
            "p95_latency_ms": round(latencies[min(int(total * 0.95), total - 1)], 2),
        }

    def get_stats(self) -> dict:
        """Overall and per-route latency percentiles."""
        all_latencies = [latency for samples in self._samples.values() for latency in samples]
        if not all_latencies:
            return {"total_requests": 0, "routes": {}}

        return {
            "total_requests": len(all_latencies),
            **{k: v for k, v in self._summary(all_latencies).items() if k != "count"},
            "routes": {route: self._summary(list(samples)) for route, samples in sorted(self._samples.items())},
        }


# Global stats instance
_latency_stats: LatencyStats | None = None


def get_latency_stats() -> LatencyStats:
    """Get or create the global latency stats instance."""
    global _latency_stats
    if _latency_stats is None:
        _latency_stats = LatencyStats()
    return _latency_stats


async def latency_logging_middleware(request: Request, call_next: Callable) -> Response:
    """Log request latency and record it per route.

    Slow requests and error responses are logged at elevated levels.
    Health checks are neither recorded nor logged unless slow.
    """
    start_time = time.perf_counter()
    path = request.url.path
    is_health_check = path in HEALTH_PATHS

    response = None
    try:
        response = await call_next(request)
        return response
    finally:
        latency_ms = (time.perf_counter() - start_time) * 1000
        status_code = response.status_code if response else 500
        log_msg = f"{request.method} {path} - {status_code} - {latency_ms:.2f}ms"

        if is_health_check:
            if latency_ms > SLOW_REQUEST_THRESHOLD_MS:
                logger.warning(f"SLOW HEALTH CHECK: {log_msg}")
        else:
            # The router stores the matched route in the scope; 404s have none
            matched = request.scope.get("route") is not None
            get_latency_stats().record(route_key(request.method, path) if matched else OTHER_ROUTE, latency_ms)

            if status_code >= 500:
                logger.error(log_msg)
            elif latency_ms > VERY_SLOW_REQUEST_THRESHOLD_MS:
                logger.error(f"VERY SLOW REQUEST: {log_msg}")
            elif latency_ms > SLOW_REQUEST_THRESHOLD_MS:
                logger.warning(f"SLOW REQUEST: {log_msg}")
            elif status_code >= 400:
                logger.warning(log_msg)
            else:
                logger.info(log_msg)
