"""Request latency logging middleware for performance monitoring."""

import logging
import re
import time
from collections import defaultdict
from typing import Callable

from fastapi import Request, Response

logger = logging.getLogger(__name__)

# Thresholds for log levels (in milliseconds). Generation routes wait on the
# model, so they get their own, looser threshold.
SLOW_REQUEST_THRESHOLD_MS = 1000
SLOW_GENERATION_THRESHOLD_MS = 15000

HEALTH_PATHS = ("/health", "/health/ready")
GENERATION_PREFIX = "/api/v1/ai/"

_PROFILE_SLUG = re.compile(r"(/profiles/)[^/]+")


class LatencyStats:
    """In-memory latency samples, reported by the readiness endpoint."""

    def __init__(self, max_samples: int = 1000):
        self._samples: list[tuple[str, float]] = []  # (path, latency_ms)
        self._max_samples = max_samples

    def record(self, path: str, latency_ms: float) -> None:
        """Record a latency sample."""
        self._samples.append((self._normalize_path(path), latency_ms))
        if len(self._samples) > self._max_samples:
            self._samples = self._samples[-self._max_samples:]

    def get_stats(self) -> dict:
        """Get aggregated stats."""
        if not self._samples:
            return {"total_requests": 0, "avg_latency_ms": 0, "p95_latency_ms": 0}

        latencies = sorted(s[1] for s in self._samples)
        total = len(latencies)
        return {
            "total_requests": total,
            "avg_latency_ms": round(sum(latencies) / total, 2),
            "p95_latency_ms": round(latencies[min(int(total * 0.95), total - 1)], 2),
        }

    def get_stats_by_path(self) -> dict:
        """Get request count and average latency per route."""
        by_path: dict[str, list[float]] = defaultdict(list)
        for path, latency in self._samples:
            by_path[path].append(latency)
        return {
            path: {"count": len(latencies), "avg_ms": round(sum(latencies) / len(latencies), 2)}
            for path, latencies in by_path.items()
        }

    @staticmethod
    def _normalize_path(path: str) -> str:
        """Collapse share slugs so every profile counts as one route."""
        return _PROFILE_SLUG.sub(r"\1{slug}", path)


# Global stats instance
_latency_stats: LatencyStats | None = None


def get_latency_stats() -> LatencyStats:
    """Get or create the global latency stats instance."""
    global _latency_stats
    if _latency_stats is None:
        _latency_stats = LatencyStats()
    return _latency_stats


async def latency_logging_middleware(request: Request, call_next: Callable) -> Response:
    """Middleware to log request latency and record it for the stats.

    Args:
        request: The incoming request.
        call_next: The next middleware/handler in the chain.

    Returns:
        Response: The response from the handler.
    """
    start_time = time.perf_counter()
    method = request.method
    path = request.url.path
    is_health_check = path in HEALTH_PATHS

    response = None
    try:
        response = await call_next(request)
        return response
    finally:
        latency_ms = (time.perf_counter() - start_time) * 1000
        status_code = response.status_code if response else 500
        log_msg = f"{method} {path} - {status_code} - {latency_ms:.2f}ms"
        slow_threshold = (
            SLOW_GENERATION_THRESHOLD_MS if path.startswith(GENERATION_PREFIX) else SLOW_REQUEST_THRESHOLD_MS
        )

        if is_health_check:
            logger.debug(log_msg)
        else:
            get_latency_stats().record(path, latency_ms)
            if status_code >= 500:
                logger.error(log_msg)
            elif latency_ms > slow_threshold:
                logger.warning(f"SLOW REQUEST: {log_msg}")
            elif status_code >= 400:
                logger.warning(log_msg)
            else:
                logger.info(log_msg)
