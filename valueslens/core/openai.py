"""OpenAI client with timing, retry logic, and performance monitoring."""

import logging
import time
from functools import lru_cache
from typing import Any

from openai import APIConnectionError, APITimeoutError, OpenAI, RateLimitError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from valueslens.core.config import get_settings

logger = logging.getLogger(__name__)

# Retry configuration. Timeouts are not retried: a timed out call has
# already spent the caller's whole wait budget.
MAX_RETRIES = 2
MIN_WAIT_SECONDS = 1
MAX_WAIT_SECONDS = 4

# Latency thresholds for logging (milliseconds)
SLOW_CALL_THRESHOLD_MS = 5000
VERY_SLOW_CALL_THRESHOLD_MS = 15000


class OpenAIMetrics:
    """Tracks OpenAI API call metrics for monitoring."""

    def __init__(self, max_samples: int = 500):
        self._samples: list[dict] = []
        self._max_samples = max_samples
        self._total_calls = 0
        self._total_errors = 0

    def record_call(
        self,
        operation: str,
        latency_ms: float,
        model: str,
        tokens_used: int | None = None,
        error: str | None = None,
    ) -> None:
        """Record an API call."""
        self._total_calls += 1
        if error:
            self._total_errors += 1

        self._samples.append(
            {
                "operation": operation,
                "latency_ms": round(latency_ms, 2),
                "model": model,
                "tokens_used": tokens_used,
                "error": error,
                "timestamp": time.time(),
            }
        )

        if len(self._samples) > self._max_samples:
            self._samples = self._samples[-self._max_samples:]

    def get_stats(self) -> dict:
        """Get aggregated stats."""
        if not self._samples:
            return {
                "total_calls": self._total_calls,
                "total_errors": self._total_errors,
                "error_rate": 0,
                "avg_latency_ms": 0,
                "p95_latency_ms": 0,
            }

        latencies = sorted(s["latency_ms"] for s in self._samples)
        total = len(latencies)
        error_count = sum(1 for s in self._samples if s.get("error"))

        return {
            "total_calls": self._total_calls,
            "total_errors": self._total_errors,
            "error_rate": round(error_count / total * 100, 2),
            "avg_latency_ms": round(sum(latencies) / total, 2),
            "p95_latency_ms": round(latencies[min(int(total * 0.95), total - 1)], 2),
        }


# Global metrics instance
_openai_metrics: OpenAIMetrics | None = None


def get_openai_metrics() -> OpenAIMetrics:
    """Get or create the global OpenAI metrics instance."""
    global _openai_metrics
    if _openai_metrics is None:
        _openai_metrics = OpenAIMetrics()
    return _openai_metrics


class TimedOpenAIClient:
    """OpenAI client wrapper with timing, retry logic, and metrics.

    This wrapper adds:
    - Automatic retry with exponential backoff for connection and rate errors
    - A per-call timeout taken from settings
    - Latency logging and metrics collection
    """

    def __init__(self, client: OpenAI):
        self._client = client
        self._metrics = get_openai_metrics()
        self._settings = get_settings()

    @property
    def chat(self) -> "TimedChatCompletions":
        """Get the timed chat completions interface."""
        return TimedChatCompletions(self._client.chat.completions, self._metrics, self._settings)

    # Pass through other attributes to the underlying client
    def __getattr__(self, name: str) -> Any:
        return getattr(self._client, name)


class TimedChatCompletions:
    """Chat completions with timing and retry logic."""

    def __init__(self, completions: Any, metrics: OpenAIMetrics, settings: Any):
        self._completions = completions
        self._metrics = metrics
        self._settings = settings

    @retry(
        retry=retry_if_exception_type((APIConnectionError, RateLimitError)),
        stop=stop_after_attempt(MAX_RETRIES),
        wait=wait_exponential(multiplier=1, min=MIN_WAIT_SECONDS, max=MAX_WAIT_SECONDS),
        reraise=True,
    )
    def _create_with_retry(self, **kwargs: Any) -> Any:
        """Create chat completion with retry logic."""
        return self._completions.create(**kwargs)

    def create(self, **kwargs: Any) -> Any:
        """Create a chat completion with timing, timeout and retry.

        Args:
            **kwargs: Arguments to pass to the OpenAI API.

        Returns:
            The chat completion response.
        """
        kwargs.setdefault("timeout", self._settings.generation_timeout_seconds)
        model = kwargs.get("model", "unknown")
        start_time = time.perf_counter()
        error_msg = None
        tokens_used = None

        try:
            response = self._create_with_retry(**kwargs)

            if hasattr(response, "usage") and response.usage:
                tokens_used = response.usage.total_tokens

            return response

        except APITimeoutError as e:
            error_msg = f"{type(e).__name__}: {str(e)}"
            logger.error("OpenAI chat completion timed out after %ss", kwargs["timeout"])
            raise

        except Exception as e:
            error_msg = f"{type(e).__name__}: {str(e)}"
            logger.error("OpenAI chat completion error: %s", error_msg)
            raise

        finally:
            latency_ms = (time.perf_counter() - start_time) * 1000

            self._metrics.record_call(
                operation="chat.completions.create",
                latency_ms=latency_ms,
                model=model,
                tokens_used=tokens_used,
                error=error_msg,
            )

            log_msg = (
                f"OpenAI chat completion: model={model}, "
                f"latency={latency_ms:.2f}ms, tokens={tokens_used or 'N/A'}"
            )

            if error_msg:
                logger.error(log_msg + f", error={error_msg}")
            elif latency_ms > VERY_SLOW_CALL_THRESHOLD_MS:
                logger.warning(f"VERY SLOW OpenAI call: {log_msg}")
            elif latency_ms > SLOW_CALL_THRESHOLD_MS:
                logger.warning(f"SLOW OpenAI call: {log_msg}")
            else:
                logger.info(log_msg)


@lru_cache
def get_openai_client() -> TimedOpenAIClient | None:
    """Get cached OpenAI client, or None when generation is not configured.

    Returns:
        TimedOpenAIClient | None: Client instance, or None if no API key is
            set or mock mode is on.
    """
    settings = get_settings()
    if not settings.is_generation_configured:
        logger.warning("OpenAI generation not configured; deterministic fallbacks will be used")
        return None
    raw_client = OpenAI(api_key=settings.openai_api_key, max_retries=0)
    return TimedOpenAIClient(raw_client)
