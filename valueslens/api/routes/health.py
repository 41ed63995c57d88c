"""Health check endpoints for monitoring and deployment verification."""

import time

from fastapi import APIRouter, Response, status

from valueslens.api.middleware.latency_logging import get_latency_stats
from valueslens.core.config import get_settings
from valueslens.core.openai import get_openai_metrics
from valueslens.core.supabase import check_database_connection
from valueslens.schemas.common import CheckResult, HealthResponse, HealthStatus, ReadinessResponse

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness check",
    description="Basic health check to verify the service is running. Used for liveness probes.",
)
async def health_check() -> HealthResponse:
    """Return basic health status.

    This endpoint should always return 200 if the service is running.
    It does not check external dependencies.

    Returns:
        HealthResponse: Current health status with timestamp.
    """
    return HealthResponse(status=HealthStatus.HEALTHY)


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    responses={
        200: {"description": "All configured dependencies healthy"},
        503: {"description": "One or more dependencies unhealthy"},
    },
    summary="Readiness check",
    description="Check if configured dependencies are available. Used for readiness probes.",
)
async def readiness_check(response: Response) -> ReadinessResponse:
    """Check readiness of configured dependencies.

    Storage is only checked when it is configured; without it the service
    still answers every request in its degraded mode. Generation is reported
    but never fails readiness, since it always has a fallback.

    Args:
        response: FastAPI response object for setting status code.

    Returns:
        ReadinessResponse: Status of all dependency checks.
    """
    settings = get_settings()
    checks: list[CheckResult] = []

    if settings.is_storage_configured:
        start_time = time.perf_counter()
        db_result = await check_database_connection()
        latency_ms = (time.perf_counter() - start_time) * 1000
        checks.append(
            CheckResult(
                name="database",
                healthy=db_result["healthy"],
                latency_ms=round(latency_ms, 2),
                error=db_result.get("error"),
            )
        )

    checks.append(
        CheckResult(
            name="generation",
            healthy=True,
            error=None if settings.is_generation_configured else "not configured, serving fallbacks",
        )
    )

    all_healthy = all(check.healthy for check in checks)
    if not all_healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return ReadinessResponse(
        status=HealthStatus.HEALTHY if all_healthy else HealthStatus.UNHEALTHY,
        checks=checks,
    )


@router.get(
    "/health/stats",
    summary="Latency and generation stats",
    description="In-memory request latency and OpenAI call statistics.",
)
async def stats() -> dict:
    """Return request latency and OpenAI call stats collected since startup."""
    latency_stats = get_latency_stats()
    return {
        "requests": latency_stats.get_stats(),
        "by_path": latency_stats.get_stats_by_path(),
        "openai": get_openai_metrics().get_stats(),
    }
