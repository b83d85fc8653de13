"""Health check endpoints for monitoring and deployment verification."""

import time

from fastapi import APIRouter, Response, status

from storefront.api.middleware.latency_logging import get_latency_stats
from storefront.core.config import get_settings
from storefront.core.notifications import get_notification_hub
from storefront.core.supabase import check_database_connection
from storefront.schemas.common import (
    CheckResult,
    HealthResponse,
    HealthStatus,
    ReadinessResponse,
    StatsResponse,
)

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness check",
    description="Basic health check to verify the service is running. Used for liveness probes.",
)
async def health_check() -> HealthResponse:
    """Return basic health status.

    Always 200 while the process is running; no dependencies are checked.
    """
    return HealthResponse(status=HealthStatus.HEALTHY)


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    responses={
        200: {"description": "All dependencies healthy"},
        503: {"description": "One or more dependencies unhealthy"},
    },
    summary="Readiness check",
    description="Check if all dependencies are available. Used for readiness probes.",
)
async def readiness_check(response: Response) -> ReadinessResponse:
    """Check readiness of all dependencies.

    Verifies database connectivity and that the payment gateway is
    configured. Returns 503 if any check fails.

    Args:
        response: FastAPI response object for setting status code.

    Returns:
        ReadinessResponse: Status of all dependency checks.
    """
    checks: list[CheckResult] = []

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

    paystack_configured = bool(get_settings().paystack_secret_key)
    checks.append(
        CheckResult(
            name="paystack",
            healthy=paystack_configured,
            error=None if paystack_configured else "PAYSTACK_SECRET_KEY not set",
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
    response_model=StatsResponse,
    summary="Runtime statistics",
    description="Request latency and live notification connection counts.",
)
async def runtime_stats() -> StatsResponse:
    """Return request latency stats and the number of live notification connections."""
    return StatsResponse(
        latency=get_latency_stats().get_stats(),
        notification_connections=get_notification_hub().connection_count(),
    )
