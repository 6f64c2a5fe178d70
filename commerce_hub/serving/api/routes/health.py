"""
Health Check Endpoints

Health report and prometheus scrape endpoint.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel

from commerce_hub.container import Services
from commerce_hub.serving.api.dependencies import get_services

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    environment: str
    timestamp: datetime
    checks: Dict[str, Any]


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request, services: Services = Depends(get_services)) -> HealthResponse:
    """
    Comprehensive health check endpoint.

    Checks:
    - Commerce and analytics database connectivity
    - Broadcast hub subscribers
    - Redis connectivity (redis broadcast backend only)
    """
    settings = request.app.state.settings
    checks = await services.check_health()

    failing = [name for name, check in checks.items() if check.get("status") != "healthy"]
    if any(name.endswith("_db") for name in failing):
        overall_status = "unhealthy"
    elif failing:
        overall_status = "degraded"
    else:
        overall_status = "healthy"

    return HealthResponse(
        status=overall_status,
        version=settings.version,
        environment=settings.app_env,
        timestamp=datetime.now(timezone.utc),
        checks=checks,
    )


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Prometheus exposition of the process metrics."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
