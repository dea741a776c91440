"""Core routes: health, metrics.

- /health: public, rate limited
- /metrics: Prometheus text exposition
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from tipping.security import health_rate_limit, limiter
from tipping.state import Services, get_services
from tipping.telemetry import get_metrics_text

router = APIRouter(tags=["core"])


class HealthResponse(BaseModel):
    status: str
    scheduler_running: bool


@router.get("/health", response_model=HealthResponse)
@limiter.limit(health_rate_limit)
async def health_check(request: Request, services: Services = Depends(get_services)):
    """Health check endpoint."""
    return HealthResponse(
        status="ok",
        scheduler_running=services.scheduler.running,
    )


@router.get("/metrics")
async def prometheus_metrics():
    """Prometheus metrics for lifecycle transitions, predictions and job health."""
    content, content_type = get_metrics_text()
    return PlainTextResponse(content=content, media_type=content_type)
