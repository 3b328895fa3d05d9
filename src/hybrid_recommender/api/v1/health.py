"""Health check endpoints."""

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from hybrid_recommender import __version__
from hybrid_recommender.api.dependencies import get_orchestrator
from hybrid_recommender.config import get_settings
from hybrid_recommender.infrastructure.redis import RedisBehaviorStore
from hybrid_recommender.services.orchestrator import RecommendationOrchestrator

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    environment: str
    timestamp: str
    backends: dict[str, Any]


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    ready: bool
    checks: dict[str, bool]
    cache: dict[str, int]


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check with version and configured backends."""
    settings = get_settings()

    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=settings.app_env,
        timestamp=datetime.now(timezone.utc).isoformat(),
        backends={
            "behavior": settings.behavior_backend,
            "features": settings.feature_backend,
            "impressions": settings.impression_backend,
        },
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check(
    orchestrator: RecommendationOrchestrator = Depends(get_orchestrator),
) -> ReadinessResponse:
    """Readiness check; pings Redis when it backs the behavior store."""
    checks: dict[str, bool] = {"orchestrator": True}

    behavior_store = orchestrator.behaviors.store
    if isinstance(behavior_store, RedisBehaviorStore):
        checks["redis"] = await behavior_store.health_check()

    return ReadinessResponse(
        ready=all(checks.values()),
        checks=checks,
        cache=orchestrator.cache.stats(),
    )


@router.get("/health/live")
async def liveness_check() -> dict[str, str]:
    """Returns 200 while the process is running."""
    return {"status": "alive"}
