"""Process-wide orchestrator wiring for the API."""

import structlog

from hybrid_recommender.config import Settings, get_settings
from hybrid_recommender.infrastructure.redis import RedisBehaviorStore, get_redis_client
from hybrid_recommender.infrastructure.stores import (
    BehaviorStore,
    FeatureStore,
    ImpressionSink,
    InMemoryBehaviorStore,
    InMemoryFeatureStore,
    InMemoryImpressionSink,
)
from hybrid_recommender.services.orchestrator import RecommendationOrchestrator

logger = structlog.get_logger()

_orchestrator: RecommendationOrchestrator | None = None


async def build_behavior_store(settings: Settings) -> BehaviorStore:
    if settings.behavior_backend == "redis":
        client = await get_redis_client()
        if client is not None:
            return RedisBehaviorStore(client, ttl_seconds=settings.behavior_ttl_seconds)
        logger.warning("Falling back to in-memory behavior store")
    return InMemoryBehaviorStore()


def build_feature_store(settings: Settings) -> FeatureStore:
    if settings.feature_backend == "postgres":
        from hybrid_recommender.infrastructure.database.connection import get_session_factory
        from hybrid_recommender.infrastructure.database.stores import SqlFeatureStore

        return SqlFeatureStore(get_session_factory())
    return InMemoryFeatureStore()


def build_impression_sink(settings: Settings) -> ImpressionSink:
    if settings.impression_backend == "postgres":
        from hybrid_recommender.infrastructure.database.connection import get_session_factory
        from hybrid_recommender.infrastructure.database.stores import SqlImpressionSink

        return SqlImpressionSink(get_session_factory())
    return InMemoryImpressionSink()


async def get_orchestrator() -> RecommendationOrchestrator:
    """Get or create the global orchestrator for the configured backends."""
    global _orchestrator
    if _orchestrator is None:
        settings = get_settings()
        _orchestrator = RecommendationOrchestrator(
            behavior_store=await build_behavior_store(settings),
            feature_store=build_feature_store(settings),
            impression_sink=build_impression_sink(settings),
            settings=settings,
        )
        logger.info(
            "Orchestrator initialized",
            behavior_backend=settings.behavior_backend,
            feature_backend=settings.feature_backend,
            impression_backend=settings.impression_backend,
        )
    return _orchestrator


async def close_orchestrator() -> None:
    """Flush pending impressions and drop the global orchestrator."""
    global _orchestrator
    if _orchestrator is not None:
        await _orchestrator.flush_impressions()
        _orchestrator = None
