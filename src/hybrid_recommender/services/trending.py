"""Catalog-wide popularity fallback."""

from typing import AbstractSet

import structlog

from hybrid_recommender.constants import (
    CANDIDATE_LIST_LIMIT,
    TRENDING_CONFIDENCE,
    TRENDING_REASONING,
)
from hybrid_recommender.models import ItemFeatures, RecommendationResult, Strategy
from hybrid_recommender.services.accessors import FeatureAccessor
from hybrid_recommender.services.cache import BoundedTTLCache

logger = structlog.get_logger()


class TrendingRecommender:
    """Most viewed active items, ties broken by rating.

    The list is identical for every user, so it is cached for a short while.
    """

    CACHE_KEY = "trending"

    def __init__(self, features: FeatureAccessor, ttl_seconds: float = 300):
        self.features = features
        self._cache: BoundedTTLCache[str, list[ItemFeatures]] = BoundedTTLCache(
            max_size=1, ttl_seconds=ttl_seconds
        )

    async def recommend(self, limit: int = CANDIDATE_LIST_LIMIT) -> list[ItemFeatures]:
        cached = self._cache.get(self.CACHE_KEY)
        if cached is not None:
            return cached[:limit]

        items = await self.features.trending(CANDIDATE_LIST_LIMIT)
        items = [item for item in items if item.active]
        items.sort(key=lambda item: (-item.popularity, -item.rating, item.item_id))
        items = items[:CANDIDATE_LIST_LIMIT]
        if items:
            self._cache.set(self.CACHE_KEY, items)
        return items[:limit]

    async def standalone(
        self, count: int | None = None, exclude: AbstractSet[str] = frozenset()
    ) -> RecommendationResult:
        """Trending list packaged as a complete result, minus the ``exclude`` ids."""
        items = [item for item in await self.recommend() if item.item_id not in exclude]
        if count is not None:
            items = items[:count]
        return RecommendationResult(
            items=items,
            confidence=TRENDING_CONFIDENCE,
            reasoning=list(TRENDING_REASONING),
            strategy=Strategy.TRENDING,
        )

    def invalidate(self) -> None:
        self._cache.clear()
