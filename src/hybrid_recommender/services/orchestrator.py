"""Recommendation orchestrator.

Public entry point of the engine. ``get_recommendations`` fans out to the
collaborative, content and trending recommenders, fuses and filters their
output, and attaches confidence and reasoning. ``track_interaction`` is the
only writer of behavior aggregates.
"""

import asyncio
import time
import weakref
from typing import Any, Awaitable

import structlog

from hybrid_recommender.config import Settings, get_settings
from hybrid_recommender.constants import (
    BASE_CONFIDENCE,
    MAX_CONFIDENCE,
    TRENDING_CONFIDENCE,
    TRENDING_REASONING,
)
from hybrid_recommender.exceptions import (
    InvalidInputError,
    NoCandidatesError,
    StoreUnavailableError,
)
from hybrid_recommender.infrastructure.stores import (
    BehaviorStore,
    FeatureStore,
    ImpressionSink,
)
from hybrid_recommender.models import (
    InteractionAction,
    ItemFeatures,
    RecommendationResult,
    Strategy,
    UserBehavior,
)
from hybrid_recommender.services.accessors import BehaviorAccessor, FeatureAccessor
from hybrid_recommender.services.business_rules import BusinessRuleFilter
from hybrid_recommender.services.cache import SimilarityCache
from hybrid_recommender.services.collaborative import CollaborativeRecommender
from hybrid_recommender.services.content_based import ContentRecommender
from hybrid_recommender.services.hybrid import HybridCombiner
from hybrid_recommender.services.interaction_scores import InteractionScoreTable
from hybrid_recommender.services.trending import TrendingRecommender

logger = structlog.get_logger()


def calculate_confidence(items: list[ItemFeatures], behavior: UserBehavior) -> float:
    """Heuristic evidence score in [0, 0.95]."""
    confidence = BASE_CONFIDENCE

    if len(behavior.purchased_items) > 5:
        confidence += 0.2
    if len(behavior.viewed_items) > 20:
        confidence += 0.15
    if len(behavior.wishlist) > 3:
        confidence += 0.1

    if items:
        avg_rating = sum(item.rating for item in items) / len(items)
        if avg_rating > 4.0:
            confidence += 0.05

    return min(confidence, MAX_CONFIDENCE)


def generate_reasoning(items: list[ItemFeatures], behavior: UserBehavior) -> list[str]:
    """Human-readable justifications, in a fixed order."""
    reasons = []

    if behavior.purchased_items:
        reasons.append("Based on your purchase history")
    if len(behavior.viewed_items) > 10:
        reasons.append("Similar to products you viewed")
    if behavior.wishlist:
        reasons.append("Related to items in your wishlist")

    categories = list(dict.fromkeys(item.category for item in items))
    if items and len(categories) <= 2:
        reasons.append(f"Popular in {' and '.join(categories)}")

    if any(item.rating > 4.5 for item in items):
        reasons.append("Highly rated by other customers")

    return reasons


def has_history(behavior: UserBehavior) -> bool:
    return bool(
        behavior.viewed_items
        or behavior.purchased_items
        or behavior.wishlist
        or behavior.click_through
        or behavior.cart_items
        or behavior.cart_abandoned
    )


class RecommendationOrchestrator:
    """Coordinates the recommendation pipeline and interaction tracking."""

    def __init__(
        self,
        behavior_store: BehaviorStore,
        feature_store: FeatureStore,
        impression_sink: ImpressionSink | None = None,
        cache: SimilarityCache | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.cache = cache or SimilarityCache(
            behavior_size=self.settings.behavior_cache_size,
            behavior_ttl_seconds=self.settings.behavior_cache_ttl_seconds,
            feature_size=self.settings.feature_cache_size,
            feature_ttl_seconds=self.settings.feature_cache_ttl_seconds,
        )
        self.behaviors = BehaviorAccessor(behavior_store, self.cache)
        self.features = FeatureAccessor(feature_store, self.cache)
        self.impression_sink = impression_sink

        self.collaborative = CollaborativeRecommender(
            self.behaviors, self.features, sample_size=self.settings.neighbor_sample_size
        )
        self.content = ContentRecommender(self.features)
        self.trending = TrendingRecommender(
            self.features, ttl_seconds=self.settings.trending_cache_ttl_seconds
        )
        self.combiner = HybridCombiner()
        self.business_rules = BusinessRuleFilter()
        self.interaction_scores = InteractionScoreTable()

        self._user_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )
        self._pending_impressions: set[asyncio.Task] = set()

    # ==========================================================================
    # Recommendations
    # ==========================================================================

    async def get_recommendations(
        self, user_id: str, count: int | None = None
    ) -> RecommendationResult:
        """
        Get a ranked, diversified recommendation list for a user.

        Args:
            user_id: The user's ID
            count: Maximum number of items to return

        Returns:
            RecommendationResult; never raises for missing personalization data

        Raises:
            InvalidInputError: If user_id is blank or count is not positive
        """
        if not user_id or not user_id.strip():
            raise InvalidInputError("user_id is required")
        if count is None:
            count = self.settings.default_recommendation_count
        if count < 1:
            raise InvalidInputError("count must be positive")

        start = time.perf_counter()
        timeout = self.settings.recommendation_timeout_seconds
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        behavior = UserBehavior(user_id=user_id)
        try:
            behavior = await asyncio.wait_for(self._load_behavior(user_id), timeout=timeout)
            result = await asyncio.wait_for(
                self._run_pipeline(behavior, count),
                timeout=max(deadline - loop.time(), 0),
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Recommendation deadline exceeded, serving trending",
                user_id=user_id,
                timeout=timeout,
            )
            result = await self._trending_fallback(count, behavior)

        self._record_impression(user_id, result)
        logger.info(
            "Recommendations generated",
            user_id=user_id,
            strategy=result.strategy.value,
            count=len(result.items),
            confidence=result.confidence,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return result

    async def _run_pipeline(self, behavior: UserBehavior, count: int) -> RecommendationResult:
        user_id = behavior.user_id
        if not has_history(behavior):
            return await self._trending_fallback(count, behavior)

        collaborative, content, trending = await asyncio.gather(
            self._isolate("collaborative", self.collaborative.recommend(behavior), user_id),
            self._isolate("content", self.content.recommend(behavior), user_id),
            self._isolate("trending", self.trending.recommend(), user_id),
        )

        try:
            items = self._fuse(collaborative, content, trending, behavior)
        except NoCandidatesError:
            logger.info("No candidates, serving trending", user_id=user_id)
            return await self._trending_fallback(count, behavior)

        returned = items[:count]
        return RecommendationResult(
            items=returned,
            confidence=calculate_confidence(returned, behavior),
            reasoning=generate_reasoning(returned, behavior),
            strategy=Strategy.HYBRID,
        )

    def _fuse(
        self,
        collaborative: list[ItemFeatures],
        content: list[ItemFeatures],
        trending: list[ItemFeatures],
        behavior: UserBehavior,
    ) -> list[ItemFeatures]:
        if not (collaborative or content or trending):
            raise NoCandidatesError("all recommenders returned empty lists")

        scored = self.combiner.combine(collaborative, content, trending, behavior)
        items = self.business_rules.apply([s.item for s in scored], behavior)
        if not items:
            raise NoCandidatesError("every candidate was filtered out")
        return items

    async def _isolate(
        self, name: str, branch: Awaitable[list[ItemFeatures]], user_id: str
    ) -> list[ItemFeatures]:
        """Run one recommender; a store failure empties its list instead of failing the request."""
        try:
            return await branch
        except StoreUnavailableError as e:
            logger.warning("Recommender degraded", recommender=name, user_id=user_id, error=str(e))
        except Exception as e:
            logger.error("Recommender failed", recommender=name, user_id=user_id, error=str(e))
        return []

    async def _load_behavior(self, user_id: str) -> UserBehavior:
        try:
            return await self.behaviors.load(user_id)
        except StoreUnavailableError as e:
            logger.warning("Behavior store unavailable", user_id=user_id, error=str(e))
            return UserBehavior(user_id=user_id)

    async def _trending_fallback(
        self, count: int, behavior: UserBehavior
    ) -> RecommendationResult:
        """Trending without the user's purchases, bounded by its own timeout."""
        try:
            return await asyncio.wait_for(
                self.trending.standalone(count, exclude=behavior.purchased_items),
                timeout=self.settings.fallback_timeout_seconds,
            )
        except StoreUnavailableError as e:
            logger.warning("Trending unavailable", error=str(e))
        except asyncio.TimeoutError:
            logger.warning(
                "Trending timed out",
                user_id=behavior.user_id,
                timeout=self.settings.fallback_timeout_seconds,
            )
        return RecommendationResult(
            items=[],
            confidence=TRENDING_CONFIDENCE,
            reasoning=list(TRENDING_REASONING),
            strategy=Strategy.TRENDING,
        )

    def _record_impression(self, user_id: str, result: RecommendationResult) -> None:
        if self.impression_sink is None or not result.items:
            return

        context: dict[str, Any] = {
            "request_id": result.request_id,
            "strategy": result.strategy.value,
            "confidence": result.confidence,
            "generated_at": result.generated_at,
        }
        task = asyncio.create_task(
            self.impression_sink.record(user_id, result.item_ids, context)
        )
        self._pending_impressions.add(task)
        task.add_done_callback(self._impression_done)

    def _impression_done(self, task: asyncio.Task) -> None:
        self._pending_impressions.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning("Failed to record impression", error=str(error))

    async def flush_impressions(self) -> None:
        """Wait for in-flight impression writes."""
        if self._pending_impressions:
            await asyncio.gather(*self._pending_impressions, return_exceptions=True)

    # ==========================================================================
    # Interaction Tracking
    # ==========================================================================

    def _user_lock(self, user_id: str) -> asyncio.Lock:
        lock = self._user_locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._user_locks[user_id] = lock
        return lock

    async def track_interaction(
        self, user_id: str, item_id: str, action: InteractionAction | str
    ) -> UserBehavior:
        """
        Apply one user action to the behavior aggregate.

        Writes for the same user are serialized; different users proceed
        concurrently.

        Raises:
            InvalidInputError: On blank ids or an unknown action
            StoreUnavailableError: If the behavior store cannot be read or written
        """
        if not user_id or not user_id.strip():
            raise InvalidInputError("user_id is required")
        if not item_id or not item_id.strip():
            raise InvalidInputError("item_id is required")
        try:
            action = InteractionAction(action)
        except ValueError as e:
            raise InvalidInputError(f"Unknown action: {action}") from e

        async with self._user_lock(user_id):
            behavior = await self.behaviors.load_for_update(user_id)
            self._apply_action(behavior, item_id, action)
            await self.behaviors.save(behavior)

        total = self.interaction_scores.add(user_id, item_id, action)
        logger.info(
            "Interaction tracked",
            user_id=user_id,
            item_id=item_id,
            action=action.value,
            score=total,
        )
        return behavior

    def _apply_action(
        self, behavior: UserBehavior, item_id: str, action: InteractionAction
    ) -> None:
        if action is InteractionAction.VIEW:
            behavior.viewed_items.append(item_id)
            overflow = len(behavior.viewed_items) - self.settings.max_viewed_items
            if overflow > 0:
                del behavior.viewed_items[:overflow]
            behavior.dwell_time[item_id] = time.time()
        elif action is InteractionAction.CLICK:
            behavior.click_through[item_id] = behavior.click_through.get(item_id, 0) + 1
        elif action is InteractionAction.CART:
            behavior.cart_items.add(item_id)
            behavior.cart_abandoned.discard(item_id)
        elif action is InteractionAction.PURCHASE:
            behavior.purchased_items.add(item_id)
            behavior.cart_items.discard(item_id)
            behavior.cart_abandoned.discard(item_id)
        elif action is InteractionAction.WISHLIST:
            behavior.wishlist.add(item_id)

    async def record_search(self, user_id: str, query: str) -> UserBehavior:
        """Append a free-text search query. Queries are kept but not scored."""
        if not user_id or not user_id.strip():
            raise InvalidInputError("user_id is required")
        if not query or not query.strip():
            raise InvalidInputError("query is required")

        async with self._user_lock(user_id):
            behavior = await self.behaviors.load_for_update(user_id)
            behavior.search_queries.append(query.strip())
            await self.behaviors.save(behavior)
        return behavior

    async def mark_cart_abandoned(self, user_id: str) -> list[str]:
        """Move items still sitting in the cart to the abandoned set."""
        if not user_id or not user_id.strip():
            raise InvalidInputError("user_id is required")

        async with self._user_lock(user_id):
            behavior = await self.behaviors.load_for_update(user_id)
            abandoned = sorted(behavior.cart_items - behavior.purchased_items)
            if not abandoned and not behavior.cart_items:
                return []
            behavior.cart_abandoned.update(abandoned)
            behavior.cart_items.clear()
            await self.behaviors.save(behavior)

        logger.info("Cart abandonment recorded", user_id=user_id, items=len(abandoned))
        return abandoned

    def invalidate_item(self, item_id: str) -> bool:
        """Drop a catalog item from the cache after an external catalog update."""
        self.trending.invalidate()
        return self.cache.invalidate_item(item_id)
