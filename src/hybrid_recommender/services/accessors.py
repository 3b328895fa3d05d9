"""Cache-first access to the behavior and feature stores."""

import structlog

from hybrid_recommender.exceptions import ItemNotFoundError
from hybrid_recommender.infrastructure.stores import BehaviorStore, FeatureStore
from hybrid_recommender.models import ItemFeatures, UserBehavior
from hybrid_recommender.services.cache import SimilarityCache

logger = structlog.get_logger()


class BehaviorAccessor:
    """Loads behavior aggregates through the cache and writes them back to the store."""

    def __init__(self, store: BehaviorStore, cache: SimilarityCache):
        self.store = store
        self.cache = cache

    async def load(self, user_id: str) -> UserBehavior:
        """Cached behavior, else stored behavior, else a fresh empty aggregate."""
        cached = self.cache.get_behavior(user_id)
        if cached is not None:
            return cached

        generation = self.cache.behavior_generation(user_id)
        behavior = await self.store.get(user_id)
        if behavior is None:
            return UserBehavior(user_id=user_id)

        if not self.cache.set_behavior(behavior, generation):
            logger.debug("Behavior changed during load, not caching", user_id=user_id)
        return behavior

    async def load_for_update(self, user_id: str) -> UserBehavior:
        """Read straight from the store so writers never start from a stale copy."""
        behavior = await self.store.get(user_id)
        return behavior if behavior is not None else UserBehavior(user_id=user_id)

    async def save(self, behavior: UserBehavior) -> None:
        await self.store.put(behavior)
        self.cache.invalidate_user(behavior.user_id)

    async def sample(self, limit: int) -> list[UserBehavior]:
        return await self.store.sample(limit)


class FeatureAccessor:
    """Loads item features through the cache."""

    def __init__(self, store: FeatureStore, cache: SimilarityCache):
        self.store = store
        self.cache = cache

    async def get(self, item_id: str) -> ItemFeatures:
        cached = self.cache.get_features(item_id)
        if cached is not None:
            return cached

        item = await self.store.get(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)

        self.cache.set_features(item)
        return item

    async def resolve(self, item_ids: list[str]) -> list[ItemFeatures]:
        """Fetch features for ids in order, skipping items missing from the catalog."""
        items = []
        for item_id in item_ids:
            try:
                items.append(await self.get(item_id))
            except ItemNotFoundError:
                logger.debug("Skipping unknown item", item_id=item_id)
        return items

    async def by_category(self, category: str, limit: int) -> list[ItemFeatures]:
        items = await self.store.query_by_category(category, limit)
        for item in items:
            self.cache.set_features(item)
        return items

    async def trending(self, limit: int) -> list[ItemFeatures]:
        return await self.store.query_active_sorted_by_popularity_then_rating(limit)
