"""Store interfaces consumed by the engine and their in-memory implementations.

The in-memory stores back development and tests. Production deployments swap
in the Redis behavior store and the PostgreSQL feature store / impression sink.
"""

import copy
from datetime import datetime, timezone
from typing import Any, Iterable, Protocol, runtime_checkable

import structlog

from hybrid_recommender.models import ItemFeatures, UserBehavior

logger = structlog.get_logger()


@runtime_checkable
class BehaviorStore(Protocol):
    """Read/write access to per-user behavior aggregates."""

    async def get(self, user_id: str) -> UserBehavior | None: ...

    async def put(self, behavior: UserBehavior) -> None: ...

    async def sample(self, limit: int) -> list[UserBehavior]: ...


@runtime_checkable
class FeatureStore(Protocol):
    """Read access to catalog item features."""

    async def get(self, item_id: str) -> ItemFeatures | None: ...

    async def query_by_category(self, category: str, limit: int) -> list[ItemFeatures]: ...

    async def query_active_sorted_by_popularity_then_rating(
        self, limit: int
    ) -> list[ItemFeatures]: ...


@runtime_checkable
class ImpressionSink(Protocol):
    """Best-effort recorder of which items were shown to whom."""

    async def record(
        self, user_id: str, item_ids: list[str], context: dict[str, Any]
    ) -> None: ...


class InMemoryBehaviorStore:
    """Dict-backed behavior store. Returns copies so callers cannot mutate state."""

    def __init__(self, behaviors: Iterable[UserBehavior] = ()):
        self._behaviors: dict[str, UserBehavior] = {}
        for behavior in behaviors:
            self._behaviors[behavior.user_id] = copy.deepcopy(behavior)

    async def get(self, user_id: str) -> UserBehavior | None:
        behavior = self._behaviors.get(user_id)
        return copy.deepcopy(behavior) if behavior else None

    async def put(self, behavior: UserBehavior) -> None:
        self._behaviors[behavior.user_id] = copy.deepcopy(behavior)

    async def sample(self, limit: int) -> list[UserBehavior]:
        return [copy.deepcopy(b) for b in list(self._behaviors.values())[:limit]]


class InMemoryFeatureStore:
    """Dict-backed catalog."""

    def __init__(self, items: Iterable[ItemFeatures] = ()):
        self._items: dict[str, ItemFeatures] = {item.item_id: item for item in items}

    def upsert(self, item: ItemFeatures) -> None:
        self._items[item.item_id] = item

    async def get(self, item_id: str) -> ItemFeatures | None:
        return self._items.get(item_id)

    async def query_by_category(self, category: str, limit: int) -> list[ItemFeatures]:
        matches = [
            item
            for item in self._items.values()
            if item.category == category and item.active
        ]
        matches.sort(key=lambda item: (-item.popularity, item.item_id))
        return matches[:limit]

    async def query_active_sorted_by_popularity_then_rating(
        self, limit: int
    ) -> list[ItemFeatures]:
        active = [item for item in self._items.values() if item.active]
        active.sort(key=lambda item: (-item.popularity, -item.rating, item.item_id))
        return active[:limit]


class InMemoryImpressionSink:
    """Keeps impressions in a list, mostly for inspection in tests."""

    def __init__(self):
        self.impressions: list[dict[str, Any]] = []

    async def record(
        self, user_id: str, item_ids: list[str], context: dict[str, Any]
    ) -> None:
        self.impressions.append(
            {
                "user_id": user_id,
                "item_ids": list(item_ids),
                "context": dict(context),
                "recorded_at": datetime.now(timezone.utc).isoformat(),
            }
        )
        logger.debug("Impression recorded", user_id=user_id, items=len(item_ids))
