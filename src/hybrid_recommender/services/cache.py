"""Process-local caches for behavior aggregates and item features."""

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Generic, Hashable, TypeVar

from hybrid_recommender.models import ItemFeatures, UserBehavior

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass
class _Entry(Generic[V]):
    value: V
    expires_at: float


class BoundedTTLCache(Generic[K, V]):
    """LRU cache with a maximum size and a per-entry time to live."""

    def __init__(
        self,
        max_size: int,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_size < 1:
            raise ValueError("max_size must be positive")
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._data: OrderedDict[K, _Entry[V]] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: K) -> V | None:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                self.misses += 1
                return None
            if entry.expires_at <= self._clock():
                del self._data[key]
                self.misses += 1
                return None
            self._data.move_to_end(key)
            self.hits += 1
            return entry.value

    def set(self, key: K, value: V) -> None:
        with self._lock:
            self._data[key] = _Entry(value, self._clock() + self.ttl_seconds)
            self._data.move_to_end(key)
            while len(self._data) > self.max_size:
                self._data.popitem(last=False)

    def delete(self, key: K) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


class SimilarityCache:
    """Behavior and feature caches shared by all requests in the process.

    Each user has an invalidation generation. A reader takes the generation
    before going to the store and hands it back to ``set_behavior``; if a
    writer invalidated the user in between, the read is not cached.
    """

    def __init__(
        self,
        behavior_size: int = 10_000,
        behavior_ttl_seconds: float = 300,
        feature_size: int = 50_000,
        feature_ttl_seconds: float = 600,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.behaviors: BoundedTTLCache[str, UserBehavior] = BoundedTTLCache(
            behavior_size, behavior_ttl_seconds, clock
        )
        self.features: BoundedTTLCache[str, ItemFeatures] = BoundedTTLCache(
            feature_size, feature_ttl_seconds, clock
        )
        self._generations: dict[str, int] = {}
        self._generation_lock = threading.Lock()

    def get_behavior(self, user_id: str) -> UserBehavior | None:
        return self.behaviors.get(user_id)

    def behavior_generation(self, user_id: str) -> int:
        with self._generation_lock:
            return self._generations.get(user_id, 0)

    def set_behavior(self, behavior: UserBehavior, generation: int | None = None) -> bool:
        """Cache ``behavior``; skipped when ``generation`` is no longer current."""
        with self._generation_lock:
            if generation is not None and generation != self._generations.get(behavior.user_id, 0):
                return False
            self.behaviors.set(behavior.user_id, behavior)
            return True

    def invalidate_user(self, user_id: str) -> bool:
        with self._generation_lock:
            self._generations[user_id] = self._generations.get(user_id, 0) + 1
            return self.behaviors.delete(user_id)

    def get_features(self, item_id: str) -> ItemFeatures | None:
        return self.features.get(item_id)

    def set_features(self, item: ItemFeatures) -> None:
        self.features.set(item.item_id, item)

    def invalidate_item(self, item_id: str) -> bool:
        return self.features.delete(item_id)

    def clear(self) -> None:
        self.behaviors.clear()
        self.features.clear()

    def stats(self) -> dict[str, int]:
        return {
            "behaviors": len(self.behaviors),
            "behavior_hits": self.behaviors.hits,
            "behavior_misses": self.behaviors.misses,
            "features": len(self.features),
            "feature_hits": self.features.hits,
            "feature_misses": self.features.misses,
        }
