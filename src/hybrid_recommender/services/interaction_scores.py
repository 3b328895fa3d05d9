"""Additive per-user interaction score table."""

import threading
from collections import defaultdict

from hybrid_recommender.constants import INTERACTION_WEIGHTS
from hybrid_recommender.models import InteractionAction


class InteractionScoreTable:
    """Accumulates weighted interaction scores per (user, item). Scores never decay."""

    def __init__(self, weights: dict[str, float] | None = None):
        self.weights = weights or INTERACTION_WEIGHTS
        self._scores: dict[str, dict[str, float]] = defaultdict(lambda: defaultdict(float))
        self._lock = threading.Lock()

    def add(self, user_id: str, item_id: str, action: InteractionAction) -> float:
        """Add the action's weight and return the item's new total."""
        weight = self.weights.get(action.value, 0.0)
        with self._lock:
            self._scores[user_id][item_id] += weight
            return self._scores[user_id][item_id]

    def scores_for(self, user_id: str) -> dict[str, float]:
        with self._lock:
            return dict(self._scores.get(user_id, {}))

    def score(self, user_id: str, item_id: str) -> float:
        with self._lock:
            return self._scores.get(user_id, {}).get(item_id, 0.0)
