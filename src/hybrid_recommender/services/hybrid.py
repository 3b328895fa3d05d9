"""Rank-weighted fusion of the collaborative, content and trending lists."""

from collections import defaultdict
from dataclasses import dataclass

from hybrid_recommender.constants import (
    CART_ABANDONED_PENALTY,
    CLICK_BOOST,
    CLICK_BOOST_THRESHOLD,
    HYBRID_WEIGHTS,
    WISHLIST_BOOST,
)
from hybrid_recommender.models import ItemFeatures, UserBehavior


@dataclass
class ScoredItem:
    item: ItemFeatures
    score: float


def positional_scores(items: list[ItemFeatures], weight: float) -> dict[str, float]:
    """``(n - rank) / n * weight`` for each item of a ranked list."""
    n = len(items)
    scores: dict[str, float] = {}
    for rank, item in enumerate(items):
        # A duplicate keeps its best (earliest) rank
        scores.setdefault(item.item_id, (n - rank) / n * weight)
    return scores


def behavior_multiplier(item_id: str, behavior: UserBehavior) -> float:
    multiplier = 1.0
    if item_id in behavior.wishlist:
        multiplier *= WISHLIST_BOOST
    if behavior.click_through.get(item_id, 0) > CLICK_BOOST_THRESHOLD:
        multiplier *= CLICK_BOOST
    if item_id in behavior.cart_abandoned:
        multiplier *= CART_ABANDONED_PENALTY
    return multiplier


class HybridCombiner:
    """Fuses the three candidate lists into one score-ordered list."""

    def __init__(self, weights: dict[str, float] | None = None):
        self.weights = weights or HYBRID_WEIGHTS

    def combine(
        self,
        collaborative: list[ItemFeatures],
        content: list[ItemFeatures],
        trending: list[ItemFeatures],
        behavior: UserBehavior,
    ) -> list[ScoredItem]:
        combined: dict[str, float] = defaultdict(float)
        catalog: dict[str, ItemFeatures] = {}

        for source, items in (
            ("collaborative", collaborative),
            ("content", content),
            ("trending", trending),
        ):
            for item_id, score in positional_scores(items, self.weights[source]).items():
                combined[item_id] += score
            for item in items:
                catalog.setdefault(item.item_id, item)

        scored = [
            ScoredItem(catalog[item_id], score * behavior_multiplier(item_id, behavior))
            for item_id, score in combined.items()
        ]
        scored.sort(key=lambda s: (-s.score, s.item.item_id))
        return scored
