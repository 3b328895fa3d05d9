"""Collaborative filtering: items bought by behaviorally similar users."""

from collections import defaultdict
from typing import Iterable

import structlog

from hybrid_recommender.constants import (
    CANDIDATE_LIST_LIMIT,
    MAX_NEIGHBORS,
    NEIGHBOR_SAMPLE_SIZE,
    NEIGHBOR_SIMILARITY_THRESHOLD,
)
from hybrid_recommender.models import ItemFeatures, UserBehavior
from hybrid_recommender.services.accessors import BehaviorAccessor, FeatureAccessor
from hybrid_recommender.services.similarity import user_similarity

logger = structlog.get_logger()


def find_neighbors(
    target: UserBehavior,
    candidates: Iterable[UserBehavior],
    threshold: float = NEIGHBOR_SIMILARITY_THRESHOLD,
    max_neighbors: int = MAX_NEIGHBORS,
) -> list[tuple[UserBehavior, float]]:
    """Most similar other users above the threshold, best first."""
    scored = []
    for other in candidates:
        if other.user_id == target.user_id:
            continue
        similarity = user_similarity(target, other)
        if similarity > threshold:
            scored.append((other, similarity))

    scored.sort(key=lambda pair: (-pair[1], pair[0].user_id))
    return scored[:max_neighbors]


def rank_collaborative(
    target: UserBehavior,
    candidates: Iterable[UserBehavior],
    limit: int = CANDIDATE_LIST_LIMIT,
) -> list[tuple[str, float]]:
    """Score items by the summed similarity of the neighbors who purchased them."""
    scores: dict[str, float] = defaultdict(float)
    for neighbor, similarity in find_neighbors(target, candidates):
        for item_id in neighbor.purchased_items:
            if item_id not in target.purchased_items:
                scores[item_id] += similarity

    ranked = sorted(scores.items(), key=lambda pair: (-pair[1], pair[0]))
    return ranked[:limit]


class CollaborativeRecommender:
    """Ranks items purchased by the target user's nearest neighbors."""

    def __init__(
        self,
        behaviors: BehaviorAccessor,
        features: FeatureAccessor,
        sample_size: int = NEIGHBOR_SAMPLE_SIZE,
    ):
        self.behaviors = behaviors
        self.features = features
        self.sample_size = sample_size

    async def recommend(self, behavior: UserBehavior) -> list[ItemFeatures]:
        if not behavior.purchased_items and not behavior.viewed_items:
            return []

        candidates = await self.behaviors.sample(self.sample_size)
        ranked = rank_collaborative(behavior, candidates)
        logger.debug(
            "Collaborative candidates ranked",
            user_id=behavior.user_id,
            sampled=len(candidates),
            ranked=len(ranked),
        )
        return await self.features.resolve([item_id for item_id, _ in ranked])
