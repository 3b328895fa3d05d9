"""Content-based filtering: catalog items similar to what the user engaged with."""

from collections import Counter, defaultdict
from dataclasses import dataclass, field

import structlog

from hybrid_recommender.constants import (
    BRAND_PREFERENCE_BOOST,
    CANDIDATE_LIST_LIMIT,
    CATEGORY_CANDIDATE_LIMIT,
    CATEGORY_PREFERENCE_BOOST,
    ITEM_SIMILARITY_THRESHOLD,
    MAX_PREFERENCE_BOOST,
    PRICE_TIER_PREFERENCE_BOOST,
)
from hybrid_recommender.exceptions import ItemNotFoundError
from hybrid_recommender.models import ItemFeatures, PriceTier, UserBehavior
from hybrid_recommender.services.accessors import FeatureAccessor
from hybrid_recommender.services.similarity import item_similarity

logger = structlog.get_logger()


@dataclass
class PreferenceProfile:
    """Occurrence counts of category, brand and price tier across engaged items."""

    categories: Counter[str] = field(default_factory=Counter)
    brands: Counter[str] = field(default_factory=Counter)
    price_tiers: Counter[PriceTier] = field(default_factory=Counter)

    def add(self, item: ItemFeatures) -> None:
        self.categories[item.category] += 1
        self.brands[item.brand] += 1
        self.price_tiers[item.price_tier] += 1

    def multiplier(self, item: ItemFeatures) -> float:
        """Preference boost for a candidate, capped at 2x."""
        boost = (
            (1 + CATEGORY_PREFERENCE_BOOST * self.categories[item.category])
            * (1 + BRAND_PREFERENCE_BOOST * self.brands[item.brand])
            * (1 + PRICE_TIER_PREFERENCE_BOOST * self.price_tiers[item.price_tier])
        )
        return min(boost, MAX_PREFERENCE_BOOST)


class ContentRecommender:
    """Ranks same-category items by attribute similarity to the user's viewed items."""

    def __init__(self, features: FeatureAccessor):
        self.features = features

    async def build_profile(self, behavior: UserBehavior) -> PreferenceProfile:
        """Tally each distinct viewed or purchased item once."""
        profile = PreferenceProfile()
        viewed = list(dict.fromkeys(behavior.viewed_items))
        engaged = viewed + sorted(behavior.purchased_items - set(viewed))
        for item in await self.features.resolve(engaged):
            profile.add(item)
        return profile

    async def recommend(self, behavior: UserBehavior) -> list[ItemFeatures]:
        if not behavior.viewed_items:
            return []

        profile = await self.build_profile(behavior)
        scores: dict[str, float] = defaultdict(float)
        candidates: dict[str, ItemFeatures] = {}

        for seed_id in dict.fromkeys(behavior.viewed_items):
            try:
                seed = await self.features.get(seed_id)
            except ItemNotFoundError:
                continue

            neighbors = await self.features.by_category(seed.category, CATEGORY_CANDIDATE_LIMIT)
            for candidate in neighbors:
                if candidate.item_id == seed_id:
                    continue
                if candidate.item_id in behavior.purchased_items:
                    continue
                similarity = item_similarity(seed, candidate)
                if similarity > ITEM_SIMILARITY_THRESHOLD:
                    scores[candidate.item_id] += similarity
                    candidates[candidate.item_id] = candidate

        for item_id in scores:
            scores[item_id] *= profile.multiplier(candidates[item_id])

        ranked = sorted(scores.items(), key=lambda pair: (-pair[1], pair[0]))
        logger.debug(
            "Content candidates ranked", user_id=behavior.user_id, ranked=len(ranked)
        )
        return [candidates[item_id] for item_id, _ in ranked[:CANDIDATE_LIST_LIMIT]]
