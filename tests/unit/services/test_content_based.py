"""Unit tests for content-based filtering."""

import pytest

from hybrid_recommender.infrastructure.stores import InMemoryFeatureStore
from hybrid_recommender.models import PriceTier, UserBehavior
from hybrid_recommender.services.accessors import FeatureAccessor
from hybrid_recommender.services.cache import SimilarityCache
from hybrid_recommender.services.content_based import (
    ContentRecommender,
    PreferenceProfile,
)


@pytest.fixture
def recommender(feature_store: InMemoryFeatureStore) -> ContentRecommender:
    return ContentRecommender(FeatureAccessor(feature_store, SimilarityCache()))


class TestPreferenceProfile:
    def test_multiplier_from_counts(self, item_factory) -> None:
        profile = PreferenceProfile()
        profile.add(item_factory("a", "Phones", "Orbit", 800))
        profile.add(item_factory("b", "Phones", "Nova", 2000))

        candidate = item_factory("c", "Phones", "Orbit", 900)
        # (1 + 0.1*2) * (1 + 0.05*1) * (1 + 0.05*1)
        assert profile.multiplier(candidate) == pytest.approx(1.2 * 1.05 * 1.05)

    def test_unknown_candidate_has_neutral_multiplier(self, item_factory) -> None:
        profile = PreferenceProfile()
        assert profile.multiplier(item_factory("x")) == pytest.approx(1.0)

    def test_multiplier_capped_at_two(self, item_factory) -> None:
        profile = PreferenceProfile()
        for i in range(12):
            profile.add(item_factory(f"p{i}", "Phones", "Orbit", 800))
        assert profile.multiplier(item_factory("c", "Phones", "Orbit", 800)) == 2.0


class TestContentRecommender:
    @pytest.mark.asyncio
    async def test_profile_counts_distinct_engaged_items(
        self, recommender: ContentRecommender
    ) -> None:
        behavior = UserBehavior(
            user_id="u",
            viewed_items=["phone-1", "phone-1", "laptop-1"],
            purchased_items={"phone-1", "shoe-1"},
        )
        profile = await recommender.build_profile(behavior)
        assert profile.categories == {"Phones": 1, "Laptops": 1, "Shoes": 1}
        assert profile.price_tiers[PriceTier.BUDGET] == 2

    @pytest.mark.asyncio
    async def test_ranks_same_category_items(self, recommender: ContentRecommender) -> None:
        behavior = UserBehavior(user_id="u", viewed_items=["phone-1"])

        items = await recommender.recommend(behavior)
        ids = [item.item_id for item in items]

        # phone-2 and phone-4 share brand, tier and tags with phone-1 (tie -> id order);
        # phone-out matches without tags; phone-3 differs in brand
        assert ids == ["phone-2", "phone-4", "phone-out", "phone-3"]
        assert "phone-1" not in ids
        assert "phone-old" not in ids

    @pytest.mark.asyncio
    async def test_skips_purchased_candidates(self, recommender: ContentRecommender) -> None:
        behavior = UserBehavior(
            user_id="u", viewed_items=["phone-1"], purchased_items={"phone-2"}
        )
        ids = [item.item_id for item in await recommender.recommend(behavior)]
        assert "phone-2" not in ids

    @pytest.mark.asyncio
    async def test_below_threshold_dropped(self, item_factory) -> None:
        store = InMemoryFeatureStore(
            [
                item_factory("seed", "Books", "A", 10, tags=("x",)),
                # category only: 0.3 <= 0.4
                item_factory("far", "Books", "B", 9000, tags=("y",)),
                # category + tier: 0.5
                item_factory("near", "Books", "C", 20, tags=("z",)),
            ]
        )
        recommender = ContentRecommender(FeatureAccessor(store, SimilarityCache()))
        items = await recommender.recommend(UserBehavior(user_id="u", viewed_items=["seed"]))
        assert [item.item_id for item in items] == ["near"]

    @pytest.mark.asyncio
    async def test_unknown_seed_is_skipped(self, recommender: ContentRecommender) -> None:
        behavior = UserBehavior(user_id="u", viewed_items=["does-not-exist"])
        assert await recommender.recommend(behavior) == []

    @pytest.mark.asyncio
    async def test_no_views_no_candidates(self, recommender: ContentRecommender) -> None:
        behavior = UserBehavior(user_id="u", purchased_items={"phone-1"})
        assert await recommender.recommend(behavior) == []
