"""Unit tests for domain models."""

import pytest

from hybrid_recommender.models import (
    PriceTier,
    RecommendationResult,
    Strategy,
    UserBehavior,
    price_tier_for,
)


@pytest.mark.parametrize(
    ("price", "tier"),
    [
        (0, PriceTier.BUDGET),
        (999.99, PriceTier.BUDGET),
        (1000, PriceTier.MID),
        (4999, PriceTier.MID),
        (5000, PriceTier.PREMIUM),
    ],
)
def test_price_tier_boundaries(price: float, tier: PriceTier) -> None:
    assert price_tier_for(price) is tier


def test_behavior_from_partial_document() -> None:
    behavior = UserBehavior.from_dict({"user_id": "u", "viewed_items": ["a"]})
    assert behavior.viewed_items == ["a"]
    assert behavior.purchased_items == set()
    assert behavior.click_through == {}


def test_behavior_to_dict_sorts_sets() -> None:
    behavior = UserBehavior(user_id="u", purchased_items={"b", "a"}, cart_items={"z", "y"})
    data = behavior.to_dict()
    assert data["purchased_items"] == ["a", "b"]
    assert data["cart_items"] == ["y", "z"]


def test_item_price_tier_follows_price(item_factory) -> None:
    assert item_factory("a", price=6000).price_tier is PriceTier.PREMIUM
    assert item_factory("a", price=6000).to_dict()["price_tier"] == "premium"


def test_result_ids_are_unique_per_result(item_factory) -> None:
    first = RecommendationResult([item_factory("a")], 0.5, [], Strategy.HYBRID)
    second = RecommendationResult([], 0.5, [], Strategy.HYBRID)
    assert first.item_ids == ["a"]
    assert first.request_id != second.request_id
