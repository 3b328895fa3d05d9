"""Eligibility filtering and category/brand diversification."""

from typing import Iterable

import structlog

from hybrid_recommender.constants import (
    MAX_DISTINCT_BRANDS,
    MAX_DISTINCT_CATEGORIES,
    MAX_DIVERSIFIED_ITEMS,
)
from hybrid_recommender.models import ItemFeatures, UserBehavior

logger = structlog.get_logger()


def is_eligible(item: ItemFeatures, behavior: UserBehavior) -> bool:
    return item.in_stock and item.active and item.item_id not in behavior.purchased_items


def diversify(
    items: Iterable[ItemFeatures],
    max_categories: int = MAX_DISTINCT_CATEGORIES,
    max_brands: int = MAX_DISTINCT_BRANDS,
    max_items: int = MAX_DIVERSIFIED_ITEMS,
) -> list[ItemFeatures]:
    """Admit items in order while the distinct category and brand counts stay within caps.

    An item whose category and brand are already represented is always admitted.
    """
    admitted: list[ItemFeatures] = []
    categories: set[str] = set()
    brands: set[str] = set()

    for item in items:
        if item.category not in categories and len(categories) >= max_categories:
            continue
        if item.brand not in brands and len(brands) >= max_brands:
            continue

        admitted.append(item)
        categories.add(item.category)
        brands.add(item.brand)
        if len(admitted) >= max_items:
            break

    return admitted


class BusinessRuleFilter:
    """Drops ineligible items, then diversifies what is left."""

    def __init__(
        self,
        max_categories: int = MAX_DISTINCT_CATEGORIES,
        max_brands: int = MAX_DISTINCT_BRANDS,
        max_items: int = MAX_DIVERSIFIED_ITEMS,
    ):
        self.max_categories = max_categories
        self.max_brands = max_brands
        self.max_items = max_items

    def apply(self, items: list[ItemFeatures], behavior: UserBehavior) -> list[ItemFeatures]:
        eligible = [item for item in items if is_eligible(item, behavior)]
        if len(eligible) < len(items):
            logger.debug(
                "Filtered ineligible items",
                user_id=behavior.user_id,
                removed=len(items) - len(eligible),
            )
        return diversify(eligible, self.max_categories, self.max_brands, self.max_items)
