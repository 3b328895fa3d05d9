"""Domain models shared by the stores, recommenders and API."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from hybrid_recommender.constants import BUDGET_PRICE_LIMIT, MID_PRICE_LIMIT


class PriceTier(str, Enum):
    """Coarse price bands used for item similarity."""

    BUDGET = "budget"
    MID = "mid"
    PREMIUM = "premium"


class Strategy(str, Enum):
    """Which pipeline produced a recommendation result."""

    COLLABORATIVE = "collaborative"
    CONTENT = "content"
    TRENDING = "trending"
    HYBRID = "hybrid"


class InteractionAction(str, Enum):
    """User actions accepted by interaction tracking."""

    VIEW = "view"
    CLICK = "click"
    CART = "cart"
    PURCHASE = "purchase"
    WISHLIST = "wishlist"


def price_tier_for(price: float) -> PriceTier:
    """Map a price to its tier."""
    if price < BUDGET_PRICE_LIMIT:
        return PriceTier.BUDGET
    if price < MID_PRICE_LIMIT:
        return PriceTier.MID
    return PriceTier.PREMIUM


@dataclass
class UserBehavior:
    """Interaction aggregate for a single user."""

    user_id: str
    viewed_items: list[str] = field(default_factory=list)
    purchased_items: set[str] = field(default_factory=set)
    search_queries: list[str] = field(default_factory=list)
    click_through: dict[str, int] = field(default_factory=dict)
    dwell_time: dict[str, float] = field(default_factory=dict)
    cart_items: set[str] = field(default_factory=set)
    cart_abandoned: set[str] = field(default_factory=set)
    wishlist: set[str] = field(default_factory=set)

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "viewed_items": list(self.viewed_items),
            "purchased_items": sorted(self.purchased_items),
            "search_queries": list(self.search_queries),
            "click_through": dict(self.click_through),
            "dwell_time": dict(self.dwell_time),
            "cart_items": sorted(self.cart_items),
            "cart_abandoned": sorted(self.cart_abandoned),
            "wishlist": sorted(self.wishlist),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserBehavior":
        return cls(
            user_id=data["user_id"],
            viewed_items=list(data.get("viewed_items") or []),
            purchased_items=set(data.get("purchased_items") or []),
            search_queries=list(data.get("search_queries") or []),
            click_through={k: int(v) for k, v in (data.get("click_through") or {}).items()},
            dwell_time={k: float(v) for k, v in (data.get("dwell_time") or {}).items()},
            cart_items=set(data.get("cart_items") or []),
            cart_abandoned=set(data.get("cart_abandoned") or []),
            wishlist=set(data.get("wishlist") or []),
        )


@dataclass(frozen=True)
class ItemFeatures:
    """Catalog features of one item.

    ``price_tier`` is derived from ``price`` and cannot be set directly.
    Availability flags travel with the features so business rules need no
    second lookup.
    """

    item_id: str
    category: str
    brand: str
    price: float = 0.0
    popularity: int = 0
    rating: float = 0.0
    tags: frozenset[str] = frozenset()
    embedding: tuple[float, ...] | None = None
    in_stock: bool = True
    active: bool = True
    name: str = ""

    @property
    def price_tier(self) -> PriceTier:
        return price_tier_for(self.price)

    def to_dict(self) -> dict[str, Any]:
        return {
            "item_id": self.item_id,
            "name": self.name,
            "category": self.category,
            "brand": self.brand,
            "price": self.price,
            "price_tier": self.price_tier.value,
            "popularity": self.popularity,
            "rating": self.rating,
            "tags": sorted(self.tags),
            "in_stock": self.in_stock,
            "active": self.active,
        }


@dataclass
class RecommendationResult:
    """Ranked recommendations plus the evidence behind them."""

    items: list[ItemFeatures]
    confidence: float
    reasoning: list[str]
    strategy: Strategy
    request_id: str = field(default_factory=lambda: str(uuid4()))
    generated_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    @property
    def item_ids(self) -> list[str]:
        return [item.item_id for item in self.items]
