#!/usr/bin/env python3
"""
Seed the catalog and behavior stores with development data.

Creates the ``recommender`` schema tables when the feature backend is
PostgreSQL, upserts a small catalog, then replays a few user sessions through
the orchestrator so the configured behavior store is populated.

Usage:
    python scripts/seed_data.py
"""

import asyncio
import os
import sys

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from sqlalchemy import text  # noqa: E402
from sqlalchemy.dialects.postgresql import insert  # noqa: E402

from hybrid_recommender.api.dependencies import (  # noqa: E402
    build_behavior_store,
    build_feature_store,
)
from hybrid_recommender.config import get_settings  # noqa: E402
from hybrid_recommender.infrastructure.stores import InMemoryFeatureStore  # noqa: E402
from hybrid_recommender.models import ItemFeatures  # noqa: E402
from hybrid_recommender.services.orchestrator import RecommendationOrchestrator  # noqa: E402

CATALOG = [
    {
        "external_item_id": "prod-001",
        "name": "Wireless Noise-Canceling Headphones",
        "category": "Electronics",
        "brand": "Sonora",
        "price": 299.99,
        "stock": 50,
        "views": 820,
        "rating": 4.7,
        "tags": ["audio", "wireless", "bluetooth"],
    },
    {
        "external_item_id": "prod-002",
        "name": "Mechanical Gaming Keyboard",
        "category": "Electronics",
        "brand": "Keyforge",
        "price": 149.99,
        "stock": 100,
        "views": 640,
        "rating": 4.4,
        "tags": ["gaming", "rgb"],
    },
    {
        "external_item_id": "prod-003",
        "name": "Ergonomic Office Chair",
        "category": "Furniture",
        "brand": "Sitwell",
        "price": 1399.99,
        "stock": 25,
        "views": 410,
        "rating": 4.6,
        "tags": ["office", "ergonomic"],
    },
    {
        "external_item_id": "prod-004",
        "name": "4K Ultra HD Monitor",
        "category": "Electronics",
        "brand": "Vista",
        "price": 1449.99,
        "stock": 30,
        "views": 530,
        "rating": 4.5,
        "tags": ["display", "4k", "usb-c"],
    },
    {
        "external_item_id": "prod-005",
        "name": "Standing Desk Converter",
        "category": "Furniture",
        "brand": "Sitwell",
        "price": 199.99,
        "stock": 40,
        "views": 220,
        "rating": 4.1,
        "tags": ["office", "ergonomic"],
    },
    {
        "external_item_id": "prod-006",
        "name": "Wireless Mouse",
        "category": "Electronics",
        "brand": "Keyforge",
        "price": 79.99,
        "stock": 150,
        "views": 700,
        "rating": 4.2,
        "tags": ["wireless", "bluetooth"],
    },
    {
        "external_item_id": "prod-007",
        "name": "USB-C Hub",
        "category": "Electronics",
        "brand": "Vista",
        "price": 49.99,
        "stock": 0,
        "views": 380,
        "rating": 3.9,
        "tags": ["usb-c"],
    },
    {
        "external_item_id": "prod-008",
        "name": "Desk Lamp",
        "category": "Furniture",
        "brand": "Lumen",
        "price": 59.99,
        "stock": 75,
        "views": 150,
        "rating": 4.0,
        "tags": ["office", "led"],
    },
    {
        "external_item_id": "prod-009",
        "name": "Webcam HD 1080p",
        "category": "Electronics",
        "brand": "Vista",
        "price": 89.99,
        "stock": 60,
        "views": 290,
        "rating": 3.8,
        "tags": ["video", "usb-c"],
    },
    {
        "external_item_id": "prod-010",
        "name": "Laptop Stand",
        "category": "Accessories",
        "brand": "Lumen",
        "price": 39.99,
        "stock": 120,
        "views": 260,
        "rating": 4.3,
        "tags": ["office", "aluminum"],
    },
]

# (user, item, action) replayed in order
SESSIONS = [
    # Alice: electronics browser, bought headphones
    ("user-001", "prod-001", "view"),
    ("user-001", "prod-002", "view"),
    ("user-001", "prod-004", "view"),
    ("user-001", "prod-006", "view"),
    ("user-001", "prod-001", "cart"),
    ("user-001", "prod-001", "purchase"),
    ("user-001", "prod-004", "wishlist"),
    # Bob: furniture, chair left in the cart
    ("user-002", "prod-003", "view"),
    ("user-002", "prod-005", "view"),
    ("user-002", "prod-008", "view"),
    ("user-002", "prod-003", "cart"),
    # Charlie: overlaps with Alice
    ("user-003", "prod-001", "view"),
    ("user-003", "prod-001", "purchase"),
    ("user-003", "prod-006", "view"),
    ("user-003", "prod-006", "purchase"),
    ("user-003", "prod-002", "click"),
    ("user-003", "prod-002", "click"),
]


def to_features(row: dict) -> ItemFeatures:
    return ItemFeatures(
        item_id=row["external_item_id"],
        name=row["name"],
        category=row["category"],
        brand=row["brand"],
        price=row["price"],
        popularity=row["views"],
        rating=row["rating"],
        tags=frozenset(row["tags"]),
        in_stock=row["stock"] > 0,
    )


async def seed_postgres_catalog() -> None:
    """Create the schema and upsert the catalog rows."""
    from hybrid_recommender.infrastructure.database.connection import get_async_engine
    from hybrid_recommender.infrastructure.database.models import (
        SCHEMA,
        Base,
        CatalogItem,
    )

    engine = get_async_engine()
    async with engine.begin() as conn:
        await conn.execute(text(f"CREATE SCHEMA IF NOT EXISTS {SCHEMA}"))
        await conn.run_sync(Base.metadata.create_all)

        statement = insert(CatalogItem).values(CATALOG)
        await conn.execute(
            statement.on_conflict_do_update(
                index_elements=[CatalogItem.external_item_id],
                set_={
                    column: statement.excluded[column]
                    for column in ("name", "category", "brand", "price", "stock", "views", "rating", "tags")
                },
            )
        )
    await engine.dispose()
    print(f"Upserted {len(CATALOG)} catalog items")


async def main():
    """Run seeding."""
    settings = get_settings()
    print("Seeding development data...")
    print("=" * 50)

    if settings.feature_backend == "postgres":
        await seed_postgres_catalog()
        feature_store = build_feature_store(settings)
    else:
        feature_store = InMemoryFeatureStore(to_features(row) for row in CATALOG)
        print(f"Loaded {len(CATALOG)} catalog items in memory")

    orchestrator = RecommendationOrchestrator(
        behavior_store=await build_behavior_store(settings),
        feature_store=feature_store,
        settings=settings,
    )

    for user_id, item_id, action in SESSIONS:
        await orchestrator.track_interaction(user_id, item_id, action)
    abandoned = await orchestrator.mark_cart_abandoned("user-002")
    print(f"Replayed {len(SESSIONS)} interactions ({len(abandoned)} abandoned in cart)")

    print("=" * 50)
    for user_id in ("user-001", "user-002", "user-003", "user-new"):
        result = await orchestrator.get_recommendations(user_id, count=5)
        print(f"{user_id} [{result.strategy.value}, {result.confidence:.2f}]: {result.item_ids}")

    print("Seeding complete!")


if __name__ == "__main__":
    asyncio.run(main())
