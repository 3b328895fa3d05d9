"""PostgreSQL implementations of the feature store and impression sink."""

from typing import Any

import orjson
import structlog
from sqlalchemy import insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hybrid_recommender.exceptions import StoreUnavailableError
from hybrid_recommender.infrastructure.database.connection import get_db_session
from hybrid_recommender.infrastructure.database.models import (
    CatalogItem,
    RecommendationImpression,
)
from hybrid_recommender.models import ItemFeatures

logger = structlog.get_logger()


def row_to_features(row: CatalogItem) -> ItemFeatures:
    """Convert a catalog row into ItemFeatures."""
    embedding = row.embedding
    if isinstance(embedding, str):
        embedding = orjson.loads(embedding)

    tags = row.tags
    if isinstance(tags, str):
        tags = orjson.loads(tags)

    return ItemFeatures(
        item_id=str(row.external_item_id),
        name=row.name or "",
        category=row.category or "Unknown",
        brand=row.brand or "Unknown",
        price=float(row.price or 0.0),
        popularity=int(row.views or 0),
        rating=float(row.rating or 0.0),
        tags=frozenset(tags or []),
        embedding=tuple(float(v) for v in embedding) if embedding else None,
        in_stock=(row.stock or 0) > 0,
        active=bool(row.is_active),
    )


class SqlFeatureStore:
    """Reads item features from ``recommender.catalog_items``."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def _fetch(self, statement) -> list[ItemFeatures]:
        try:
            async with get_db_session(self.session_factory) as session:
                result = await session.execute(statement)
                rows = result.scalars().all()
        except SQLAlchemyError as e:
            raise StoreUnavailableError("feature store", str(e)) from e
        return [row_to_features(row) for row in rows]

    async def get(self, item_id: str) -> ItemFeatures | None:
        items = await self._fetch(
            select(CatalogItem).where(CatalogItem.external_item_id == item_id)
        )
        return items[0] if items else None

    async def query_by_category(self, category: str, limit: int) -> list[ItemFeatures]:
        return await self._fetch(
            select(CatalogItem)
            .where(CatalogItem.category == category, CatalogItem.is_active.is_(True))
            .order_by(CatalogItem.views.desc(), CatalogItem.external_item_id)
            .limit(limit)
        )

    async def query_active_sorted_by_popularity_then_rating(
        self, limit: int
    ) -> list[ItemFeatures]:
        return await self._fetch(
            select(CatalogItem)
            .where(CatalogItem.is_active.is_(True))
            .order_by(
                CatalogItem.views.desc(),
                CatalogItem.rating.desc(),
                CatalogItem.external_item_id,
            )
            .limit(limit)
        )


class SqlImpressionSink:
    """Appends impressions to ``recommender.recommendation_impressions``."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def record(
        self, user_id: str, item_ids: list[str], context: dict[str, Any]
    ) -> None:
        try:
            async with get_db_session(self.session_factory) as session:
                await session.execute(
                    insert(RecommendationImpression).values(
                        external_user_id=user_id,
                        item_ids=list(item_ids),
                        strategy=context.get("strategy"),
                        request_id=context.get("request_id"),
                        context=context,
                    )
                )
        except SQLAlchemyError as e:
            raise StoreUnavailableError("impression sink", str(e)) from e
