"""SQLAlchemy models for the catalog and recommendation impressions.

These models live in the 'recommender' schema. The catalog table is owned by
the catalog system; this service only reads it.
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

SCHEMA = "recommender"


class Base(DeclarativeBase):
    """Base class for all models."""


class CatalogItem(Base):
    """A sellable catalog item with the features used for similarity."""

    __tablename__ = "catalog_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    external_item_id: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    category: Mapped[Optional[str]] = mapped_column(String(255))
    brand: Mapped[Optional[str]] = mapped_column(String(255))
    price: Mapped[float] = mapped_column(Float, default=0.0)
    stock: Mapped[int] = mapped_column(Integer, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # View count, incremented by the catalog system
    views: Mapped[int] = mapped_column(Integer, default=0)
    rating: Mapped[float] = mapped_column(Float, default=0.0)
    tags: Mapped[Optional[list]] = mapped_column(JSON, default=list)

    # Externally computed embedding, stored as a JSON array
    embedding: Mapped[Any] = mapped_column(JSON, nullable=True)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_catalog_items_category_active", "category", "is_active"),
        Index("ix_catalog_items_views_rating", "views", "rating"),
        {"schema": SCHEMA},
    )


class RecommendationImpression(Base):
    """A recommendation list shown to a user."""

    __tablename__ = "recommendation_impressions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    external_user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    item_ids: Mapped[list] = mapped_column(JSON, nullable=False)
    strategy: Mapped[Optional[str]] = mapped_column(String(50))
    request_id: Mapped[Optional[str]] = mapped_column(String(255))
    context: Mapped[Optional[dict]] = mapped_column(JSON, default=dict)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False, index=True
    )

    __table_args__ = ({"schema": SCHEMA},)
