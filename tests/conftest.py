"""Pytest configuration and fixtures."""

from collections.abc import Callable, Generator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from hybrid_recommender.api.dependencies import get_orchestrator
from hybrid_recommender.config import Settings
from hybrid_recommender.infrastructure.stores import (
    InMemoryBehaviorStore,
    InMemoryFeatureStore,
    InMemoryImpressionSink,
)
from hybrid_recommender.main import create_app
from hybrid_recommender.models import ItemFeatures, UserBehavior
from hybrid_recommender.services.orchestrator import RecommendationOrchestrator


def make_item(
    item_id: str,
    category: str = "Electronics",
    brand: str = "Acme",
    price: float = 500.0,
    popularity: int = 10,
    rating: float = 4.0,
    tags: tuple[str, ...] = (),
    **kwargs: Any,
) -> ItemFeatures:
    """Helper to create catalog items with sensible defaults."""
    return ItemFeatures(
        item_id=item_id,
        name=kwargs.pop("name", item_id.replace("-", " ").title()),
        category=category,
        brand=brand,
        price=price,
        popularity=popularity,
        rating=rating,
        tags=frozenset(tags),
        **kwargs,
    )


@pytest.fixture
def item_factory() -> Callable[..., ItemFeatures]:
    """Factory for catalog items, for tests that build their own catalog."""
    return make_item


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with in-memory backends."""
    return Settings(
        app_env="test",
        debug=True,
        behavior_backend="memory",
        feature_backend="memory",
        impression_backend="memory",
        recommendation_timeout_seconds=5.0,
    )


@pytest.fixture
def catalog() -> list[ItemFeatures]:
    """Small catalog spanning four categories and several brands."""
    return [
        make_item("phone-1", "Phones", "Orbit", 800, popularity=500, rating=4.6, tags=("5g", "oled")),
        make_item("phone-2", "Phones", "Orbit", 900, popularity=300, rating=4.2, tags=("5g", "oled")),
        make_item("phone-3", "Phones", "Nova", 700, popularity=200, rating=3.9, tags=("5g",)),
        make_item("phone-4", "Phones", "Orbit", 850, popularity=150, rating=4.8, tags=("5g", "oled")),
        make_item("laptop-1", "Laptops", "Vertex", 4500, popularity=400, rating=4.5, tags=("ssd",)),
        make_item("laptop-2", "Laptops", "Vertex", 4800, popularity=100, rating=4.1, tags=("ssd",)),
        make_item("shoe-1", "Shoes", "Stride", 120, popularity=450, rating=4.0),
        make_item("shoe-2", "Shoes", "Stride", 150, popularity=50, rating=3.5),
        make_item("chair-1", "Furniture", "Sitwell", 6000, popularity=350, rating=4.7),
        make_item("phone-out", "Phones", "Orbit", 820, popularity=600, rating=4.9, in_stock=False),
        make_item("phone-old", "Phones", "Orbit", 810, popularity=700, rating=4.9, active=False),
    ]


@pytest.fixture
def feature_store(catalog: list[ItemFeatures]) -> InMemoryFeatureStore:
    return InMemoryFeatureStore(catalog)


@pytest.fixture
def behavior_store() -> InMemoryBehaviorStore:
    return InMemoryBehaviorStore(
        [
            UserBehavior(
                user_id="neighbor-1",
                purchased_items={"phone-1", "phone-2", "laptop-1"},
                viewed_items=["phone-1", "phone-2"],
            ),
            UserBehavior(
                user_id="stranger",
                purchased_items={"chair-1"},
                viewed_items=["chair-1"],
            ),
        ]
    )


@pytest.fixture
def impression_sink() -> InMemoryImpressionSink:
    return InMemoryImpressionSink()


@pytest.fixture
def orchestrator(
    behavior_store: InMemoryBehaviorStore,
    feature_store: InMemoryFeatureStore,
    impression_sink: InMemoryImpressionSink,
    test_settings: Settings,
) -> RecommendationOrchestrator:
    return RecommendationOrchestrator(
        behavior_store=behavior_store,
        feature_store=feature_store,
        impression_sink=impression_sink,
        settings=test_settings,
    )


@pytest.fixture
def app(orchestrator: RecommendationOrchestrator) -> Any:
    """Create test application wired to the in-memory orchestrator."""

    async def get_test_orchestrator() -> RecommendationOrchestrator:
        return orchestrator

    app = create_app()
    app.dependency_overrides[get_orchestrator] = get_test_orchestrator
    return app


@pytest.fixture
def client(app: Any) -> Generator[TestClient, None, None]:
    """Create synchronous test client."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def sample_user_id() -> str:
    """Sample user ID for tests."""
    return "test-user-123"


@pytest.fixture
def sample_interaction_data(sample_user_id: str) -> dict:
    """Sample interaction request data."""
    return {
        "user_id": sample_user_id,
        "item_id": "phone-1",
        "action": "view",
    }
