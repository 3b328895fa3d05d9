"""Unit tests for the behavior/feature stores and impression sinks."""

from contextlib import asynccontextmanager
from types import SimpleNamespace

import orjson
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.exc import SQLAlchemyError

from hybrid_recommender.exceptions import StoreUnavailableError
from hybrid_recommender.infrastructure.database.stores import (
    SqlFeatureStore,
    SqlImpressionSink,
    row_to_features,
)
from hybrid_recommender.infrastructure.redis import (
    BEHAVIOR_INDEX_KEY,
    RedisBehaviorStore,
)
from hybrid_recommender.infrastructure.stores import (
    BehaviorStore,
    FeatureStore,
    ImpressionSink,
    InMemoryBehaviorStore,
    InMemoryFeatureStore,
    InMemoryImpressionSink,
)
from hybrid_recommender.models import PriceTier, UserBehavior


class FakePipeline:
    def __init__(self, redis: "FakeRedis"):
        self.redis = redis
        self.ops: list[tuple] = []

    async def __aenter__(self) -> "FakePipeline":
        return self

    async def __aexit__(self, *exc) -> None:
        return None

    def set(self, key, value, ex=None) -> None:
        self.ops.append(("set", key, value, ex))

    def sadd(self, key, member) -> None:
        self.ops.append(("sadd", key, member))

    async def execute(self) -> list:
        for op in self.ops:
            if op[0] == "set":
                self.redis.data[op[1]] = op[2]
                self.redis.expiry[op[1]] = op[3]
            else:
                self.redis.sets.setdefault(op[1], set()).add(op[2].encode())
        return [True] * len(self.ops)


class FakeRedis:
    """Just enough of redis.asyncio.Redis for the behavior store."""

    def __init__(self, fail: bool = False):
        self.data: dict[str, bytes] = {}
        self.expiry: dict[str, int | None] = {}
        self.sets: dict[str, set[bytes]] = {}
        self.fail = fail

    def _check(self) -> None:
        if self.fail:
            raise RedisConnectionError("connection refused")

    async def get(self, key):
        self._check()
        return self.data.get(key)

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        self._check()
        return FakePipeline(self)

    async def srandmember(self, key, count):
        self._check()
        return sorted(self.sets.get(key, set()))[:count]

    async def mget(self, keys):
        self._check()
        return [self.data.get(key) for key in keys]

    async def ping(self) -> bool:
        self._check()
        return True


class TestInMemoryStores:
    def test_satisfy_protocols(self) -> None:
        assert isinstance(InMemoryBehaviorStore(), BehaviorStore)
        assert isinstance(InMemoryFeatureStore(), FeatureStore)
        assert isinstance(InMemoryImpressionSink(), ImpressionSink)

    @pytest.mark.asyncio
    async def test_behavior_store_returns_copies(self) -> None:
        store = InMemoryBehaviorStore()
        await store.put(UserBehavior(user_id="u", viewed_items=["a"]))

        loaded = await store.get("u")
        loaded.viewed_items.append("b")

        assert (await store.get("u")).viewed_items == ["a"]
        assert await store.get("missing") is None

    @pytest.mark.asyncio
    async def test_category_query_skips_inactive(self, feature_store: InMemoryFeatureStore) -> None:
        phones = await feature_store.query_by_category("Phones", 50)
        ids = [item.item_id for item in phones]
        assert "phone-old" not in ids
        assert ids[:2] == ["phone-out", "phone-1"]

    @pytest.mark.asyncio
    async def test_trending_query_limit(self, feature_store: InMemoryFeatureStore) -> None:
        items = await feature_store.query_active_sorted_by_popularity_then_rating(3)
        assert [item.item_id for item in items] == ["phone-out", "phone-1", "shoe-1"]

    @pytest.mark.asyncio
    async def test_impression_sink_keeps_records(self) -> None:
        sink = InMemoryImpressionSink()
        await sink.record("u", ["a", "b"], {"strategy": "hybrid"})
        assert sink.impressions[0]["item_ids"] == ["a", "b"]
        assert "recorded_at" in sink.impressions[0]


class TestRedisBehaviorStore:
    @pytest.mark.asyncio
    async def test_put_then_get(self) -> None:
        redis = FakeRedis()
        store = RedisBehaviorStore(redis, ttl_seconds=3600)
        behavior = UserBehavior(
            user_id="u",
            viewed_items=["a", "a"],
            purchased_items={"b"},
            click_through={"a": 2},
        )

        await store.put(behavior)
        loaded = await store.get("u")

        assert loaded == behavior
        assert redis.expiry["behavior:u"] == 3600
        assert redis.sets[BEHAVIOR_INDEX_KEY] == {b"u"}

    @pytest.mark.asyncio
    async def test_document_is_json(self) -> None:
        redis = FakeRedis()
        await RedisBehaviorStore(redis).put(UserBehavior(user_id="u", wishlist={"z", "a"}))
        document = orjson.loads(redis.data["behavior:u"])
        assert document["wishlist"] == ["a", "z"]

    @pytest.mark.asyncio
    async def test_missing_user(self) -> None:
        assert await RedisBehaviorStore(FakeRedis()).get("nobody") is None

    @pytest.mark.asyncio
    async def test_sample(self) -> None:
        store = RedisBehaviorStore(FakeRedis())
        for user_id in ["a", "b", "c"]:
            await store.put(UserBehavior(user_id=user_id))

        sampled = await store.sample(2)

        assert len(sampled) == 2
        assert all(isinstance(b, UserBehavior) for b in sampled)

    @pytest.mark.asyncio
    async def test_sample_empty_index(self) -> None:
        assert await RedisBehaviorStore(FakeRedis()).sample(10) == []

    @pytest.mark.asyncio
    async def test_errors_become_store_unavailable(self) -> None:
        store = RedisBehaviorStore(FakeRedis(fail=True))
        with pytest.raises(StoreUnavailableError):
            await store.get("u")
        with pytest.raises(StoreUnavailableError):
            await store.put(UserBehavior(user_id="u"))
        with pytest.raises(StoreUnavailableError):
            await store.sample(5)

    @pytest.mark.asyncio
    async def test_health_check(self) -> None:
        assert await RedisBehaviorStore(FakeRedis()).health_check() is True
        assert await RedisBehaviorStore(FakeRedis(fail=True)).health_check() is False


def _catalog_row(**overrides) -> SimpleNamespace:
    row = {
        "external_item_id": "sku-1",
        "name": "Trail Runner",
        "category": "Shoes",
        "brand": "Stride",
        "price": 1200.0,
        "stock": 3,
        "is_active": True,
        "views": 42,
        "rating": 4.3,
        "tags": ["running", "trail"],
        "embedding": [0.1, 0.2],
    }
    row.update(overrides)
    return SimpleNamespace(**row)


class TestRowToFeatures:
    def test_maps_columns(self) -> None:
        item = row_to_features(_catalog_row())
        assert item.item_id == "sku-1"
        assert item.popularity == 42
        assert item.price_tier is PriceTier.MID
        assert item.tags == frozenset({"running", "trail"})
        assert item.embedding == (0.1, 0.2)
        assert item.in_stock is True

    def test_parses_json_strings(self) -> None:
        item = row_to_features(_catalog_row(tags='["a"]', embedding="[1, 0]"))
        assert item.tags == frozenset({"a"})
        assert item.embedding == (1.0, 0.0)

    def test_nulls(self) -> None:
        item = row_to_features(
            _catalog_row(brand=None, stock=0, tags=None, embedding=None, rating=None)
        )
        assert item.brand == "Unknown"
        assert item.in_stock is False
        assert item.tags == frozenset()
        assert item.embedding is None
        assert item.rating == 0.0


class FakeResult:
    def __init__(self, rows):
        self.rows = rows

    def scalars(self):
        return self

    def all(self):
        return self.rows


class FakeSession:
    def __init__(self, rows=(), error: Exception | None = None):
        self.rows = list(rows)
        self.error = error
        self.statements = []
        self.committed = False
        self.rolled_back = False

    async def execute(self, statement):
        if self.error is not None:
            raise self.error
        self.statements.append(statement)
        return FakeResult(self.rows)

    async def commit(self) -> None:
        self.committed = True

    async def rollback(self) -> None:
        self.rolled_back = True


def session_factory_for(session: FakeSession):
    @asynccontextmanager
    async def open_session():
        yield session

    return open_session


class TestSqlStores:
    @pytest.mark.asyncio
    async def test_get_returns_first_row(self) -> None:
        session = FakeSession(rows=[_catalog_row()])
        store = SqlFeatureStore(session_factory_for(session))

        item = await store.get("sku-1")

        assert item.item_id == "sku-1"
        assert session.committed

    @pytest.mark.asyncio
    async def test_get_missing(self) -> None:
        store = SqlFeatureStore(session_factory_for(FakeSession()))
        assert await store.get("nope") is None

    @pytest.mark.asyncio
    async def test_query_error_becomes_store_unavailable(self) -> None:
        session = FakeSession(error=SQLAlchemyError("connection reset"))
        store = SqlFeatureStore(session_factory_for(session))

        with pytest.raises(StoreUnavailableError):
            await store.query_by_category("Shoes", 10)
        assert session.rolled_back

    @pytest.mark.asyncio
    async def test_impression_insert(self) -> None:
        session = FakeSession()
        sink = SqlImpressionSink(session_factory_for(session))

        await sink.record("u", ["a"], {"strategy": "hybrid", "request_id": "r-1"})

        assert len(session.statements) == 1
        assert session.committed
