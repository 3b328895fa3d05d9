"""Redis-backed behavior store with graceful client setup."""

import orjson
import redis.asyncio as aioredis
import structlog
from redis.exceptions import RedisError

from hybrid_recommender.config import get_settings
from hybrid_recommender.exceptions import StoreUnavailableError
from hybrid_recommender.models import UserBehavior

logger = structlog.get_logger()

_redis_client: aioredis.Redis | None = None

BEHAVIOR_KEY_PREFIX = "behavior:"
BEHAVIOR_INDEX_KEY = "behavior:users"


async def get_redis_client() -> aioredis.Redis | None:
    """Get or create the global async Redis client."""
    global _redis_client
    if _redis_client is None:
        settings = get_settings()
        try:
            _redis_client = aioredis.from_url(
                settings.redis_url,
                decode_responses=False,
                socket_connect_timeout=2,
                socket_timeout=2,
                retry_on_timeout=True,
            )
            await _redis_client.ping()
            logger.info("Redis connection established")
        except Exception as e:
            logger.warning("Redis unavailable", error=str(e))
            _redis_client = None
    return _redis_client


async def close_redis() -> None:
    """Close the Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.close()
        _redis_client = None


class RedisBehaviorStore:
    """Stores each user's behavior as an orjson document under ``behavior:{id}``.

    User ids are also kept in the ``behavior:users`` set so the collaborative
    recommender can draw a random neighbor sample with SRANDMEMBER.
    """

    def __init__(self, client: aioredis.Redis, ttl_seconds: int | None = None):
        self.client = client
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def _key(user_id: str) -> str:
        return f"{BEHAVIOR_KEY_PREFIX}{user_id}"

    async def get(self, user_id: str) -> UserBehavior | None:
        try:
            data = await self.client.get(self._key(user_id))
        except RedisError as e:
            raise StoreUnavailableError("behavior store", str(e)) from e
        if not data:
            return None
        return UserBehavior.from_dict(orjson.loads(data))

    async def put(self, behavior: UserBehavior) -> None:
        payload = orjson.dumps(behavior.to_dict())
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.set(self._key(behavior.user_id), payload, ex=self.ttl_seconds)
                pipe.sadd(BEHAVIOR_INDEX_KEY, behavior.user_id)
                await pipe.execute()
        except RedisError as e:
            raise StoreUnavailableError("behavior store", str(e)) from e

    async def sample(self, limit: int) -> list[UserBehavior]:
        try:
            user_ids = await self.client.srandmember(BEHAVIOR_INDEX_KEY, limit)
            if not user_ids:
                return []
            keys = [self._key(uid.decode() if isinstance(uid, bytes) else uid) for uid in user_ids]
            documents = await self.client.mget(keys)
        except RedisError as e:
            raise StoreUnavailableError("behavior store", str(e)) from e

        return [UserBehavior.from_dict(orjson.loads(doc)) for doc in documents if doc]

    async def health_check(self) -> bool:
        try:
            return await self.client.ping()
        except Exception:
            return False
