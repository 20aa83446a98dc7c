import json
from typing import Any, Optional

import redis
from redis.asyncio import Redis

from ..config import storage
from ..errors import StorageUnavailable
from ..logger import get_logger
from .store import KeyValueStore, Versioned

logger = get_logger(__name__)

KEY_PREFIX = 'bz:'


class RedisStore(KeyValueStore):
    """
    Each key is a Redis hash `{value, version}`.

    Conditional writes WATCH the key, compare the version, and commit in a
    MULTI/EXEC block; a concurrent write aborts the transaction.
    """
    name = 'redis'

    def __init__(self, client: Redis = None, max_retries: int = None, retry_delay: float = None):
        super().__init__(max_retries, retry_delay)
        self.redis = client

    async def initialize(self):
        if self.redis is None:
            self.redis = Redis(
                host=storage.redis_host,
                port=storage.redis_port,
                decode_responses=True,
                socket_timeout=5,
                socket_connect_timeout=5,
                retry_on_timeout=True
            )
        try:
            await self.redis.ping()
            logger.info("Redis store initialized successfully")
        except redis.RedisError as e:
            logger.error(f"Failed to connect to Redis: {e}")
            raise StorageUnavailable('Redis unavailable') from e

    async def close(self):
        if self.redis:
            await self.redis.close()

    async def get(self, key: str) -> Optional[Versioned]:
        try:
            row = await self.redis.hgetall(KEY_PREFIX + key)
        except redis.RedisError as e:
            logger.error(f"Redis error reading {key}: {e}")
            raise StorageUnavailable() from e
        if not row:
            return None
        return Versioned(json.loads(row['value']), int(row['version']))

    async def put(self, key: str, value: Any) -> int:
        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.hset(KEY_PREFIX + key, 'value', json.dumps(value))
                pipe.hincrby(KEY_PREFIX + key, 'version', 1)
                _, version = await pipe.execute()
                return int(version)
        except redis.RedisError as e:
            logger.error(f"Redis error writing {key}: {e}")
            raise StorageUnavailable() from e

    async def conditional_put(self, key: str, value: Any, expected_version: Optional[int]) -> bool:
        full_key = KEY_PREFIX + key
        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                await pipe.watch(full_key)
                current = await pipe.hget(full_key, 'version')
                current_version = int(current) if current is not None else None
                if current_version != expected_version:
                    await pipe.unwatch()
                    return False
                pipe.multi()
                pipe.hset(full_key, mapping={
                    'value': json.dumps(value),
                    'version': (current_version or 0) + 1
                })
                await pipe.execute()
                return True
        except redis.WatchError:
            return False
        except redis.RedisError as e:
            logger.error(f"Redis error writing {key}: {e}")
            raise StorageUnavailable() from e
