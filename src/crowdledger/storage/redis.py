"""
Redis Storage Backend.

Persistent storage backend using Redis.
Requires redis-py package.
"""

from __future__ import annotations

import json
import os
from typing import Any

from crowdledger.storage.base import StorageBackend, counter_delta, register_storage_backend


class RedisStorage(StorageBackend):
    """
    Redis storage backend.

    Each record is a JSON string under ``{prefix}:{collection}:{key}``; a set
    at ``{prefix}:{collection}:_index`` lists the record keys of a collection.
    Counters are native Redis integers updated with INCRBY.
    Requires: pip install redis
    """

    def __init__(
        self,
        redis_url: str | None = None,
        prefix: str = "crowdledger",
    ) -> None:
        """
        Initialize Redis storage.

        Args:
            redis_url: Redis connection URL (or from CROWDLEDGER_REDIS_URL env)
            prefix: Key prefix for all storage keys
        """
        self._redis_url = redis_url or os.environ.get(
            "CROWDLEDGER_REDIS_URL",
            "redis://localhost:6379/0",
        )
        self._prefix = prefix
        self._client = None

    def _get_client(self):
        """Lazy-load Redis client."""
        if self._client is None:
            try:
                import redis.asyncio as redis
            except ImportError:
                raise ImportError(
                    "redis package required for RedisStorage. Install with: pip install redis"
                ) from None
            self._client = redis.from_url(self._redis_url, decode_responses=True)
        return self._client

    def _make_key(self, collection: str, key: str) -> str:
        return f"{self._prefix}:{collection}:{key}"

    def _index_key(self, collection: str) -> str:
        return f"{self._prefix}:{collection}:_index"

    def _counter_key(self, collection: str, key: str) -> str:
        return f"{self._prefix}:counters:{collection}:{key}"

    async def save(
        self,
        collection: str,
        key: str,
        data: dict[str, Any],
    ) -> None:
        client = self._get_client()
        await client.set(self._make_key(collection, key), json.dumps(data))
        await client.sadd(self._index_key(collection), key)

    async def get(
        self,
        collection: str,
        key: str,
    ) -> dict[str, Any] | None:
        client = self._get_client()
        data = await client.get(self._make_key(collection, key))
        if data is None:
            counter = await client.get(self._counter_key(collection, key))
            return {"value": counter} if counter is not None else None
        return json.loads(data)

    async def delete(
        self,
        collection: str,
        key: str,
    ) -> bool:
        client = self._get_client()
        result = await client.delete(
            self._make_key(collection, key), self._counter_key(collection, key)
        )
        await client.srem(self._index_key(collection), key)
        return result > 0

    async def atomic_add(
        self,
        collection: str,
        key: str,
        amount: str,
    ) -> str:
        client = self._get_client()
        redis_key = self._counter_key(collection, key)
        new_val = await client.incrby(redis_key, counter_delta(amount))
        return str(new_val)

    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        client = self._get_client()
        keys = sorted(await client.smembers(self._index_key(collection)))

        results = []
        for key in keys:
            raw = await client.get(self._make_key(collection, key))
            if raw is None:
                continue
            data = json.loads(raw)
            if filters and any(data.get(k) != v for k, v in filters.items()):
                continue
            data["_key"] = key
            results.append(data)

        results = results[offset:]
        if limit is not None:
            results = results[:limit]

        return results

    async def close(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.aclose()
            self._client = None


# Register backend
register_storage_backend("redis", RedisStorage)
