"""
In-Memory Storage Backend.

Default storage backend that keeps all ledger data in memory.
Suitable for development and testing; data is lost when the process ends.
"""

from __future__ import annotations

from copy import deepcopy
from typing import Any

from crowdledger.storage.base import StorageBackend, counter_delta, register_storage_backend


class InMemoryStorage(StorageBackend):
    """
    In-memory storage backend.

    Collections are plain dicts, iterated in insertion order.
    Counters written by ``atomic_add`` live in a separate namespace so
    they never show up in ``query`` results.
    """

    def __init__(self) -> None:
        self._data: dict[str, dict[str, dict[str, Any]]] = {}
        self._counters: dict[str, dict[str, str]] = {}

    def _ensure_collection(self, collection: str) -> dict[str, dict[str, Any]]:
        """Ensure collection exists and return it."""
        if collection not in self._data:
            self._data[collection] = {}
        return self._data[collection]

    async def save(
        self,
        collection: str,
        key: str,
        data: dict[str, Any],
    ) -> None:
        coll = self._ensure_collection(collection)
        coll[key] = deepcopy(data)

    async def get(
        self,
        collection: str,
        key: str,
    ) -> dict[str, Any] | None:
        counters = self._counters.get(collection, {})
        if key in counters:
            return {"value": counters[key]}
        coll = self._ensure_collection(collection)
        data = coll.get(key)
        return deepcopy(data) if data is not None else None

    async def delete(
        self,
        collection: str,
        key: str,
    ) -> bool:
        coll = self._ensure_collection(collection)
        if key in coll:
            del coll[key]
            return True
        return self._counters.get(collection, {}).pop(key, None) is not None

    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        coll = self._ensure_collection(collection)

        results = []
        for key, data in coll.items():
            if filters and any(data.get(k) != v for k, v in filters.items()):
                continue
            result = deepcopy(data)
            result["_key"] = key
            results.append(result)

        results = results[offset:]
        if limit is not None:
            results = results[:limit]

        return results

    async def atomic_add(
        self,
        collection: str,
        key: str,
        amount: str,
    ) -> str:
        counters = self._counters.setdefault(collection, {})
        # Stored as a string, like Redis returns it
        counters[key] = str(int(counters.get(key, "0")) + counter_delta(amount))
        return counters[key]


# Register as default backend
register_storage_backend("memory", InMemoryStorage)
