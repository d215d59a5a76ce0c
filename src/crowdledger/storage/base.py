"""
Storage interface for CrowdLedger.

The ledger keeps everything in named collections of JSON-compatible
records: campaigns, contributions, ledger_state and events. Counters
(campaign IDs, event sequence numbers) are kept through ``atomic_add``
and read back with ``get`` as ``{"value": "<n>"}``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from typing import Any


def counter_delta(amount: str) -> int:
    """Parse an ``atomic_add`` amount, which must be a whole number."""
    try:
        delta = Decimal(amount)
    except InvalidOperation:
        raise ValueError(f"Counter delta is not a number: {amount!r}") from None
    if not delta.is_finite() or delta != delta.to_integral_value():
        raise ValueError(f"Counter delta must be a whole number, got {amount!r}")
    return int(delta)


class StorageBackend(ABC):
    """Record store used by CampaignLedger and EventBus."""

    @abstractmethod
    async def save(self, collection: str, key: str, data: dict[str, Any]) -> None:
        """Create or replace the record at ``key``."""
        ...

    @abstractmethod
    async def get(self, collection: str, key: str) -> dict[str, Any] | None:
        """Return a copy of the record, the counter value, or None."""
        ...

    @abstractmethod
    async def delete(self, collection: str, key: str) -> bool:
        """Remove a record or counter. Returns False if nothing was there."""
        ...

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """
        Records of a collection whose fields equal ``filters``.

        Each result carries its key under ``_key``. Counters are never
        returned.
        """
        ...

    @abstractmethod
    async def atomic_add(self, collection: str, key: str, amount: str) -> str:
        """
        Add an integer ``amount`` to the counter at ``key``.

        Returns the new value as a string. Non-integral amounts raise ValueError.
        """
        ...

    async def close(self) -> None:
        """Release connections. Default: nothing to release."""
        return None


# name -> backend class, filled by each backend module on import
_STORAGE_BACKENDS: dict[str, type[StorageBackend]] = {}


def register_storage_backend(name: str, backend_class: type[StorageBackend]) -> None:
    _STORAGE_BACKENDS[name] = backend_class


def get_storage_backend(name: str) -> type[StorageBackend] | None:
    return _STORAGE_BACKENDS.get(name)


def list_storage_backends() -> list[str]:
    return sorted(_STORAGE_BACKENDS)
