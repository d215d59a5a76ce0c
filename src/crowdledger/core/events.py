"""
Notification records emitted by the ledger.

Events are appended to the storage ``events`` collection and handed to any
in-process subscribers. Delivery beyond this process is left to those
subscribers.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from crowdledger.core.logging import get_logger

if TYPE_CHECKING:
    from crowdledger.storage.base import StorageBackend


class EventType(str, Enum):
    """Types of ledger notifications."""

    CAMPAIGN_CREATED = "campaign.created"
    DONATION_RECEIVED = "donation.received"
    CAMPAIGN_ENDED = "campaign.ended"
    RESIDUAL_CREDITED = "residual.credited"
    RESIDUAL_SWEPT = "residual.swept"


@dataclass
class LedgerEvent:
    """
    A structured notification record.

    ``data`` holds the event payload, e.g. for CAMPAIGN_ENDED:
    ``{"id": 0, "beneficiary": "...", "amount_released": "70"}``.
    """

    type: EventType
    data: dict[str, Any]
    sequence: int = 0
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "data": self.data,
            "sequence": self.sequence,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LedgerEvent:
        ts_str = data.get("timestamp")
        return cls(
            type=EventType(data["type"]),
            data=data.get("data", {}),
            sequence=int(data.get("sequence", 0)),
            timestamp=datetime.fromisoformat(ts_str) if ts_str else datetime.now(),
        )


EventHandler = Callable[[LedgerEvent], "Awaitable[None] | None"]


class EventBus:
    """
    Records events and fans them out to subscribers.

    Handlers run after the ledger state is committed, so a failing handler
    is logged and does not undo the operation that produced the event.
    """

    COLLECTION = "events"
    COUNTER_COLLECTION = "counters"
    COUNTER_KEY = "event_sequence"

    def __init__(self, storage: StorageBackend) -> None:
        self._storage = storage
        self._handlers: list[tuple[EventType | None, EventHandler]] = []
        self._logger = get_logger("events")

    def subscribe(self, handler: EventHandler, event_type: EventType | None = None) -> None:
        """Register a handler for one event type, or for all when ``event_type`` is None."""
        self._handlers.append((event_type, handler))

    def unsubscribe(self, handler: EventHandler) -> None:
        self._handlers = [(t, h) for t, h in self._handlers if h is not handler]

    async def publish(self, event_type: EventType, **data: Any) -> LedgerEvent:
        """
        Record an event and hand it to subscribers.

        The operation that produced the event is already committed, so a
        failure to record it is logged rather than raised. Such an event is
        still delivered; its sequence stays 0 if none could be assigned.
        """
        event = LedgerEvent(type=event_type, data=data)
        try:
            event.sequence = int(
                await self._storage.atomic_add(self.COUNTER_COLLECTION, self.COUNTER_KEY, "1")
            )
            await self._storage.save(self.COLLECTION, f"{event.sequence:012d}", event.to_dict())
        except Exception:
            self._logger.exception(f"Failed to record {event_type.value} event: {data}")
        else:
            self._logger.debug(f"Published {event_type.value} #{event.sequence}: {data}")

        for wanted, handler in list(self._handlers):
            if wanted is not None and wanted != event_type:
                continue
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                self._logger.exception(
                    f"Event handler failed for {event_type.value} #{event.sequence}"
                )
        return event

    async def history(self, event_type: EventType | None = None) -> list[LedgerEvent]:
        """All recorded events in publication order."""
        filters = {"type": event_type.value} if event_type else None
        raw = await self._storage.query(self.COLLECTION, filters=filters)
        events = [LedgerEvent.from_dict(d) for d in raw]
        events.sort(key=lambda e: e.sequence)
        return events
