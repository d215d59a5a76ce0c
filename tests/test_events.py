"""Tests for the event bus and ledger notifications."""

from decimal import Decimal

import pytest

from crowdledger.core.clock import ManualClock
from crowdledger.core.events import EventBus, EventType, LedgerEvent
from crowdledger.core.exceptions import CampaignNotFoundError
from crowdledger.ledger import CampaignLedger
from crowdledger.payout.memory import InMemoryPayout
from crowdledger.storage.memory import InMemoryStorage

BENEFICIARY = "0x" + "b" * 40


class EventLogDownStorage(InMemoryStorage):
    """Storage that cannot write to the event log."""

    async def save(self, collection, key, data):
        if collection == EventBus.COLLECTION:
            raise ConnectionError("event log unavailable")
        await super().save(collection, key, data)


class TestLedgerEvent:
    def test_round_trip(self):
        event = LedgerEvent(type=EventType.CAMPAIGN_ENDED, data={"id": 1}, sequence=4)

        restored = LedgerEvent.from_dict(event.to_dict())

        assert restored.type == EventType.CAMPAIGN_ENDED
        assert restored.data == {"id": 1}
        assert restored.sequence == 4
        assert restored.timestamp == event.timestamp

    def test_event_type_values(self):
        assert EventType.CAMPAIGN_CREATED.value == "campaign.created"
        assert EventType.DONATION_RECEIVED.value == "donation.received"
        assert EventType.CAMPAIGN_ENDED.value == "campaign.ended"


class TestEventBus:
    @pytest.fixture
    def bus(self) -> EventBus:
        return EventBus(InMemoryStorage())

    @pytest.mark.asyncio
    async def test_sequence_increases(self, bus):
        first = await bus.publish(EventType.CAMPAIGN_CREATED, id=0)
        second = await bus.publish(EventType.CAMPAIGN_CREATED, id=1)

        assert (first.sequence, second.sequence) == (1, 2)
        assert [e.data["id"] for e in await bus.history()] == [0, 1]

    @pytest.mark.asyncio
    async def test_history_filter(self, bus):
        await bus.publish(EventType.CAMPAIGN_CREATED, id=0)
        await bus.publish(EventType.DONATION_RECEIVED, id=0, contributor="a", amount="1")

        donations = await bus.history(EventType.DONATION_RECEIVED)
        assert [e.type for e in donations] == [EventType.DONATION_RECEIVED]

    @pytest.mark.asyncio
    async def test_sync_and_async_handlers(self, bus):
        seen = []

        def sync_handler(event):
            seen.append(("sync", event.type))

        async def async_handler(event):
            seen.append(("async", event.type))

        bus.subscribe(sync_handler)
        bus.subscribe(async_handler, EventType.CAMPAIGN_ENDED)

        await bus.publish(EventType.CAMPAIGN_CREATED, id=0)
        await bus.publish(EventType.CAMPAIGN_ENDED, id=0)

        assert seen == [
            ("sync", EventType.CAMPAIGN_CREATED),
            ("sync", EventType.CAMPAIGN_ENDED),
            ("async", EventType.CAMPAIGN_ENDED),
        ]

    @pytest.mark.asyncio
    async def test_unsubscribe(self, bus):
        seen = []
        handler = seen.append
        bus.subscribe(handler)
        bus.unsubscribe(handler)

        await bus.publish(EventType.CAMPAIGN_CREATED, id=0)
        assert seen == []

    @pytest.mark.asyncio
    async def test_failing_handler_is_logged(self, bus, caplog):
        def broken(event):
            raise RuntimeError("indexer down")

        bus.subscribe(broken)
        with caplog.at_level("ERROR", logger="crowdledger.events"):
            event = await bus.publish(EventType.CAMPAIGN_CREATED, id=0)

        assert event.sequence == 1
        assert "Event handler failed" in caplog.text
        assert len(await bus.history()) == 1


class TestLedgerNotifications:
    @pytest.mark.asyncio
    async def test_subscriber_sees_every_operation(self, ledger, clock):
        seen: list[LedgerEvent] = []
        ledger.subscribe(seen.append)

        cid = await ledger.create_campaign("Roof", "d", BENEFICIARY, 10, 100)
        await ledger.donate(cid, "alice", 4)
        clock.set(100)
        await ledger.finalize(cid)

        assert [e.type for e in seen] == [
            EventType.CAMPAIGN_CREATED,
            EventType.DONATION_RECEIVED,
            EventType.CAMPAIGN_ENDED,
        ]
        assert seen[-1].data["amount_released"] == str(Decimal("4"))

    @pytest.mark.asyncio
    async def test_failed_operation_emits_nothing(self, ledger):
        seen: list[LedgerEvent] = []
        ledger.subscribe(seen.append)

        with pytest.raises(CampaignNotFoundError):
            await ledger.donate(0, "alice", 4)

        assert seen == []

    @pytest.mark.asyncio
    async def test_unrecorded_event_does_not_fail_finalize(self, caplog):
        payout = InMemoryPayout()
        clock = ManualClock(0)
        ledger = CampaignLedger(
            owner="admin", storage=EventLogDownStorage(), payout=payout, clock=clock
        )
        seen: list[LedgerEvent] = []
        ledger.subscribe(seen.append)

        with caplog.at_level("ERROR", logger="crowdledger.events"):
            cid = await ledger.create_campaign("Roof", "d", BENEFICIARY, 10, 100)
            await ledger.donate(cid, "alice", 4)
            clock.set(100)
            released = await ledger.finalize(cid)

        assert released == Decimal("4")
        assert payout.balance_of(BENEFICIARY) == Decimal("4")
        assert (await ledger.get_campaign(cid)).ended is True
        assert await ledger.committed_balance() == Decimal("0")
        assert [e.type for e in seen] == [
            EventType.CAMPAIGN_CREATED,
            EventType.DONATION_RECEIVED,
            EventType.CAMPAIGN_ENDED,
        ]
        assert "Failed to record campaign.ended event" in caplog.text
        assert await ledger.events() == []
