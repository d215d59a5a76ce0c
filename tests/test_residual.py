"""
Tests for unsolicited transfers and residual sweeps.
"""

from decimal import Decimal

import pytest

from crowdledger.core.auth import is_authorized
from crowdledger.core.events import EventType
from crowdledger.core.exceptions import (
    DirectTransferRejectedError,
    InvalidArgumentError,
    NothingToSweepError,
    UnauthorizedError,
)

OWNER = "admin"
BENEFICIARY = "0x" + "b" * 40


class TestIsAuthorized:
    def test_exact_match(self):
        assert is_authorized("admin", "admin") is True

    def test_other_caller(self):
        assert is_authorized("mallory", "admin") is False

    def test_case_sensitive(self):
        assert is_authorized("Admin", "admin") is False

    def test_missing_caller(self):
        assert is_authorized(None, "admin") is False
        assert is_authorized("", "") is False


class TestReceive:
    @pytest.mark.asyncio
    async def test_rejected_by_default(self, ledger):
        with pytest.raises(DirectTransferRejectedError) as exc_info:
            await ledger.receive("stranger", 25)

        assert "use donate to contribute" in str(exc_info.value)
        assert exc_info.value.amount == Decimal("25")
        assert await ledger.residual_balance() == Decimal("0")

    @pytest.mark.asyncio
    async def test_forced_transfer_lands_in_residual(self, ledger):
        assert await ledger.receive("stranger", 25, forced=True) == Decimal("25")
        assert await ledger.residual_balance() == Decimal("25")
        assert await ledger.committed_balance() == Decimal("0")

    @pytest.mark.asyncio
    async def test_accepting_ledger_credits_residual(self, open_ledger):
        await open_ledger.receive("stranger", "1.5")
        await open_ledger.receive("other", 2)

        assert await open_ledger.residual_balance() == Decimal("3.5")
        events = await open_ledger.events(EventType.RESIDUAL_CREDITED)
        assert [e.data["sender"] for e in events] == ["stranger", "other"]

    @pytest.mark.asyncio
    async def test_never_attributed_to_campaign(self, open_ledger):
        cid = await open_ledger.create_campaign("Roof", "", BENEFICIARY, 100, 3600)
        await open_ledger.donate(cid, "alice", 10)
        await open_ledger.receive("stranger", 99)

        assert (await open_ledger.get_campaign(cid)).amount_raised == Decimal("10")
        assert await open_ledger.committed_balance() == Decimal("10")
        assert await open_ledger.total_balance() == Decimal("109")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -1])
    async def test_non_positive_amount(self, open_ledger, amount):
        with pytest.raises(InvalidArgumentError):
            await open_ledger.receive("stranger", amount)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("sender", [None, "", 5])
    async def test_missing_sender(self, open_ledger, sender):
        with pytest.raises(InvalidArgumentError) as exc_info:
            await open_ledger.receive(sender, 1)

        assert exc_info.value.argument == "sender"
        assert await open_ledger.residual_balance() == Decimal("0")


class TestSweepResidual:
    @pytest.mark.asyncio
    async def test_non_owner_is_unauthorized(self, open_ledger):
        await open_ledger.receive("stranger", 10)

        with pytest.raises(UnauthorizedError) as exc_info:
            await open_ledger.sweep_residual("mallory")
        assert exc_info.value.caller == "mallory"
        assert await open_ledger.residual_balance() == Decimal("10")

    @pytest.mark.asyncio
    async def test_nothing_to_sweep(self, ledger):
        with pytest.raises(NothingToSweepError):
            await ledger.sweep_residual(OWNER)

    @pytest.mark.asyncio
    async def test_unauthorized_checked_before_balance(self, ledger):
        with pytest.raises(UnauthorizedError):
            await ledger.sweep_residual("mallory")

    @pytest.mark.asyncio
    async def test_sweeps_exact_residual(self, open_ledger, payout):
        await open_ledger.receive("stranger", 42)

        assert await open_ledger.sweep_residual(OWNER) == Decimal("42")
        assert payout.balance_of(OWNER) == Decimal("42")
        assert await open_ledger.residual_balance() == Decimal("0")

        with pytest.raises(NothingToSweepError):
            await open_ledger.sweep_residual(OWNER)

        events = await open_ledger.events(EventType.RESIDUAL_SWEPT)
        assert events[0].data == {"owner": OWNER, "amount": "42"}

    @pytest.mark.asyncio
    async def test_never_sweeps_campaign_funds(self, open_ledger, payout, clock):
        cid = await open_ledger.create_campaign("Roof", "", BENEFICIARY, 100, 100)
        await open_ledger.donate(cid, "alice", 60)
        await open_ledger.receive("stranger", 5)

        assert await open_ledger.sweep_residual(OWNER) == Decimal("5")
        assert await open_ledger.committed_balance() == Decimal("60")

        clock.set(100)
        assert await open_ledger.finalize(cid) == Decimal("60")
        assert payout.balance_of(BENEFICIARY) == Decimal("60")
        assert await open_ledger.total_balance() == Decimal("0")

    @pytest.mark.asyncio
    async def test_unsolicited_transfer_scenario(self, ledger, payout):
        with pytest.raises(DirectTransferRejectedError):
            await ledger.receive("stranger", 15)

        # Value that could not be refused
        await ledger.receive("stranger", 15, forced=True)
        assert await ledger.sweep_residual(OWNER) == Decimal("15")
        assert payout.balance_of(OWNER) == Decimal("15")
