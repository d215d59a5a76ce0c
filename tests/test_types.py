"""Unit tests for types and clocks."""

from decimal import Decimal

import pytest

from crowdledger.core.clock import ManualClock, SystemClock
from crowdledger.core.exceptions import InvalidArgumentError
from crowdledger.core.types import (
    ZERO_ADDRESS,
    Campaign,
    Contribution,
    is_null_principal,
    to_amount,
)


class TestToAmount:
    @pytest.mark.parametrize(
        "value,expected",
        [(5, Decimal("5")), ("1.25", Decimal("1.25")), (Decimal("0.1"), Decimal("0.1"))],
    )
    def test_accepted_inputs(self, value, expected):
        assert to_amount(value) == expected

    @pytest.mark.parametrize("value", [1.5, True, "abc", "NaN", "Infinity"])
    def test_rejected_inputs(self, value):
        with pytest.raises(InvalidArgumentError):
            to_amount(value)

    def test_argument_name_in_error(self):
        with pytest.raises(InvalidArgumentError) as exc_info:
            to_amount("x", argument="goal")
        assert exc_info.value.argument == "goal"


class TestIsNullPrincipal:
    @pytest.mark.parametrize(
        "value", [None, "", "  ", ZERO_ADDRESS, ZERO_ADDRESS.upper(), 0, 7, b"alice"]
    )
    def test_null(self, value):
        assert is_null_principal(value) is True

    def test_real_principal(self):
        assert is_null_principal("0x" + "1" * 40) is False


class TestCampaign:
    def test_to_dict_and_back(self):
        campaign = Campaign(
            id=2,
            title="t",
            description="d",
            beneficiary="bob",
            goal=Decimal("10.5"),
            deadline=99,
            amount_raised=Decimal("3"),
            ended=True,
            created_at=9,
        )

        data = campaign.to_dict()
        assert data["goal"] == "10.5"
        assert Campaign.from_dict(data) == campaign

    def test_is_open(self):
        campaign = Campaign(id=0, title="", description="", beneficiary="b", goal=Decimal(1), deadline=10)

        assert campaign.is_open(9) is True
        assert campaign.is_open(10) is False
        campaign.ended = True
        assert campaign.is_open(0) is False

    def test_goal_reached(self):
        campaign = Campaign(id=0, title="", description="", beneficiary="b", goal=Decimal(5), deadline=10)
        assert campaign.goal_reached is False
        campaign.amount_raised = Decimal(5)
        assert campaign.goal_reached is True


class TestContribution:
    def test_key_and_round_trip(self):
        contribution = Contribution(campaign_id=1, contributor="alice", amount=Decimal("2"))

        assert contribution.key == "1:alice"
        restored = Contribution.from_dict(contribution.to_dict())
        assert restored.amount == Decimal("2")
        assert restored.updated_at == contribution.updated_at


class TestClocks:
    def test_manual_clock(self):
        clock = ManualClock(100)
        assert clock.now() == 100
        assert clock.advance(5) == 105
        clock.set(3)
        assert clock.now() == 3

    def test_manual_clock_cannot_go_back(self):
        with pytest.raises(ValueError):
            ManualClock(0).advance(-1)

    def test_system_clock_is_int(self):
        assert isinstance(SystemClock().now(), int)
