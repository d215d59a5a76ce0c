"""
Type definitions for CrowdLedger.

Campaign and contribution records plus the amount helpers shared by the
ledger, storage and payout layers.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, TypeAlias

from crowdledger.core.exceptions import InvalidArgumentError

# Type alias for flexible amount input
AmountType: TypeAlias = Decimal | int | str

ZERO_ADDRESS = "0x" + "0" * 40


def to_amount(value: AmountType, argument: str = "amount") -> Decimal:
    """
    Convert user input to a Decimal amount.

    Floats are refused since they cannot represent most decimal amounts exactly.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise InvalidArgumentError(
            f"{argument} must be a Decimal, int or str, got {type(value).__name__}",
            argument=argument,
        )
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidArgumentError(f"{argument} is not a number: {value!r}", argument=argument) from None
    if not amount.is_finite():
        raise InvalidArgumentError(f"{argument} must be finite", argument=argument)
    return amount


def is_null_principal(principal: Any) -> bool:
    """True for missing, blank, zero-address or non-string principals."""
    if not isinstance(principal, str):
        return True
    stripped = principal.strip()
    return not stripped or stripped.lower() == ZERO_ADDRESS


@dataclass
class Campaign:
    """
    A funding effort.

    Attributes:
        id: Sequential campaign ID, assigned at creation
        title: Campaign title
        description: Campaign description
        beneficiary: Principal that receives released funds
        goal: Target amount (informational)
        deadline: Unix timestamp after which donations close
        amount_raised: Running total of donations
        ended: True once the campaign has been finalized
        created_at: Unix timestamp of creation
    """

    id: int
    title: str
    description: str
    beneficiary: str
    goal: Decimal
    deadline: int
    amount_raised: Decimal = Decimal("0")
    ended: bool = False
    created_at: int = 0

    @property
    def goal_reached(self) -> bool:
        return self.amount_raised >= self.goal

    def is_open(self, now: int) -> bool:
        """Whether donations are accepted at ``now``."""
        return now < self.deadline and not self.ended

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for storage."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "beneficiary": self.beneficiary,
            "goal": str(self.goal),
            "deadline": self.deadline,
            "amount_raised": str(self.amount_raised),
            "ended": self.ended,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Campaign:
        """Create Campaign from dictionary."""
        return cls(
            id=int(data["id"]),
            title=data.get("title", ""),
            description=data.get("description", ""),
            beneficiary=data.get("beneficiary", ""),
            goal=Decimal(str(data.get("goal", "0"))),
            deadline=int(data.get("deadline", 0)),
            amount_raised=Decimal(str(data.get("amount_raised", "0"))),
            ended=bool(data.get("ended", False)),
            created_at=int(data.get("created_at", 0)),
        )


@dataclass
class Contribution:
    """Total value given by one contributor to one campaign."""

    campaign_id: int
    contributor: str
    amount: Decimal = Decimal("0")
    # Unix timestamp of the last donation, from the ledger clock
    updated_at: int = 0

    @property
    def key(self) -> str:
        return contribution_key(self.campaign_id, self.contributor)

    def to_dict(self) -> dict[str, Any]:
        return {
            "campaign_id": self.campaign_id,
            "contributor": self.contributor,
            "amount": str(self.amount),
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Contribution:
        return cls(
            campaign_id=int(data["campaign_id"]),
            contributor=data["contributor"],
            amount=Decimal(str(data.get("amount", "0"))),
            updated_at=int(data.get("updated_at", 0)),
        )


def contribution_key(campaign_id: int, contributor: str) -> str:
    return f"{campaign_id}:{contributor}"
