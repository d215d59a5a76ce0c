"""
Exception hierarchy for CrowdLedger.

All ledger-specific exceptions inherit from CrowdLedgerError for easy catching.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any


class CrowdLedgerError(Exception):
    """
    Base exception for all CrowdLedger errors.

    Catch this to handle any ledger-related exception.

    Example:
        >>> try:
        ...     await ledger.donate(0, "alice", Decimal("10"))
        ... except CrowdLedgerError as e:
        ...     print(f"Ledger error: {e}")
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(CrowdLedgerError):
    """
    Configuration is missing or invalid.

    Raised when:
    - Configuration values fail validation
    - Environment variables cannot be parsed
    """

    pass


class InvalidArgumentError(CrowdLedgerError):
    """
    Input validation error.

    Raised when:
    - Goal, duration or amount is not strictly positive
    - Beneficiary is missing or the zero address
    """

    def __init__(
        self,
        message: str,
        argument: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.argument = argument


class CampaignError(CrowdLedgerError):
    """Base exception for errors tied to a specific campaign."""

    def __init__(
        self,
        message: str,
        campaign_id: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.campaign_id = campaign_id


class CampaignNotFoundError(CampaignError):
    """No campaign exists with the requested ID."""

    pass


class CampaignClosedError(CampaignError):
    """
    Campaign no longer accepts donations.

    Raised when:
    - The deadline has passed
    - The campaign was already finalized
    """

    def __init__(
        self,
        message: str,
        campaign_id: int | None = None,
        reason: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, campaign_id, details)
        self.reason = reason


class TooEarlyError(CampaignError):
    """Finalize was called before the campaign deadline."""

    def __init__(
        self,
        message: str,
        campaign_id: int | None = None,
        deadline: int | None = None,
        now: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, campaign_id, details)
        self.deadline = deadline
        self.now = now

    @property
    def seconds_remaining(self) -> int | None:
        if self.deadline is None or self.now is None:
            return None
        return self.deadline - self.now


class AlreadyFinalizedError(CampaignError):
    """Finalize was called on a campaign that has already ended."""

    pass


class UnauthorizedError(CrowdLedgerError):
    """Caller is not allowed to perform an administrative operation."""

    def __init__(
        self,
        message: str,
        caller: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.caller = caller


class NothingToSweepError(CrowdLedgerError):
    """The ledger holds no residual balance to sweep."""

    pass


class TransferFailedError(CrowdLedgerError):
    """
    Outbound payout could not be completed.

    Raised when:
    - The payout adapter reports a failure
    - The payout endpoint is unreachable or returns an error status
    """

    def __init__(
        self,
        message: str,
        recipient: str | None = None,
        amount: Decimal | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.recipient = recipient
        self.amount = amount


class DirectTransferRejectedError(CrowdLedgerError):
    """Value was sent to the ledger outside of donate()."""

    def __init__(
        self,
        message: str = "Direct transfers are not accepted, use donate to contribute",
        sender: str | None = None,
        amount: Decimal | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.sender = sender
        self.amount = amount


class UnknownOperationError(CrowdLedgerError):
    """An operation name passed to the dispatcher is not recognized."""

    def __init__(
        self,
        message: str,
        operation: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.operation = operation

    def __str__(self) -> str:
        return f"[{self.operation}] {self.message}"
