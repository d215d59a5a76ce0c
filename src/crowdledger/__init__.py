"""
CrowdLedger - crowdfunding campaign accounting.

Usage:
    >>> from crowdledger import CampaignLedger, ManualClock
    >>>
    >>> ledger = CampaignLedger(owner="admin", clock=ManualClock(0))
    >>> cid = await ledger.create_campaign("Roof", "New roof", "bob", 100, 3600)
    >>> await ledger.donate(cid, "alice", 40)
"""

from crowdledger.core.auth import is_authorized
from crowdledger.core.clock import Clock, ManualClock, SystemClock
from crowdledger.core.config import Config
from crowdledger.core.events import EventBus, EventType, LedgerEvent
from crowdledger.core.exceptions import (
    AlreadyFinalizedError,
    CampaignClosedError,
    CampaignError,
    CampaignNotFoundError,
    ConfigurationError,
    CrowdLedgerError,
    DirectTransferRejectedError,
    InvalidArgumentError,
    NothingToSweepError,
    TooEarlyError,
    TransferFailedError,
    UnauthorizedError,
    UnknownOperationError,
)
from crowdledger.core.logging import configure_logging, get_logger
from crowdledger.core.types import ZERO_ADDRESS, AmountType, Campaign, Contribution
from crowdledger.ledger import CampaignLedger
from crowdledger.payout import HttpPayout, InMemoryPayout, PayoutAdapter, PayoutReceipt

__version__ = "0.1.0"
__all__ = [
    # Ledger
    "CampaignLedger",
    # Types
    "AmountType",
    "Campaign",
    "Contribution",
    "ZERO_ADDRESS",
    # Time
    "Clock",
    "ManualClock",
    "SystemClock",
    # Config & logging
    "Config",
    "configure_logging",
    "get_logger",
    # Events
    "EventBus",
    "EventType",
    "LedgerEvent",
    # Payouts
    "PayoutAdapter",
    "PayoutReceipt",
    "InMemoryPayout",
    "HttpPayout",
    # Authorization
    "is_authorized",
    # Exceptions
    "CrowdLedgerError",
    "ConfigurationError",
    "InvalidArgumentError",
    "CampaignError",
    "CampaignNotFoundError",
    "CampaignClosedError",
    "TooEarlyError",
    "AlreadyFinalizedError",
    "UnauthorizedError",
    "NothingToSweepError",
    "TransferFailedError",
    "DirectTransferRejectedError",
    "UnknownOperationError",
]
