"""
Ledger module - campaign accounting for CrowdLedger.
"""

from crowdledger.ledger.ledger import CampaignLedger
from crowdledger.ledger.lock import LedgerLock

__all__ = [
    "CampaignLedger",
    "LedgerLock",
]
