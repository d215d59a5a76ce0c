"""
Payout adapters - moving value out of the ledger.
"""

from crowdledger.payout.base import PayoutAdapter, PayoutReceipt
from crowdledger.payout.memory import InMemoryPayout
from crowdledger.payout.remote import HttpPayout

__all__ = [
    "PayoutAdapter",
    "PayoutReceipt",
    "InMemoryPayout",
    "HttpPayout",
]
