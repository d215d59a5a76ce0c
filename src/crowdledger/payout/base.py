"""
Base payout adapter interface.

Payout adapters move value out of the ledger's custody: campaign releases to
beneficiaries and residual sweeps to the owner.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any


@dataclass
class PayoutReceipt:
    """Confirmation of a completed payout."""

    recipient: str
    amount: Decimal
    reference: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: dict[str, Any] = field(default_factory=dict)


class PayoutAdapter(ABC):
    """
    Abstract base class for payout adapters.

    ``send`` must either complete the transfer and return a receipt or raise.
    The ledger treats any exception as a failed transfer and rolls back.
    An adapter may call back into the ledger while ``send`` is running.
    """

    @abstractmethod
    async def send(
        self,
        recipient: str,
        amount: Decimal,
        reference: str,
    ) -> PayoutReceipt:
        """
        Transfer ``amount`` to ``recipient``.

        Args:
            recipient: Principal receiving the funds
            amount: Strictly positive amount
            reference: Caller-chosen reference, e.g. "campaign:3"

        Returns:
            PayoutReceipt for the completed transfer

        Raises:
            TransferFailedError: If the transfer could not be completed
        """
        ...

    async def close(self) -> None:
        """Release any held resources."""
        return None
