"""
In-memory payout adapter.

Keeps received balances per recipient. Used by default and in tests.
"""

from __future__ import annotations

from collections import defaultdict
from decimal import Decimal

from crowdledger.core.exceptions import TransferFailedError
from crowdledger.core.logging import get_logger
from crowdledger.payout.base import PayoutAdapter, PayoutReceipt


class InMemoryPayout(PayoutAdapter):
    """
    Payout adapter that credits an in-memory balance book.

    Recipients listed in ``blocked_recipients`` refuse incoming value,
    which surfaces as TransferFailedError.
    """

    def __init__(self, blocked_recipients: set[str] | None = None) -> None:
        self.balances: dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
        self.receipts: list[PayoutReceipt] = []
        self.blocked_recipients = set(blocked_recipients or ())
        self._logger = get_logger("payout.memory")

    def block(self, recipient: str) -> None:
        self.blocked_recipients.add(recipient)

    def unblock(self, recipient: str) -> None:
        self.blocked_recipients.discard(recipient)

    def balance_of(self, recipient: str) -> Decimal:
        return self.balances.get(recipient, Decimal("0"))

    async def send(
        self,
        recipient: str,
        amount: Decimal,
        reference: str,
    ) -> PayoutReceipt:
        if recipient in self.blocked_recipients:
            raise TransferFailedError(
                f"Recipient {recipient} refused payout",
                recipient=recipient,
                amount=amount,
                details={"reference": reference},
            )

        self.balances[recipient] += amount
        receipt = PayoutReceipt(recipient=recipient, amount=amount, reference=reference)
        self.receipts.append(receipt)
        self._logger.debug(f"Paid {amount} to {recipient} ({reference})")
        return receipt
