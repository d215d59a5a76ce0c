"""
Campaign ledger.

Owns campaign records, per-contributor contribution totals and the ledger's
balances, and exposes the operations that move a campaign through its
lifecycle: create, donate, finalize. The owner may sweep residual value
that reached the ledger outside of donate().

Balances:
    committed  sum of amount_raised over campaigns not yet finalized
    residual   value held that no campaign accounts for

State is committed before any payout is attempted; if the payout fails the
change is reverted and TransferFailedError is raised.
"""

from __future__ import annotations

import inspect
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from crowdledger.core.auth import is_authorized
from crowdledger.core.clock import Clock, SystemClock
from crowdledger.core.events import EventBus, EventHandler, EventType, LedgerEvent
from crowdledger.core.exceptions import (
    AlreadyFinalizedError,
    CampaignClosedError,
    CampaignNotFoundError,
    DirectTransferRejectedError,
    InvalidArgumentError,
    NothingToSweepError,
    TooEarlyError,
    TransferFailedError,
    UnauthorizedError,
    UnknownOperationError,
)
from crowdledger.core.logging import configure_logging, get_logger
from crowdledger.core.types import (
    AmountType,
    Campaign,
    Contribution,
    contribution_key,
    is_null_principal,
    to_amount,
)
from crowdledger.ledger.lock import LedgerLock
from crowdledger.payout.memory import InMemoryPayout
from crowdledger.storage.memory import InMemoryStorage

if TYPE_CHECKING:
    from crowdledger.core.config import Config
    from crowdledger.payout.base import PayoutAdapter
    from crowdledger.storage.base import StorageBackend

# (collection, key, data)
Write = tuple[str, str, dict[str, Any]]
# (collection, key, previous data or None)
Undo = tuple[str, str, dict[str, Any] | None]


class CampaignLedger:
    """
    Crowdfunding ledger.

    Every operation runs under a single LedgerLock, so operations are applied
    one at a time. Deadlines are checked against the injected clock when an
    operation runs; nothing happens in the background.

    Example:
        >>> ledger = CampaignLedger(owner="admin")
        >>> cid = await ledger.create_campaign("Roof", "New roof", "bob", 100, 3600)
        >>> await ledger.donate(cid, "alice", 40)
    """

    CAMPAIGNS = "campaigns"
    CONTRIBUTIONS = "contributions"
    STATE = "ledger_state"
    BALANCES_KEY = "balances"
    COUNTERS = "counters"
    CAMPAIGN_COUNT_KEY = "campaign_count"
    SWEEP_REFERENCE = "residual-sweep"

    # Operations reachable through dispatch()
    OPERATIONS = frozenset(
        {
            "create_campaign",
            "donate",
            "finalize",
            "sweep_residual",
            "receive",
            "get_campaign",
            "get_contribution",
            "campaign_count",
            "list_campaigns",
            "list_contributions",
            "is_open",
            "residual_balance",
            "committed_balance",
            "total_balance",
        }
    )

    def __init__(
        self,
        owner: str,
        storage: StorageBackend | None = None,
        payout: PayoutAdapter | None = None,
        clock: Clock | None = None,
        reject_direct_transfers: bool = True,
    ) -> None:
        """
        Initialize the ledger.

        Args:
            owner: Administrator principal, fixed for the ledger's lifetime
            storage: Storage backend (defaults to InMemoryStorage)
            payout: Payout adapter (defaults to InMemoryPayout)
            clock: Time source (defaults to SystemClock)
            reject_direct_transfers: Refuse value sent outside donate()
        """
        if is_null_principal(owner):
            raise InvalidArgumentError("Ledger owner is required", argument="owner")

        self._owner = owner
        self._storage = storage if storage is not None else InMemoryStorage()
        self._payout = payout if payout is not None else InMemoryPayout()
        self._clock = clock if clock is not None else SystemClock()
        self._reject_direct_transfers = reject_direct_transfers
        self._lock = LedgerLock()
        self._events = EventBus(self._storage)
        self._logger = get_logger("ledger")

    @classmethod
    def from_config(
        cls,
        config: Config,
        clock: Clock | None = None,
        payout: PayoutAdapter | None = None,
    ) -> CampaignLedger:
        """Build a ledger with storage, payouts and log level chosen by ``config``."""
        from crowdledger.payout.remote import HttpPayout
        from crowdledger.storage import RedisStorage, get_storage

        configure_logging(config.log_level)

        if config.storage_backend == "redis":
            storage: StorageBackend = RedisStorage(redis_url=config.redis_url)
        else:
            storage = get_storage(config.storage_backend)

        if payout is None and config.payout_url:
            payout = HttpPayout(config.payout_url, timeout=config.payout_timeout)

        return cls(
            owner=config.owner,
            storage=storage,
            payout=payout,
            clock=clock,
            reject_direct_transfers=config.reject_direct_transfers,
        )

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def payout(self) -> PayoutAdapter:
        return self._payout

    def now(self) -> int:
        return self._clock.now()

    # ------------------------------------------------------------------
    # Storage helpers
    # ------------------------------------------------------------------

    async def _apply(self, writes: list[Write]) -> list[Undo]:
        """
        Save every record in ``writes``.

        If any save fails the records already written are restored before
        the error propagates. Returns the undo log of the applied writes.
        """
        undo: list[Undo] = []
        try:
            for collection, key, data in writes:
                previous = await self._storage.get(collection, key)
                await self._storage.save(collection, key, data)
                undo.append((collection, key, previous))
        except Exception:
            await self._revert(undo)
            raise
        return undo

    async def _revert(self, undo: list[Undo]) -> None:
        for collection, key, previous in reversed(undo):
            if previous is None:
                await self._storage.delete(collection, key)
            else:
                await self._storage.save(collection, key, previous)

    async def _load_balances(self) -> tuple[Decimal, Decimal]:
        data = await self._storage.get(self.STATE, self.BALANCES_KEY) or {}
        return Decimal(data.get("committed", "0")), Decimal(data.get("residual", "0"))

    def _balances_write(self, committed: Decimal, residual: Decimal) -> Write:
        return (
            self.STATE,
            self.BALANCES_KEY,
            {"committed": str(committed), "residual": str(residual)},
        )

    async def _load_campaign(self, campaign_id: int) -> Campaign:
        if isinstance(campaign_id, bool) or not isinstance(campaign_id, int):
            raise InvalidArgumentError(
                f"Campaign ID must be an integer, got {campaign_id!r}", argument="campaign_id"
            )
        data = await self._storage.get(self.CAMPAIGNS, str(campaign_id))
        if data is None:
            raise CampaignNotFoundError(f"Campaign {campaign_id} not found", campaign_id=campaign_id)
        return Campaign.from_dict(data)

    async def _count(self) -> int:
        data = await self._storage.get(self.COUNTERS, self.CAMPAIGN_COUNT_KEY)
        return int(Decimal(data["value"])) if data else 0

    async def _send(self, recipient: str, amount: Decimal, reference: str) -> None:
        """Run a payout, normalizing every failure to TransferFailedError."""
        try:
            await self._payout.send(recipient, amount, reference)
        except TransferFailedError:
            raise
        except Exception as e:
            raise TransferFailedError(
                f"Payout to {recipient} failed: {e}",
                recipient=recipient,
                amount=amount,
                details={"reference": reference, "cause": type(e).__name__},
            ) from e

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def create_campaign(
        self,
        title: str,
        description: str,
        beneficiary: str,
        goal: AmountType,
        duration: int,
        caller: str | None = None,
    ) -> int:
        """
        Register a new campaign.

        Args:
            title: Campaign title
            description: Campaign description
            beneficiary: Principal receiving the funds at finalization
            goal: Target amount, strictly positive
            duration: Seconds from now until the deadline, strictly positive
            caller: Principal creating the campaign (logged only)

        Returns:
            The new campaign ID

        Raises:
            InvalidArgumentError: If goal, duration or beneficiary is invalid
        """
        goal_amount = to_amount(goal, "goal")
        if goal_amount <= 0:
            raise InvalidArgumentError(
                "Goal must be positive", argument="goal", details={"goal": str(goal_amount)}
            )
        if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
            raise InvalidArgumentError(
                "Duration must be a positive number of seconds",
                argument="duration",
                details={"duration": duration},
            )
        if is_null_principal(beneficiary):
            raise InvalidArgumentError("Beneficiary must be a non-zero principal", argument="beneficiary")

        async with self._lock.hold("create_campaign"):
            now = self._clock.now()
            campaign = Campaign(
                id=await self._count(),
                title=title,
                description=description,
                beneficiary=beneficiary,
                goal=goal_amount,
                deadline=now + duration,
                created_at=now,
            )

            undo = await self._apply([(self.CAMPAIGNS, str(campaign.id), campaign.to_dict())])
            try:
                await self._storage.atomic_add(self.COUNTERS, self.CAMPAIGN_COUNT_KEY, "1")
            except Exception:
                await self._revert(undo)
                raise

            self._logger.info(
                f"Created campaign {campaign.id} for {beneficiary} "
                f"(goal {goal_amount}, deadline {campaign.deadline}, caller {caller})"
            )
            await self._events.publish(
                EventType.CAMPAIGN_CREATED,
                id=campaign.id,
                title=campaign.title,
                description=campaign.description,
                beneficiary=campaign.beneficiary,
                goal=str(campaign.goal),
                deadline=campaign.deadline,
            )
            return campaign.id

    async def donate(self, campaign_id: int, contributor: str, amount: AmountType) -> None:
        """
        Contribute ``amount`` to a campaign.

        Checks run in order: campaign exists, deadline not reached, campaign
        not ended, amount positive.

        Raises:
            CampaignNotFoundError: Unknown campaign
            CampaignClosedError: Deadline passed or campaign already ended
            InvalidArgumentError: Non-positive amount or missing contributor
        """
        async with self._lock.hold("donate"):
            campaign = await self._load_campaign(campaign_id)
            now = self._clock.now()

            if now >= campaign.deadline:
                raise CampaignClosedError(
                    f"Campaign {campaign_id} is closed: deadline passed",
                    campaign_id=campaign_id,
                    reason="deadline passed",
                    details={"deadline": campaign.deadline, "now": now},
                )
            if campaign.ended:
                raise CampaignClosedError(
                    f"Campaign {campaign_id} is closed: already ended",
                    campaign_id=campaign_id,
                    reason="already ended",
                )

            value = to_amount(amount)
            if value <= 0:
                raise InvalidArgumentError(
                    "Donation amount must be positive",
                    argument="amount",
                    details={"amount": str(value)},
                )
            if is_null_principal(contributor):
                raise InvalidArgumentError(
                    "Contributor must be a non-zero principal", argument="contributor"
                )

            key = contribution_key(campaign_id, contributor)
            existing = await self._storage.get(self.CONTRIBUTIONS, key)
            contribution = (
                Contribution.from_dict(existing)
                if existing
                else Contribution(campaign_id=campaign_id, contributor=contributor)
            )
            contribution.amount += value
            contribution.updated_at = now
            campaign.amount_raised += value

            committed, residual = await self._load_balances()
            await self._apply(
                [
                    (self.CAMPAIGNS, str(campaign_id), campaign.to_dict()),
                    (self.CONTRIBUTIONS, key, contribution.to_dict()),
                    self._balances_write(committed + value, residual),
                ]
            )

            self._logger.info(
                f"Donation of {value} from {contributor} to campaign {campaign_id} "
                f"(raised {campaign.amount_raised})"
            )
            await self._events.publish(
                EventType.DONATION_RECEIVED,
                id=campaign_id,
                contributor=contributor,
                amount=str(value),
            )

    async def finalize(self, campaign_id: int, caller: str | None = None) -> Decimal:
        """
        Close a campaign after its deadline and release the funds raised.

        Anyone may finalize. The campaign is marked ended before the payout
        runs; a failed payout reverts that mark.

        Returns:
            The amount released to the beneficiary (may be zero)

        Raises:
            CampaignNotFoundError: Unknown campaign
            TooEarlyError: Deadline not reached
            AlreadyFinalizedError: Campaign already ended
            TransferFailedError: Payout to the beneficiary failed
        """
        async with self._lock.hold("finalize"):
            campaign = await self._load_campaign(campaign_id)
            now = self._clock.now()

            if now < campaign.deadline:
                raise TooEarlyError(
                    f"Campaign {campaign_id} cannot be finalized before its deadline",
                    campaign_id=campaign_id,
                    deadline=campaign.deadline,
                    now=now,
                )
            if campaign.ended:
                raise AlreadyFinalizedError(
                    f"Campaign {campaign_id} has already been finalized", campaign_id=campaign_id
                )

            amount = campaign.amount_raised
            campaign.ended = True
            committed, residual = await self._load_balances()
            await self._apply(
                [
                    (self.CAMPAIGNS, str(campaign_id), campaign.to_dict()),
                    self._balances_write(committed - amount, residual),
                ]
            )

            if amount > 0:
                try:
                    await self._send(campaign.beneficiary, amount, f"campaign:{campaign_id}")
                except TransferFailedError:
                    # Balances are re-read: the payout may have re-entered the ledger
                    committed, residual = await self._load_balances()
                    campaign.ended = False
                    await self._apply(
                        [
                            (self.CAMPAIGNS, str(campaign_id), campaign.to_dict()),
                            self._balances_write(committed + amount, residual),
                        ]
                    )
                    self._logger.warning(
                        f"Payout of {amount} for campaign {campaign_id} failed, finalization reverted"
                    )
                    raise

            self._logger.info(
                f"Finalized campaign {campaign_id}: released {amount} to {campaign.beneficiary} "
                f"(caller {caller})"
            )
            await self._events.publish(
                EventType.CAMPAIGN_ENDED,
                id=campaign_id,
                beneficiary=campaign.beneficiary,
                amount_released=str(amount),
            )
            return amount

    async def sweep_residual(self, caller: str) -> Decimal:
        """
        Transfer the entire residual balance to the owner.

        Raises:
            UnauthorizedError: Caller is not the owner
            NothingToSweepError: Residual balance is zero
            TransferFailedError: Payout to the owner failed
        """
        if not is_authorized(caller, self._owner):
            raise UnauthorizedError(
                "Only the ledger owner may sweep residual balance", caller=caller
            )

        async with self._lock.hold("sweep_residual"):
            committed, residual = await self._load_balances()
            if residual <= 0:
                raise NothingToSweepError("No residual balance to sweep")

            await self._apply([self._balances_write(committed, Decimal("0"))])
            try:
                await self._send(self._owner, residual, self.SWEEP_REFERENCE)
            except TransferFailedError:
                committed, current = await self._load_balances()
                await self._apply([self._balances_write(committed, current + residual)])
                self._logger.warning(f"Residual sweep of {residual} failed, balance restored")
                raise

            self._logger.info(f"Swept residual balance {residual} to {self._owner}")
            await self._events.publish(
                EventType.RESIDUAL_SWEPT, owner=self._owner, amount=str(residual)
            )
            return residual

    async def receive(self, sender: str, amount: AmountType, forced: bool = False) -> Decimal:
        """
        Accept value sent to the ledger outside of donate().

        Such value is refused when the ledger rejects direct transfers, unless
        ``forced`` says it arrived in a way that could not be refused. Accepted
        value only ever increases the residual balance.

        Returns:
            The residual balance after crediting

        Raises:
            DirectTransferRejectedError: Direct transfers are refused
            InvalidArgumentError: Non-positive amount or missing sender
        """
        if is_null_principal(sender):
            raise InvalidArgumentError("Sender must be a non-zero principal", argument="sender")
        value = to_amount(amount)
        if value <= 0:
            raise InvalidArgumentError("Transfer amount must be positive", argument="amount")

        if self._reject_direct_transfers and not forced:
            self._logger.warning(f"Rejected direct transfer of {value} from {sender}")
            raise DirectTransferRejectedError(sender=sender, amount=value)

        async with self._lock.hold("receive"):
            committed, residual = await self._load_balances()
            new_residual = residual + value
            await self._apply([self._balances_write(committed, new_residual)])

            self._logger.warning(
                f"Credited unsolicited transfer of {value} from {sender} to residual balance"
            )
            await self._events.publish(
                EventType.RESIDUAL_CREDITED, sender=sender, amount=str(value)
            )
            return new_residual

    async def dispatch(self, operation: str, **params: Any) -> Any:
        """
        Run an operation by name.

        Raises:
            UnknownOperationError: ``operation`` is not a ledger operation
            InvalidArgumentError: ``params`` do not fit the operation
        """
        if operation not in self.OPERATIONS:
            raise UnknownOperationError(f"Unknown operation: {operation!r}", operation=operation)

        handler = getattr(self, operation)
        try:
            inspect.signature(handler).bind(**params)
        except TypeError as e:
            raise InvalidArgumentError(
                f"Invalid parameters for {operation}: {e}", details={"operation": operation}
            ) from None
        return await handler(**params)

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    async def get_campaign(self, campaign_id: int) -> Campaign:
        async with self._lock.hold("get_campaign"):
            return await self._load_campaign(campaign_id)

    async def get_contribution(self, campaign_id: int, contributor: str) -> Decimal:
        """Total given by ``contributor`` to a campaign; zero if none."""
        async with self._lock.hold("get_contribution"):
            await self._load_campaign(campaign_id)
            data = await self._storage.get(
                self.CONTRIBUTIONS, contribution_key(campaign_id, contributor)
            )
            return Contribution.from_dict(data).amount if data else Decimal("0")

    async def campaign_count(self) -> int:
        async with self._lock.hold("campaign_count"):
            return await self._count()

    async def list_campaigns(self, active_only: bool = False) -> list[Campaign]:
        """All campaigns in ID order, or only those still taking donations."""
        async with self._lock.hold("list_campaigns"):
            raw = await self._storage.query(self.CAMPAIGNS)
            campaigns = sorted((Campaign.from_dict(d) for d in raw), key=lambda c: c.id)
            if active_only:
                now = self._clock.now()
                campaigns = [c for c in campaigns if c.is_open(now)]
            return campaigns

    async def list_contributions(self, campaign_id: int) -> list[Contribution]:
        async with self._lock.hold("list_contributions"):
            await self._load_campaign(campaign_id)
            raw = await self._storage.query(
                self.CONTRIBUTIONS, filters={"campaign_id": campaign_id}
            )
            return [Contribution.from_dict(d) for d in raw]

    async def is_open(self, campaign_id: int) -> bool:
        async with self._lock.hold("is_open"):
            campaign = await self._load_campaign(campaign_id)
            return campaign.is_open(self._clock.now())

    async def residual_balance(self) -> Decimal:
        async with self._lock.hold("residual_balance"):
            return (await self._load_balances())[1]

    async def committed_balance(self) -> Decimal:
        async with self._lock.hold("committed_balance"):
            return (await self._load_balances())[0]

    async def total_balance(self) -> Decimal:
        """Everything the ledger holds: committed plus residual."""
        async with self._lock.hold("total_balance"):
            committed, residual = await self._load_balances()
            return committed + residual

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def subscribe(self, handler: EventHandler, event_type: EventType | None = None) -> None:
        self._events.subscribe(handler, event_type)

    def unsubscribe(self, handler: EventHandler) -> None:
        self._events.unsubscribe(handler)

    async def events(self, event_type: EventType | None = None) -> list[LedgerEvent]:
        return await self._events.history(event_type)

    async def close(self) -> None:
        await self._payout.close()
        await self._storage.close()
