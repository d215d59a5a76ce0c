"""
Example: Campaign Lifecycle

Walks one campaign from creation to finalization with a manual clock,
then shows an unsolicited transfer being refused and swept.

Reads CROWDLEDGER_* settings from the environment (or a .env file).
"""

import asyncio
import os
from decimal import Decimal

from dotenv import load_dotenv

load_dotenv()

from crowdledger import (  # noqa: E402
    CampaignLedger,
    Config,
    CrowdLedgerError,
    DirectTransferRejectedError,
    ManualClock,
    configure_logging,
)


async def main():
    print("=== CrowdLedger Campaign Example ===\n")

    os.environ.setdefault("CROWDLEDGER_OWNER", "admin")
    config = Config.from_env()
    configure_logging(config.log_level)

    clock = ManualClock(0)
    ledger = CampaignLedger.from_config(config, clock=clock)
    beneficiary = "0x742d35Cc6634C0532925a3b844Bc9e7595f5e4a0"

    # ========================================
    # Create and fund a campaign
    # ========================================
    print("--- Funding ---")
    cid = await ledger.create_campaign(
        title="Community hall roof",
        description="Replace the leaking roof before winter",
        beneficiary=beneficiary,
        goal=Decimal("100"),
        duration=3600,
    )

    clock.set(10)
    await ledger.donate(cid, "alice", Decimal("40"))
    clock.set(20)
    await ledger.donate(cid, "bob", Decimal("30"))

    campaign = await ledger.get_campaign(cid)
    print(f"  Raised {campaign.amount_raised} of {campaign.goal} (deadline t={campaign.deadline})")

    # ========================================
    # Finalize
    # ========================================
    print("\n--- Finalizing ---")
    clock.set(3599)
    try:
        await ledger.finalize(cid)
    except CrowdLedgerError as e:
        print(f"  t=3599: {e}")

    clock.set(3600)
    released = await ledger.finalize(cid)
    print(f"  t=3600: released {released} to {beneficiary}")

    # ========================================
    # Residual value
    # ========================================
    print("\n--- Residual ---")
    try:
        await ledger.receive("stranger", Decimal("5"))
    except DirectTransferRejectedError as e:
        print(f"  Refused: {e}")

    await ledger.receive("stranger", Decimal("5"), forced=True)
    swept = await ledger.sweep_residual(config.owner)
    print(f"  Swept {swept} to {config.owner}")

    print("\n--- Events ---")
    for event in await ledger.events():
        print(f"  #{event.sequence} {event.type.value}: {event.data}")

    await ledger.close()


if __name__ == "__main__":
    asyncio.run(main())
