import logging

import pytest

from crowdledger.core.clock import ManualClock
from crowdledger.core.logging import LOGGER_NAME
from crowdledger.ledger import CampaignLedger
from crowdledger.payout.memory import InMemoryPayout
from crowdledger.storage.memory import InMemoryStorage

OWNER = "admin"


@pytest.fixture(autouse=True)
def reset_crowdledger_logger():
    """Undo configure_logging so caplog sees records in every test."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def clock() -> ManualClock:
    """Clock starting at t=0."""
    return ManualClock(0)


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def payout() -> InMemoryPayout:
    return InMemoryPayout()


@pytest.fixture
def ledger(storage, payout, clock) -> CampaignLedger:
    """Ledger owned by OWNER that rejects direct transfers."""
    return CampaignLedger(owner=OWNER, storage=storage, payout=payout, clock=clock)


@pytest.fixture
def open_ledger(storage, payout, clock) -> CampaignLedger:
    """Ledger that accepts direct transfers into residual."""
    return CampaignLedger(
        owner=OWNER,
        storage=storage,
        payout=payout,
        clock=clock,
        reject_direct_transfers=False,
    )
