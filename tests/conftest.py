"""Pytest configuration and fixtures."""

import logging
from datetime import datetime, timedelta, timezone

import pytest

from rupee_ledger.accounts import WithdrawalPolicy
from rupee_ledger.ledger import Ledger


class FakeClock:
    """Manually advanced clock returning aware datetimes"""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    """Clock pinned to mid-morning so small advances stay on the same day."""
    return FakeClock(datetime(2024, 3, 15, 10, 0, tzinfo=timezone.utc))


@pytest.fixture
def policy() -> WithdrawalPolicy:
    """Default limits: 500.00 floor, 10,000.00 per day."""
    return WithdrawalPolicy()


@pytest.fixture
def ledger(policy, clock) -> Ledger:
    """Fresh ledger with demo accounts 101 and 102."""
    return Ledger.with_demo_accounts(policy=policy, clock=clock)


@pytest.fixture(autouse=True)
def reset_ledger_logger():
    """Drop handlers installed by setup_logging so tests don't leak them."""
    yield
    logger = logging.getLogger("rupee_ledger")
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
