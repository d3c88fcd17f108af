"""Test fixtures and sample data."""
import pytest
from datetime import date, timedelta
from decimal import Decimal

from models import Account
from services.account_registry import AccountRegistry
from services.daily_record_store import DailyRecordStore

# Fixed "today" used by window and dashboard tests
TODAY = date(2024, 6, 28)


def add_record(
    account: Account,
    day: date,
    balance: Decimal | int = Decimal("1000"),
    volume: Decimal | int = Decimal("1024"),
    start_balance: Decimal | int | None = None,
    profit: Decimal | int = Decimal("0"),
    deducted_points: Decimal | int = Decimal("0"),
    bonus_points: Decimal | int = Decimal("0"),
):
    """Upsert a record directly on an account (no registry, no persistence).

    This is a helper function (not a fixture) for tests that need a history
    with specific figures. Start balance defaults to the end balance.
    """
    return DailyRecordStore.upsert(
        account,
        day,
        start_balance if start_balance is not None else balance,
        balance,
        volume,
        balance,
        profit=profit,
        deducted_points=deducted_points,
        bonus_points=bonus_points,
    )


def fill_days(account: Account, end: date, count: int, **kwargs) -> None:
    """Add ``count`` consecutive daily records ending at ``end``."""
    for offset in range(count):
        add_record(account, end - timedelta(days=offset), **kwargs)


@pytest.fixture
def account(registry: AccountRegistry) -> Account:
    """Create a test account with an empty history."""
    return registry.add_account("Main")


@pytest.fixture
def account_with_history(registry: AccountRegistry) -> Account:
    """Create an account with 20 days of records ending on TODAY.

    Each day scores 2 balance points (1000) + 10 volume points (1024) = 12.
    """
    acct = registry.add_account("History")
    for offset in range(20):
        registry.save_record(
            acct.id,
            TODAY - timedelta(days=offset),
            start_balance=Decimal("1000"),
            end_balance=Decimal("1000"),
            volume=Decimal("1024"),
            balance=Decimal("1000"),
        )
    return acct
