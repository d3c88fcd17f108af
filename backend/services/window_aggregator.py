"""Rolling window aggregation over an account's daily points history.

Every sum re-scans the history; nothing is cached. Windows are exactly
``WINDOW_DAYS`` calendar days wide and inclusive on both ends.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Literal, get_args

from models import Account
from services.daily_record_store import DailyRecordStore
from utils.dates import day_range, normalize_day, utc_today

WINDOW_DAYS = 15
LOGOUT_AFTER = timedelta(days=5)

SortColumn = Literal[
    "name",
    "balance",
    "today_points",
    "tomorrow_points",
    "pnl",
    "trade_volume",
    "logout_deadline",
]
SORT_COLUMNS: tuple[str, ...] = get_args(SortColumn)


@dataclass
class AccountSummary:
    """One dashboard row, computed from scratch on every request."""

    account_id: str
    name: str
    balance: Decimal
    today_points: Decimal
    tomorrow_points: Decimal
    today_pnl: Decimal
    today_volume: Decimal
    today_balance: Decimal
    today_start_balance: Decimal
    lifetime_pnl: Decimal
    no_volume_today: bool
    last_login: datetime | None
    logout_deadline: datetime | None
    risk_date: date | None
    risk_elapsed_days: int | None


def _sum_between(account: Account, start: date, end: date) -> Decimal:
    return sum(
        (r.total_points for r in account.points_history if start <= r.date <= end),
        Decimal("0"),
    )


def window_sum_at(account: Account, reference_day) -> Decimal:
    """Total points over ``[reference_day - 14, reference_day]``."""
    start, end = day_range(normalize_day(reference_day), WINDOW_DAYS)
    return _sum_between(account, start, end)


def operational_window_sum(account: Account, today: date | None = None) -> Decimal:
    """Today's standing score: the 15 days ending yesterday."""
    yesterday = (today or utc_today()) - timedelta(days=1)
    return window_sum_at(account, yesterday)


def forward_window_sum(account: Account, today: date | None = None) -> Decimal:
    """Tomorrow's projected score: the 15 days ending today."""
    return window_sum_at(account, today or utc_today())


def lifetime_pnl(account: Account) -> Decimal:
    """Sum of ``(end - start) + profit`` over the whole history."""
    return sum((r.pnl for r in account.points_history), Decimal("0"))


def lifetime_points(account: Account) -> Decimal:
    return sum((r.total_points for r in account.points_history), Decimal("0"))


def today_pnl(account: Account, today: date | None = None) -> Decimal:
    """P&L of today's record, or of today's synthesized stand-in."""
    return DailyRecordStore.get_or_synthesize(account, today or utc_today()).pnl


def logout_deadline(account: Account) -> datetime | None:
    """Five days after the last login, or None if never logged in."""
    if account.last_login is None:
        return None
    return account.last_login + LOGOUT_AFTER


def risk_elapsed_days(account: Account, today: date | None = None) -> int | None:
    """Whole days since the account was flagged, or None if never flagged."""
    if account.risk_date is None:
        return None
    return ((today or utc_today()) - account.risk_date).days


def account_summary(account: Account, today: date | None = None) -> AccountSummary:
    """Build the dashboard row for ``account`` as of ``today`` (UTC)."""
    today = today or utc_today()
    today_record = DailyRecordStore.get_or_synthesize(account, today)
    return AccountSummary(
        account_id=account.id,
        name=account.name,
        balance=account.balance,
        today_points=operational_window_sum(account, today),
        tomorrow_points=forward_window_sum(account, today),
        today_pnl=today_record.pnl,
        today_volume=today_record.volume,
        today_balance=today_record.balance,
        today_start_balance=today_record.start_balance,
        lifetime_pnl=lifetime_pnl(account),
        no_volume_today=DailyRecordStore.has_no_volume(account, today),
        last_login=account.last_login,
        logout_deadline=logout_deadline(account),
        risk_date=account.risk_date,
        risk_elapsed_days=risk_elapsed_days(account, today),
    )


_SORT_KEYS = {
    "name": lambda s: s.name.casefold(),
    "balance": lambda s: s.balance,
    "today_points": lambda s: s.today_points,
    "tomorrow_points": lambda s: s.tomorrow_points,
    "pnl": lambda s: s.today_pnl,
    "trade_volume": lambda s: s.today_volume,
}


def sort_summaries(
    summaries: list[AccountSummary],
    column: SortColumn = "name",
    descending: bool = False,
) -> list[AccountSummary]:
    """Sort dashboard rows by a column.

    Accounts that never logged in sort before every deadline in ascending
    order, matching "no time left".
    """
    if column == "logout_deadline":
        with_deadline = sorted(
            (s for s in summaries if s.logout_deadline is not None),
            key=lambda s: s.logout_deadline,
            reverse=descending,
        )
        without = [s for s in summaries if s.logout_deadline is None]
        return without + with_deadline if not descending else with_deadline + without
    if column not in _SORT_KEYS:
        raise ValueError(f"Unknown sort column {column!r}; expected one of {SORT_COLUMNS}")
    return sorted(summaries, key=_SORT_KEYS[column], reverse=descending)
