"""DailyRecord model - one account's figures for a single UTC calendar day."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

ZERO = Decimal("0")


@dataclass
class DailyRecord:
    """Balances, volume and derived points for one account on one day.

    ``total_points`` is owned by the daily record store and is recomputed on
    every upsert; it is never edited on its own.
    """

    date: date
    balance: Decimal = ZERO  # Value used for balance-points calculation
    start_balance: Decimal = ZERO  # Day start balance for P&L
    end_balance: Decimal | None = ZERO  # Day end balance for P&L
    volume: Decimal = ZERO
    balance_points: int = 0
    volume_points: int = 0
    total_points: Decimal = ZERO
    profit: Decimal = ZERO  # Manually entered daily profit (P&L only)
    deducted_points: Decimal = ZERO
    bonus_points: Decimal = ZERO
    modified: bool = False  # True once an existing record has been overwritten

    @property
    def pnl(self) -> Decimal:
        """Day P&L: ``(end - start) + profit``.

        A blank end balance (synthesized records) falls back to ``balance``.
        """
        end = self.end_balance if self.end_balance is not None else self.balance
        return (end - self.start_balance) + self.profit


@dataclass
class SynthesizedRecord(DailyRecord):
    """A computed stand-in for a day with no saved data.

    Returned only by ``DailyRecordStore.get_or_synthesize`` and never added
    to an account's history.
    """

    carried_from: date | None = None  # Day the values were carried forward from
