"""Daily record store - per-account history keyed by UTC calendar day."""

import logging
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation

from models import Account, DailyRecord, SynthesizedRecord
from services import points_calculator
from services.exceptions import RecordValidationError
from utils.dates import normalize_day, utc_today

logger = logging.getLogger(__name__)

# Stand-in values for a day with no record on that day or the day before
DEFAULT_BALANCE = Decimal("1000")
DEFAULT_VOLUME = Decimal("32768")

RECENT_RECORDS_LIMIT = 16


def _validated(value, field_name: str) -> Decimal:
    """Coerce to Decimal and reject negative or non-finite values."""
    if value is None:
        return Decimal("0")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise RecordValidationError(
            f"{field_name} must be a number, got {value!r}", field=field_name
        ) from e
    if not amount.is_finite():
        raise RecordValidationError(f"{field_name} must be finite", field=field_name)
    if amount < 0:
        raise RecordValidationError(
            f"{field_name} must not be negative, got {amount}", field=field_name
        )
    return amount


class DailyRecordStore:
    """Read and upsert operations over an account's ``points_history``."""

    @staticmethod
    def get_record(account: Account, day) -> DailyRecord | None:
        """Return the stored record for ``day``, or None."""
        key = normalize_day(day)
        for record in account.points_history:
            if record.date == key:
                return record
        return None

    @staticmethod
    def get_or_synthesize(account: Account, day) -> DailyRecord:
        """Return the stored record for ``day`` or a transient stand-in.

        The stand-in carries the previous day's end balance and volume
        forward, or falls back to a 1000 balance and 32768 volume when the
        previous day is empty too. It is a ``SynthesizedRecord``, rebuilt on
        every call, and must never be written back.
        """
        key = normalize_day(day)
        existing = DailyRecordStore.get_record(account, key)
        if existing is not None:
            return existing

        previous_day = key - timedelta(days=1)
        previous = DailyRecordStore.get_record(account, previous_day)
        if previous is not None:
            carried = (
                previous.end_balance
                if previous.end_balance is not None
                else previous.balance
            )
            return SynthesizedRecord(
                date=key,
                balance=carried,
                start_balance=carried,
                end_balance=None,
                volume=previous.volume,
                carried_from=previous_day,
            )

        return SynthesizedRecord(
            date=key,
            balance=DEFAULT_BALANCE,
            start_balance=DEFAULT_BALANCE,
            end_balance=None,
            volume=DEFAULT_VOLUME,
        )

    @staticmethod
    def upsert(
        account: Account,
        day,
        start_balance,
        end_balance,
        volume,
        balance_for_points,
        profit=Decimal("0"),
        deducted_points=Decimal("0"),
        bonus_points=Decimal("0"),
    ) -> DailyRecord:
        """Create or overwrite the record for ``day``.

        All numeric inputs except ``profit`` must be non-negative; a
        violation raises ``RecordValidationError`` before anything is
        written. Profit may be negative (a losing day).

        After the write the history is re-sorted, and the account's cached
        balance follows the chronologically latest record, which is not
        necessarily the one just written when backfilling a past day.
        """
        key = normalize_day(day)

        start = _validated(start_balance, "start_balance")
        end = _validated(end_balance, "end_balance")
        vol = _validated(volume, "volume")
        balance = _validated(balance_for_points, "balance")
        deducted = _validated(deducted_points, "deducted_points")
        bonus = _validated(bonus_points, "bonus_points")
        try:
            profit_amount = Decimal(str(profit)) if profit is not None else Decimal("0")
        except InvalidOperation as e:
            raise RecordValidationError(f"profit must be a number, got {profit!r}", field="profit") from e
        if not profit_amount.is_finite():
            raise RecordValidationError("profit must be finite", field="profit")

        bal_pts = points_calculator.balance_points(balance) if balance > 0 else 0
        vol_pts = points_calculator.volume_points(vol)
        total = points_calculator.total_points(bal_pts, vol_pts, bonus, deducted)

        record = DailyRecordStore.get_record(account, key)
        if record is not None:
            record.modified = True
        else:
            record = DailyRecord(date=key)
            account.points_history.append(record)

        record.start_balance = start
        record.end_balance = end
        record.volume = vol
        record.balance = balance
        record.profit = profit_amount
        record.deducted_points = deducted
        record.bonus_points = bonus
        record.balance_points = bal_pts
        record.volume_points = vol_pts
        record.total_points = total

        account.points_history.sort(key=lambda r: r.date)

        latest = account.points_history[-1]
        account.balance = latest.end_balance if latest.end_balance is not None else latest.balance
        account.touch()

        logger.debug(
            "Upserted %s for account %s: %s points", key, account.id, total
        )
        return record

    @staticmethod
    def last_day_balance(account: Account) -> Decimal:
        """End balance of the latest record, or 0 for an empty history."""
        if not account.points_history:
            return Decimal("0")
        latest = max(account.points_history, key=lambda r: r.date)
        return latest.end_balance if latest.end_balance is not None else latest.balance

    @staticmethod
    def recent_records(account: Account, limit: int = RECENT_RECORDS_LIMIT) -> list[DailyRecord]:
        """Newest-first slice of the history."""
        return sorted(account.points_history, key=lambda r: r.date, reverse=True)[:limit]

    @staticmethod
    def group_by_month(records: list[DailyRecord]) -> list[tuple[date, list[DailyRecord]]]:
        """Group records by calendar month, newest month and record first."""
        months: dict[date, list[DailyRecord]] = {}
        for record in records:
            months.setdefault(record.date.replace(day=1), []).append(record)
        return [
            (month, sorted(months[month], key=lambda r: r.date, reverse=True))
            for month in sorted(months, reverse=True)
        ]

    @staticmethod
    def has_no_volume(account: Account, today: date | None = None) -> bool:
        """True when nothing was saved for today or today's volume is zero."""
        record = DailyRecordStore.get_record(account, today or utc_today())
        return record is None or record.volume == 0
