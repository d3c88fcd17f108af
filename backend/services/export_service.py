"""Export service - CSV and JSON renderings of tracked accounts."""

import csv
import io
import logging
from datetime import date, datetime
from decimal import Decimal

from models import Account
from schemas.stored import dump_accounts
from services.account_registry import AccountRegistry
from services.account_store import AccountStore
from services.exceptions import StoreSerializationError
from services.window_aggregator import logout_deadline, window_sum_at

logger = logging.getLogger(__name__)

CSV_HEADER: tuple[str, ...] = (
    "AccountName",
    "Date",
    "Start",
    "End",
    "Vol",
    "Profit",
    "Deducted",
    "Bonus",
    "Pts",
    "15d Points",
    "RiskDate",
    "LastLogin",
    "LogoutDeadline",
)


def _format_decimal(value: Decimal | None) -> str:
    if value is None:
        return ""
    return format(value.normalize(), "f")


def _format_day(value: date | None) -> str:
    return value.isoformat() if value is not None else ""


def _format_timestamp(value: datetime | None) -> str:
    return value.isoformat() if value is not None else ""


def account_csv_rows(account: Account) -> list[list[str]]:
    """One CSV row per stored record, oldest first.

    ``15d Points`` is the window sum ending on the record's own day.
    """
    deadline = logout_deadline(account)
    rows = []
    for record in sorted(account.points_history, key=lambda r: r.date):
        rows.append([
            account.name,
            _format_day(record.date),
            _format_decimal(record.start_balance),
            _format_decimal(record.end_balance),
            _format_decimal(record.volume),
            _format_decimal(record.profit),
            _format_decimal(record.deducted_points),
            _format_decimal(record.bonus_points),
            _format_decimal(record.total_points),
            _format_decimal(window_sum_at(account, record.date)),
            _format_day(account.risk_date),
            _format_timestamp(account.last_login),
            _format_timestamp(deadline),
        ])
    return rows


class ExportService:
    """Render accounts for download and restore them from JSON."""

    @staticmethod
    def accounts_to_csv(accounts: list[Account]) -> str:
        """CSV text for the given accounts, header first."""
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        row_count = 0
        for account in accounts:
            for row in account_csv_rows(account):
                writer.writerow(row)
                row_count += 1
        logger.info("Exported %d row(s) for %d account(s) to CSV", row_count, len(accounts))
        return buffer.getvalue()

    @staticmethod
    def account_to_csv(account: Account) -> str:
        return ExportService.accounts_to_csv([account])

    @staticmethod
    def accounts_to_json(accounts: list[Account]) -> str:
        """Full-fidelity JSON backup in the stored blob format."""
        logger.info("Exported %d account(s) to JSON", len(accounts))
        return dump_accounts(accounts)

    @staticmethod
    def account_to_json(account: Account) -> str:
        return ExportService.accounts_to_json([account])

    @staticmethod
    def restore_json(registry: AccountRegistry, store: AccountStore, payload: str | bytes) -> bool:
        """Replace every account with the contents of a JSON backup.

        Returns False and leaves the registry untouched when the payload
        cannot be decoded.
        """
        try:
            accounts = store.decode(payload)
        except StoreSerializationError:
            logger.warning("Rejected JSON restore", exc_info=True)
            return False
        registry.replace_accounts(accounts)
        logger.info("Restored %d account(s) from JSON", len(accounts))
        return True
