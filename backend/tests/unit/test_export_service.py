"""Tests for ExportService."""

import csv
import io
import json
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from models import Account
from services.csv_import_service import parse_csv
from services.export_service import CSV_HEADER, ExportService, account_csv_rows
from tests.fixtures import TODAY, add_record, fill_days


def _read(text: str) -> list[dict]:
    return list(csv.DictReader(io.StringIO(text)))


class TestCsvExport:
    """Tests for CSV export."""

    def test_header(self):
        text = ExportService.accounts_to_csv([])
        assert text.splitlines() == [",".join(CSV_HEADER)]

    def test_rows_and_window_column(self):
        account = Account(name="Main")
        fill_days(account, TODAY, 3)

        rows = _read(ExportService.account_to_csv(account))

        assert [r["Date"] for r in rows] == ["2024-06-26", "2024-06-27", "2024-06-28"]
        assert [r["Pts"] for r in rows] == ["12", "12", "12"]
        assert [r["15d Points"] for r in rows] == ["12", "24", "36"]

    def test_metadata_columns(self):
        account = Account(
            name="Main",
            risk_date=date(2024, 6, 1),
            last_login=datetime(2024, 6, 27, 9, 30, tzinfo=timezone.utc),
        )
        add_record(account, TODAY, profit=Decimal("-2.5"), bonus_points=1)

        [row] = _read(ExportService.account_to_csv(account))

        assert row["AccountName"] == "Main"
        assert row["Profit"] == "-2.5"
        assert row["Bonus"] == "1"
        assert row["RiskDate"] == "2024-06-01"
        assert row["LastLogin"] == "2024-06-27T09:30:00+00:00"
        assert row["LogoutDeadline"] == "2024-07-02T09:30:00+00:00"

    def test_blank_timers(self):
        account = Account(name="Main")
        add_record(account, TODAY)
        [row] = _read(ExportService.account_to_csv(account))
        assert row["RiskDate"] == ""
        assert row["LogoutDeadline"] == ""

    def test_all_accounts(self):
        first = Account(name="A")
        second = Account(name="B")
        add_record(first, TODAY)
        fill_days(second, TODAY, 2)

        rows = _read(ExportService.accounts_to_csv([first, second]))

        assert [r["AccountName"] for r in rows] == ["A", "B", "B"]

    def test_export_reimports(self):
        account = Account(name="Main", risk_date=date(2024, 6, 1))
        add_record(account, TODAY - timedelta(days=1), start_balance=900, balance=1000, deducted_points=2)
        add_record(account, TODAY, balance=1100, volume=4096)

        parsed = parse_csv(ExportService.account_to_csv(account))

        assert parsed.result.errors == 0
        assert [r.day for r in parsed.rows] == [TODAY - timedelta(days=1), TODAY]
        assert parsed.rows[0].start_balance == Decimal("900")
        assert parsed.rows[0].deducted_points == Decimal("2")
        assert parsed.rows[1].risk_date == date(2024, 6, 1)

    def test_account_csv_rows_sorted(self):
        account = Account(name="Main")
        add_record(account, TODAY)
        add_record(account, TODAY - timedelta(days=4))
        assert [r[1] for r in account_csv_rows(account)] == ["2024-06-24", "2024-06-28"]


class TestJsonExport:
    """Tests for JSON export and restore."""

    def test_json_export(self):
        account = Account(name="Main")
        add_record(account, TODAY)
        payload = json.loads(ExportService.account_to_json(account))
        assert payload[0]["name"] == "Main"
        assert payload[0]["pointsHistory"][0]["date"] == "2024-06-28"

    def test_restore_replaces_accounts(self, registry, store, account):
        backup = Account(name="Restored")
        add_record(backup, TODAY)

        ok = ExportService.restore_json(registry, store, ExportService.accounts_to_json([backup]))

        assert ok is True
        assert [a.name for a in registry.list_accounts()] == ["Restored"]
        assert [a.name for a in store.load()] == ["Restored"]

    def test_restore_invalid_leaves_state(self, registry, store, account):
        assert ExportService.restore_json(registry, store, "not json") is False
        assert registry.list_accounts() == [account]

    def test_restore_keeps_surviving_selection(self, registry, store, account):
        registry.select_account(account.id)
        ExportService.restore_json(registry, store, ExportService.accounts_to_json([account]))
        assert registry.get_selected().id == account.id
