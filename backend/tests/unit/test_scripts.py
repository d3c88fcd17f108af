"""Tests for scripts/import_csv.py and scripts/export_accounts.py."""

import json
from decimal import Decimal

import pytest

from models import Account
from scripts.export_accounts import export_accounts
from scripts.import_csv import import_file
from tests.fixtures import TODAY, add_record

CSV_TEXT = """AccountName,Date,Start,End,Vol,Profit,Deducted
Main,06/27/2024,1000,1100,1024,0,0
Main,06/28/2024,1100,1200,2048,0,0
Main,bad,1,1,1,0,0
"""


def _write(tmp_path, text: str, name: str = "records.csv") -> str:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return str(path)


class TestImportCsvScript:
    def test_imports_into_store(self, tmp_path, store, capsys):
        result = import_file(_write(tmp_path, CSV_TEXT), store=store)

        assert result.imported == 2
        assert result.errors == 1
        [account] = store.load()
        assert account.name == "Main"
        assert account.balance == Decimal("1200")
        assert "Imported: 2 rows, 1 errors" in capsys.readouterr().out

    def test_dry_run_writes_nothing(self, tmp_path, store, capsys):
        result = import_file(_write(tmp_path, CSV_TEXT), dry_run=True, store=store)

        assert result.errors == 1
        assert store.load() == []
        out = capsys.readouterr().out
        assert "DRY RUN: 2 rows parsed, 1 errors" in out
        assert "Main 2024-06-27" in out

    def test_utf8_bom(self, tmp_path, store):
        path = tmp_path / "bom.csv"
        path.write_bytes("\ufeff".encode("utf-8") + CSV_TEXT.encode("utf-8"))
        assert import_file(str(path), store=store).imported == 2


class TestExportAccountsScript:
    def _seed(self, store):
        main = Account(name="Main")
        add_record(main, TODAY)
        side = Account(name="Side")
        store.save([main, side])

    def test_csv_export(self, tmp_path, store):
        self._seed(store)
        output = str(tmp_path / "out.csv")

        assert export_accounts(output, store=store) == 2
        lines = (tmp_path / "out.csv").read_text().splitlines()
        assert lines[0].startswith("AccountName,Date,Start")
        assert lines[1].startswith("Main,2024-06-28")

    def test_json_export_single_account(self, tmp_path, store):
        self._seed(store)
        output = str(tmp_path / "out.json")

        assert export_accounts(output, fmt="json", account_name="Side", store=store) == 1
        payload = json.loads((tmp_path / "out.json").read_text())
        assert [a["name"] for a in payload] == ["Side"]

    def test_unknown_account_exits(self, tmp_path, store):
        self._seed(store)
        with pytest.raises(SystemExit):
            export_accounts(str(tmp_path / "x.csv"), account_name="Nope", store=store)
