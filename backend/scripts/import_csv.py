#!/usr/bin/env python
"""Import daily records from a CSV file into the stored accounts.

Accepts the dashboard's own CSV export as well as hand-made sheets with
``AccountName,Date,Start,End,Vol,Profit,Deducted`` columns. Accounts are
matched by name and created when missing. Bad rows are reported and skipped.

Usage:
    cd backend
    uv run python -m scripts.import_csv records.csv [--dry-run]
"""

import argparse
import sys

from database import get_session_local, init_db
from services.account_registry import AccountRegistry
from services.account_store import AccountStore
from services.csv_import_service import CsvImportService, parse_csv


def import_file(csv_path: str, dry_run: bool = False, store: AccountStore | None = None):
    """Import a CSV file; with ``dry_run`` only parse and report."""
    with open(csv_path, encoding="utf-8-sig") as f:
        text = f.read()

    if dry_run:
        parsed = parse_csv(text)
        print(f"DRY RUN: {len(parsed.rows)} rows parsed, {parsed.result.errors} errors")
        for message in parsed.result.messages:
            print(f"  ERROR: {message}")
        for row in parsed.rows:
            print(
                f"    {row.account_name} {row.day.isoformat()}: "
                f"start={row.start_balance} end={row.end_balance} vol={row.volume}"
            )
        return parsed.result

    if store is None:
        init_db()
        store = AccountStore(get_session_local())
    registry = AccountRegistry.from_store(store)

    result = CsvImportService.import_csv(registry, text)
    print(f"Imported: {result.imported} rows, {result.errors} errors")
    for message in result.messages:
        print(f"  ERROR: {message}")
    return result


def main():
    parser = argparse.ArgumentParser(description="Import daily records from CSV")
    parser.add_argument("csv_file", help="Path to the CSV file")
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Parse and show rows without saving anything",
    )
    args = parser.parse_args()
    result = import_file(args.csv_file, dry_run=args.dry_run)
    if result.errors and not result.imported:
        sys.exit(1)


if __name__ == "__main__":
    main()
