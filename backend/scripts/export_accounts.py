#!/usr/bin/env python
"""Export stored accounts to CSV or to a JSON backup.

Usage:
    cd backend
    uv run python -m scripts.export_accounts [--format csv|json] [--account NAME] [--output FILE]
"""

import argparse
import sys

from database import get_session_local, init_db
from services.account_store import AccountStore
from services.export_service import ExportService


def export_accounts(
    output_path: str,
    fmt: str = "csv",
    account_name: str | None = None,
    store: AccountStore | None = None,
) -> int:
    """Write the export file and return the number of accounts in it."""
    if store is None:
        init_db()
        store = AccountStore(get_session_local())
    accounts = store.load()

    if account_name is not None:
        accounts = [a for a in accounts if a.name == account_name]
        if not accounts:
            print(f"ERROR: No account named {account_name!r}")
            sys.exit(1)

    if fmt == "json":
        content = ExportService.accounts_to_json(accounts)
    else:
        content = ExportService.accounts_to_csv(accounts)

    with open(output_path, "w", encoding="utf-8", newline="") as f:
        f.write(content)

    print(f"Exported {len(accounts)} accounts to {output_path}")
    for account in accounts:
        print(f"  {account.name}: {len(account.points_history)} records")
    return len(accounts)


def main():
    parser = argparse.ArgumentParser(description="Export accounts to CSV or JSON")
    parser.add_argument(
        "--format", "-f",
        choices=("csv", "json"),
        default="csv",
        help="Output format (default: csv)",
    )
    parser.add_argument("--account", "-a", help="Only export the account with this name")
    parser.add_argument(
        "--output", "-o",
        help="Output file path (default: alpha_points.csv or alpha_points.json)",
    )
    args = parser.parse_args()
    output = args.output or f"alpha_points.{args.format}"
    export_accounts(output, fmt=args.format, account_name=args.account)


if __name__ == "__main__":
    main()
