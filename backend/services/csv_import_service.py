"""CSV import - turns dashboard CSV exports (or hand-made sheets) into records.

Expected columns, in any order and case:
``AccountName,Date,Start,End,Vol,Profit,Deducted`` plus the optional
``Bonus``, ``Balance``, ``RiskDate`` and ``LastLogin``. ``Pts`` and
``15d Points`` are ignored; points are always recalculated.
"""

import csv
import io
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from services.account_registry import AccountRegistry, ImportResult, ImportRow
from services.exceptions import RowParseError
from utils.dates import parse_iso_datetime

logger = logging.getLogger(__name__)

# Header spelling -> canonical column name
COLUMN_ALIASES: dict[str, str] = {
    "accountname": "account_name",
    "account": "account_name",
    "name": "account_name",
    "date": "date",
    "day": "date",
    "start": "start",
    "startbalance": "start",
    "end": "end",
    "endbalance": "end",
    "vol": "volume",
    "volume": "volume",
    "profit": "profit",
    "deducted": "deducted",
    "deductedpoints": "deducted",
    "bonus": "bonus",
    "bonuspoints": "bonus",
    "balance": "balance",
    "riskdate": "risk_date",
    "lastlogin": "last_login",
}

# Required columns and the position used when the header does not name them
REQUIRED_COLUMNS: tuple[str, ...] = (
    "account_name", "date", "start", "end", "volume", "profit", "deducted",
)


@dataclass
class ParsedCsv:
    """Rows that parsed cleanly plus the tally of rows that did not."""

    rows: list[ImportRow] = field(default_factory=list)
    result: ImportResult = field(default_factory=ImportResult)


def _header_key(cell: str) -> str:
    return "".join(ch for ch in cell.strip().strip('"').lower() if ch.isalnum())


def resolve_columns(header: list[str]) -> dict[str, int]:
    """Map canonical column names to cell positions.

    Required columns missing from the header fall back to their position in
    the standard export layout.
    """
    columns: dict[str, int] = {}
    for index, cell in enumerate(header):
        canonical = COLUMN_ALIASES.get(_header_key(cell))
        if canonical is not None and canonical not in columns:
            columns[canonical] = index

    missing = [name for name in REQUIRED_COLUMNS if name not in columns]
    if missing:
        logger.warning(
            "CSV header is missing %s; using positional fallback", ", ".join(missing)
        )
        for name in missing:
            columns[name] = REQUIRED_COLUMNS.index(name)
    return columns


def parse_csv_date(value: str) -> date:
    """Parse ``MM/DD/YYYY``, then ``YYYY-MM-DD``, then ``DD/MM/YYYY``.

    Slash dates are read month-first; day-first is only used when the
    month-first reading is not a real calendar date (e.g. ``25/12/2024``).

    Raises:
        RowParseError: If no format yields a valid date.
    """
    text = value.strip()
    slash_parts = text.split("/")
    if len(slash_parts) == 3:
        try:
            month, day, year = (int(p) for p in slash_parts)
        except ValueError:
            pass
        else:
            try:
                return date(year, month, day)
            except ValueError:
                pass

    dash_parts = text.split("-")
    if len(dash_parts) == 3:
        try:
            year, month, day = (int(p) for p in dash_parts)
            return date(year, month, day)
        except ValueError:
            pass

    if len(slash_parts) == 3:
        try:
            day, month, year = (int(p) for p in slash_parts)
            return date(year, month, day)
        except ValueError:
            pass

    raise RowParseError(
        "Could not parse date. Supported formats: MM/DD/YYYY, YYYY-MM-DD, "
        f"DD/MM/YYYY. Got: {value!r}"
    )


def _cell(cells: list[str], columns: dict[str, int], name: str) -> str:
    index = columns.get(name)
    if index is None or index >= len(cells):
        return ""
    return cells[index].strip()


def _parse_decimal(value: str, field_name: str) -> Decimal:
    """Parse a numeric cell; blank cells are zero."""
    if not value:
        return Decimal("0")
    try:
        amount = Decimal(value)
    except InvalidOperation as e:
        raise RowParseError(f"Cannot parse {value!r} as a number for {field_name}") from e
    if not amount.is_finite():
        raise RowParseError(f"{field_name} must be finite, got {value!r}")
    return amount


def _parse_login(value: str) -> datetime | None:
    if not value:
        return None
    parsed = parse_iso_datetime(value)
    if parsed is None:
        raise RowParseError(f"Cannot parse last login {value!r}")
    return parsed


def parse_row(cells: list[str], columns: dict[str, int], row_number: int) -> ImportRow:
    """Build an ImportRow from one CSV row.

    Raises:
        RowParseError: On a missing account name or date, or an unparseable value.
    """
    account_name = _cell(cells, columns, "account_name")
    date_text = _cell(cells, columns, "date")
    if not account_name or not date_text:
        raise RowParseError(
            f"Missing account or date. Account: {account_name!r}, Date: {date_text!r}",
            row_number=row_number,
        )

    try:
        balance_text = _cell(cells, columns, "balance")
        risk_text = _cell(cells, columns, "risk_date")
        return ImportRow(
            account_name=account_name,
            day=parse_csv_date(date_text),
            start_balance=_parse_decimal(_cell(cells, columns, "start"), "start"),
            end_balance=_parse_decimal(_cell(cells, columns, "end"), "end"),
            volume=_parse_decimal(_cell(cells, columns, "volume"), "volume"),
            profit=_parse_decimal(_cell(cells, columns, "profit"), "profit"),
            deducted_points=_parse_decimal(_cell(cells, columns, "deducted"), "deducted"),
            bonus_points=_parse_decimal(_cell(cells, columns, "bonus"), "bonus"),
            balance=_parse_decimal(balance_text, "balance") if balance_text else None,
            risk_date=parse_csv_date(risk_text) if risk_text else None,
            last_login=_parse_login(_cell(cells, columns, "last_login")),
            row_number=row_number,
        )
    except RowParseError as e:
        e.row_number = row_number
        raise


def parse_csv(text: str) -> ParsedCsv:
    """Parse CSV text into import rows, counting rows that fail to parse."""
    parsed = ParsedCsv()
    if not text or not text.strip():
        logger.warning("No CSV data provided")
        return parsed

    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")), skipinitialspace=True)
    columns: dict[str, int] | None = None
    while True:
        try:
            cells = next(reader)
        except StopIteration:
            break
        except csv.Error as e:
            parsed.result.errors += 1
            parsed.result.messages.append(f"line {reader.line_num}: {e}")
            logger.warning("Malformed CSV line %d: %s", reader.line_num, e)
            continue

        if not any(cell.strip() for cell in cells):
            continue
        if columns is None:
            columns = resolve_columns(cells)
            continue

        row_number = reader.line_num
        try:
            parsed.rows.append(parse_row(cells, columns, row_number))
        except RowParseError as e:
            parsed.result.errors += 1
            parsed.result.messages.append(f"row {row_number}: {e}")
            logger.warning("CSV row %d skipped: %s", row_number, e)

    return parsed


class CsvImportService:
    """Import CSV text into an account registry."""

    @staticmethod
    def import_csv(registry: AccountRegistry, text: str) -> ImportResult:
        """Parse and upsert every row; bad rows are counted, never raised."""
        parsed = parse_csv(text)
        result = parsed.result.merge(registry.import_rows(parsed.rows))
        logger.info(
            "CSV import finished: %d imported, %d errors", result.imported, result.errors
        )
        return result
