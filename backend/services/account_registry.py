"""Account registry - owns the accounts, the selection and their observers."""

import logging
import threading
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Iterable, Optional, TypeVar

from models import Account, DailyRecord
from services.account_store import AccountStore
from services.daily_record_store import DailyRecordStore
from services.exceptions import RecordValidationError
from services.window_aggregator import logout_deadline, risk_elapsed_days
from utils.dates import ensure_utc, normalize_day, utc_now

logger = logging.getLogger(__name__)

Observer = Callable[[list[Account], Optional[Account]], None]
T = TypeVar("T")


@dataclass
class ImportRow:
    """One parsed import row, ready to be upserted."""

    account_name: str
    day: date
    start_balance: Decimal = Decimal("0")
    end_balance: Decimal = Decimal("0")
    volume: Decimal = Decimal("0")
    profit: Decimal = Decimal("0")
    deducted_points: Decimal = Decimal("0")
    bonus_points: Decimal = Decimal("0")
    balance: Decimal | None = None  # Balance for points; defaults to end_balance
    risk_date: date | None = None
    last_login: datetime | None = None
    row_number: int | None = None


@dataclass
class ImportResult:
    """Counts of rows imported and rows rejected."""

    imported: int = 0
    errors: int = 0
    messages: list[str] = field(default_factory=list)

    def merge(self, other: "ImportResult") -> "ImportResult":
        return ImportResult(
            imported=self.imported + other.imported,
            errors=self.errors + other.errors,
            messages=self.messages + other.messages,
        )


class AccountRegistry:
    """In-memory state holder for one running dashboard.

    Every mutation runs under one re-entrant lock, then publishes the
    account list and the selection to subscribers and saves through the
    account store. A failed save is logged; the in-memory change stands.
    Unknown account ids are not errors: lookups return None.
    """

    def __init__(
        self,
        store: AccountStore | None = None,
        accounts: Iterable[Account] = (),
        selected_id: str | None = None,
    ):
        self._store = store
        self._accounts: list[Account] = list(accounts)
        self._selected_id = selected_id if self._find(selected_id) else None
        self._observers: list[Observer] = []
        self._lock = threading.RLock()

    @classmethod
    def from_store(cls, store: AccountStore) -> "AccountRegistry":
        """Build a registry from whatever the store holds (possibly nothing)."""
        return cls(
            store=store,
            accounts=store.load(),
            selected_id=store.load_selected_id(),
        )

    # -- observers -----------------------------------------------------------

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer and send it the current state immediately.

        Returns a callable that unsubscribes the observer.
        """
        with self._lock:
            self._observers.append(observer)
            self._notify_one(observer)

        def unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return unsubscribe

    def _notify_one(self, observer: Observer) -> None:
        try:
            observer(list(self._accounts), self.get_selected())
        except Exception:
            logger.warning("Account observer %r failed", observer, exc_info=True)

    def _publish(self) -> None:
        for observer in list(self._observers):
            self._notify_one(observer)
        self._persist()

    def _persist(self) -> None:
        if self._store is None:
            return
        try:
            self._store.save(self._accounts)
        except Exception:
            logger.warning("Failed to persist accounts", exc_info=True)

    def _persist_selection(self) -> None:
        if self._store is None:
            return
        try:
            self._store.save_selected_id(self._selected_id)
        except Exception:
            logger.warning("Failed to persist selected account", exc_info=True)

    # -- reads ---------------------------------------------------------------

    def _find(self, account_id: str | None) -> Account | None:
        if account_id is None:
            return None
        for account in self._accounts:
            if account.id == account_id:
                return account
        return None

    def list_accounts(self) -> list[Account]:
        with self._lock:
            return list(self._accounts)

    def get_account(self, account_id: str) -> Account | None:
        with self._lock:
            return self._find(account_id)

    def find_by_name(self, name: str) -> Account | None:
        """First account whose name matches exactly."""
        with self._lock:
            return next((a for a in self._accounts if a.name == name), None)

    def get_selected(self) -> Account | None:
        with self._lock:
            return self._find(self._selected_id)

    def read(self, reader: Callable[[list[Account]], T]) -> T:
        """Run ``reader`` over the account list while holding the lock.

        Anything that walks a history (scores, summaries, exports) goes
        through here so it never sees a half-applied upsert.
        """
        with self._lock:
            return reader(list(self._accounts))

    def read_account(self, account_id: str, reader: Callable[[Account], T]) -> T | None:
        """Like ``read`` for one account; None when the id is unknown."""
        with self._lock:
            account = self._find(account_id)
            return reader(account) if account is not None else None

    def logout_deadline(self, account: Account) -> datetime | None:
        return logout_deadline(account)

    def risk_elapsed_days(self, account: Account, today: date | None = None) -> int | None:
        return risk_elapsed_days(account, today)

    # -- account lifecycle ---------------------------------------------------

    def add_account(self, name: str) -> Account:
        """Create an account with an empty history and zero balance."""
        name = name.strip()
        if not name:
            raise ValueError("Account name must not be empty")
        with self._lock:
            account = Account(name=name)
            self._accounts.append(account)
            logger.info("Account created: %s (id=%s)", account.name, account.id)
            self._publish()
            return account

    def select_account(self, account_id: str) -> Account | None:
        with self._lock:
            account = self._find(account_id)
            if account is None:
                return None
            self._selected_id = account.id
            self._persist_selection()
            self._publish()
            return account

    def delete_account(self, account_id: str) -> bool:
        """Remove an account and all its records; clears a matching selection."""
        with self._lock:
            account = self._find(account_id)
            if account is None:
                return False
            self._accounts.remove(account)
            if self._selected_id == account_id:
                self._selected_id = None
                self._persist_selection()
            logger.info("Account deleted: %s (id=%s)", account.name, account.id)
            self._publish()
            return True

    def delete_all_accounts(self) -> int:
        with self._lock:
            count = len(self._accounts)
            self._accounts.clear()
            if self._selected_id is not None:
                self._selected_id = None
                self._persist_selection()
            logger.info("Deleted all %d account(s)", count)
            self._publish()
            return count

    def replace_accounts(self, accounts: Iterable[Account]) -> None:
        """Swap in a restored account list, keeping the selection if it survives."""
        with self._lock:
            self._accounts = list(accounts)
            if self._find(self._selected_id) is None and self._selected_id is not None:
                self._selected_id = None
                self._persist_selection()
            logger.info("Replaced account list with %d account(s)", len(self._accounts))
            self._publish()

    # -- metadata ------------------------------------------------------------

    def _mutate(self, account_id: str, change: Callable[[Account], None]) -> Account | None:
        with self._lock:
            account = self._find(account_id)
            if account is None:
                return None
            change(account)
            account.touch()
            self._publish()
            return account

    def rename_account(self, account_id: str, new_name: str) -> Account | None:
        new_name = new_name.strip()
        if not new_name:
            raise ValueError("Account name must not be empty")
        return self._mutate(account_id, lambda a: setattr(a, "name", new_name))

    def set_risk_date(self, account_id: str, day) -> Account | None:
        risk_day = normalize_day(day) if day is not None else None
        return self._mutate(account_id, lambda a: setattr(a, "risk_date", risk_day))

    def set_last_login(self, account_id: str, timestamp: datetime | None) -> Account | None:
        login = ensure_utc(timestamp) if timestamp is not None else None
        return self._mutate(account_id, lambda a: setattr(a, "last_login", login))

    def record_login(self, account_id: str, at: datetime | None = None) -> Account | None:
        """Mark a login at ``at`` (default now), restarting the logout countdown."""
        return self.set_last_login(account_id, at or utc_now())

    # -- records -------------------------------------------------------------

    def save_record(
        self,
        account_id: str,
        day,
        *,
        start_balance,
        end_balance,
        volume,
        balance,
        profit=Decimal("0"),
        deducted_points=Decimal("0"),
        bonus_points=Decimal("0"),
    ) -> DailyRecord | None:
        """Upsert one day's entry for an account.

        Returns None for an unknown account. Raises ``RecordValidationError``
        for negative input, leaving the history untouched.
        """
        with self._lock:
            account = self._find(account_id)
            if account is None:
                return None
            record = DailyRecordStore.upsert(
                account,
                day,
                start_balance,
                end_balance,
                volume,
                balance,
                profit=profit,
                deducted_points=deducted_points,
                bonus_points=bonus_points,
            )
            self._publish()
            return record

    def import_rows(self, rows: Iterable[ImportRow]) -> ImportResult:
        """Upsert parsed rows one at a time.

        A rejected row is counted and skipped; it never aborts the batch.
        Accounts are matched by name and created on first successful row.
        """
        result = ImportResult()
        with self._lock:
            for row in rows:
                account = self.find_by_name(row.account_name)
                is_new = account is None
                if is_new:
                    account = Account(name=row.account_name)
                try:
                    DailyRecordStore.upsert(
                        account,
                        row.day,
                        row.start_balance,
                        row.end_balance,
                        row.volume,
                        row.balance if row.balance is not None else row.end_balance,
                        profit=row.profit,
                        deducted_points=row.deducted_points,
                        bonus_points=row.bonus_points,
                    )
                except RecordValidationError as e:
                    result.errors += 1
                    result.messages.append(f"row {row.row_number}: {e}")
                    logger.warning("Import row %s rejected: %s", row.row_number, e)
                    continue

                if row.risk_date is not None:
                    account.risk_date = row.risk_date
                if row.last_login is not None:
                    account.last_login = ensure_utc(row.last_login)
                account.touch()
                if is_new:
                    self._accounts.append(account)
                    logger.info("Account created by import: %s (id=%s)", account.name, account.id)
                result.imported += 1

            logger.info(
                "Import completed: %d imported, %d errors", result.imported, result.errors
            )
            self._publish()
        return result
