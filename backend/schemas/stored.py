"""Pydantic schemas for the persisted account blob.

Field aliases are camelCase so the blob matches the dashboard's JSON
export format, and exports from older dashboard versions can be restored.
Those older exports may hold several timestamped entries for one day and
point totals that counted profit, so histories are rebuilt record by
record rather than trusted as stored.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel

from models import Account, DailyRecord
from services.daily_record_store import DailyRecordStore
from utils.dates import ensure_utc, normalize_day


class StoredRecord(BaseModel):
    """One daily record as persisted."""

    model_config = ConfigDict(
        from_attributes=True, alias_generator=to_camel, populate_by_name=True
    )

    date: date
    balance: Decimal = Field(default=Decimal("0"), ge=0)
    start_balance: Decimal = Field(default=Decimal("0"), ge=0)
    end_balance: Optional[Decimal] = Field(default=None, ge=0)
    volume: Decimal = Field(default=Decimal("0"), ge=0)
    balance_points: int = 0
    volume_points: int = 0
    total_points: Decimal = Decimal("0")
    profit: Decimal = Decimal("0")
    deducted_points: Decimal = Field(default=Decimal("0"), ge=0)
    bonus_points: Decimal = Field(default=Decimal("0"), ge=0)
    modified: bool = False

    @field_validator("date", mode="before")
    @classmethod
    def rehydrate_day(cls, v):
        """Accept full timestamps (``2024-06-28T00:00:00.000Z``) as days."""
        return normalize_day(v)

    @field_validator(
        "balance", "start_balance", "volume", "total_points",
        "profit", "deducted_points", "bonus_points",
        mode="before",
    )
    @classmethod
    def none_as_zero(cls, v):
        return Decimal("0") if v is None else v

    def apply_to(self, account: Account) -> DailyRecord:
        """Upsert this entry into ``account``, recomputing its points."""
        record = DailyRecordStore.upsert(
            account,
            self.date,
            self.start_balance,
            self.end_balance if self.end_balance is not None else self.balance,
            self.volume,
            self.balance,
            profit=self.profit,
            deducted_points=self.deducted_points,
            bonus_points=self.bonus_points,
        )
        record.modified = record.modified or self.modified
        return record


class StoredAccount(BaseModel):
    """One account with its full history as persisted."""

    model_config = ConfigDict(
        from_attributes=True, alias_generator=to_camel, populate_by_name=True
    )

    id: str
    name: str
    balance: Decimal = Decimal("0")
    last_updated: datetime
    points_history: list[StoredRecord] = []
    last_login: Optional[datetime] = None
    risk_date: Optional[date] = None
    created_at: Optional[datetime] = None

    @field_validator("last_updated", "last_login", "created_at")
    @classmethod
    def as_utc(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v) if v is not None else None

    @field_validator("risk_date", mode="before")
    @classmethod
    def rehydrate_risk_day(cls, v):
        return normalize_day(v) if v else None

    def to_domain(self) -> Account:
        """Rebuild the account, merging same-day entries (the later entry in the list wins).

        Raises:
            RecordValidationError: If an entry is rejected by the upsert rules.
        """
        account = Account(
            id=self.id,
            name=self.name,
            balance=self.balance,
            last_login=self.last_login,
            risk_date=self.risk_date,
        )
        for entry in self.points_history:
            entry.apply_to(account)
        account.last_updated = self.last_updated
        if self.created_at is not None:
            account.created_at = self.created_at
        return account


StoredAccountList = TypeAdapter(list[StoredAccount])


def dump_accounts(accounts: list[Account]) -> str:
    """Serialize domain accounts to the JSON blob format."""
    stored = [StoredAccount.model_validate(a, from_attributes=True) for a in accounts]
    return StoredAccountList.dump_json(stored, by_alias=True, indent=2).decode()


def load_accounts(payload: str | bytes) -> list[Account]:
    """Parse the JSON blob format back into domain accounts.

    Raises:
        pydantic.ValidationError: If the payload is not a valid account list.
        RecordValidationError: If a stored entry fails the upsert rules.
    """
    return [stored.to_domain() for stored in StoredAccountList.validate_json(payload)]
