"""Pydantic schemas for API request/response validation."""

from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import Optional
from decimal import Decimal


class AccountCreate(BaseModel):
    """Schema for creating an Account."""

    name: str = Field(min_length=1, max_length=200)


class AccountUpdate(BaseModel):
    """Schema for updating an Account.

    Only fields present in the request are applied; an explicit null
    clears ``risk_date`` or ``last_login``.
    """

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    risk_date: Optional[date] = None
    last_login: Optional[datetime] = None


class AccountResponse(BaseModel):
    """Schema for Account API response."""

    id: str
    name: str
    balance: Decimal
    last_updated: datetime
    created_at: datetime
    last_login: Optional[datetime] = None
    risk_date: Optional[date] = None
    record_count: int = 0

    # Derived from last_login / risk_date
    logout_deadline: Optional[datetime] = None
    risk_elapsed_days: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class LoginRequest(BaseModel):
    """Request body for recording a login; defaults to now."""

    at: Optional[datetime] = None


class DailyRecordInput(BaseModel):
    """Schema for saving one day's figures.

    ``balance`` is the value used for balance points and defaults to
    ``end_balance``. ``profit`` may be negative.
    """

    start_balance: Decimal = Field(ge=0)
    end_balance: Decimal = Field(ge=0)
    volume: Decimal = Field(ge=0)
    balance: Optional[Decimal] = Field(default=None, ge=0)
    profit: Decimal = Decimal("0")
    deducted_points: Decimal = Field(default=Decimal("0"), ge=0)
    bonus_points: Decimal = Field(default=Decimal("0"), ge=0)


class DailyRecordResponse(BaseModel):
    """Schema for a DailyRecord API response.

    ``synthesized`` marks a computed stand-in for a day with no saved data.
    """

    date: date
    balance: Decimal
    start_balance: Decimal
    end_balance: Optional[Decimal] = None
    volume: Decimal
    balance_points: int
    volume_points: int
    total_points: Decimal
    profit: Decimal
    deducted_points: Decimal
    bonus_points: Decimal
    modified: bool = False
    pnl: Decimal
    synthesized: bool = False
    carried_from: Optional[date] = None

    model_config = ConfigDict(from_attributes=True)


class RecordMonthResponse(BaseModel):
    """Records for one calendar month, newest first."""

    month: date  # First day of the month
    records: list[DailyRecordResponse]


class ScoreResponse(BaseModel):
    """Rolling-window scores for one account as of a UTC day."""

    account_id: str
    as_of: date
    today_points: Decimal  # 15 days ending yesterday
    tomorrow_points: Decimal  # 15 days ending today
    today_pnl: Decimal
    lifetime_pnl: Decimal
    lifetime_points: Decimal
    no_volume_today: bool
    logout_deadline: Optional[datetime] = None
    risk_elapsed_days: Optional[int] = None


class ImportResultResponse(BaseModel):
    """Outcome of a bulk import."""

    imported: int
    errors: int
    messages: list[str] = []

    model_config = ConfigDict(from_attributes=True)


class RestoreResponse(BaseModel):
    """Outcome of a JSON restore."""

    restored: bool
    accounts: int


class DeleteAllResponse(BaseModel):
    deleted: int
