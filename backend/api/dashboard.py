"""Dashboard API endpoints."""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict

from api.helpers import get_registry
from services.account_registry import AccountRegistry
from services.window_aggregator import SortColumn, account_summary, sort_summaries
from utils.dates import utc_today

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


class DashboardRow(BaseModel):
    """One account's standing on the dashboard."""

    account_id: str
    name: str
    balance: Decimal
    today_points: Decimal
    tomorrow_points: Decimal
    today_pnl: Decimal
    today_volume: Decimal
    today_balance: Decimal
    today_start_balance: Decimal
    lifetime_pnl: Decimal
    no_volume_today: bool
    last_login: Optional[datetime] = None
    logout_deadline: Optional[datetime] = None
    risk_date: Optional[date] = None
    risk_elapsed_days: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class DashboardResponse(BaseModel):
    """Dashboard data response."""

    as_of: date
    total_balance: Decimal
    total_today_points: Decimal
    accounts: list[DashboardRow]


@router.get("", response_model=DashboardResponse)
def get_dashboard(
    sort: SortColumn = Query("name", description="Column to sort by"),
    desc: bool = Query(False, description="Sort descending"),
    as_of: Optional[date] = Query(None, description="UTC day (default today)"),
    registry: AccountRegistry = Depends(get_registry),
):
    """Every account with its rolling scores, sorted by one column."""
    today = as_of or utc_today()
    summaries = registry.read(lambda accounts: [account_summary(a, today) for a in accounts])
    rows = sort_summaries(summaries, sort, desc)
    return DashboardResponse(
        as_of=today,
        total_balance=sum((s.balance for s in rows), Decimal("0")),
        total_today_points=sum((s.today_points for s in rows), Decimal("0")),
        accounts=[DashboardRow.model_validate(s) for s in rows],
    )
