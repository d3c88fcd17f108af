"""Accounts API endpoints."""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query

from api.helpers import (
    account_response_dict, get_account_or_404, get_registry, read_account_or_404,
    record_response_dict,
)
from schemas.account import (
    AccountCreate, AccountResponse, AccountUpdate, DailyRecordInput,
    DailyRecordResponse, DeleteAllResponse, LoginRequest, RecordMonthResponse,
    ScoreResponse,
)
from services.account_registry import AccountRegistry
from services.daily_record_store import RECENT_RECORDS_LIMIT, DailyRecordStore
from services.exceptions import RecordValidationError
from services.window_aggregator import (
    forward_window_sum, lifetime_pnl, lifetime_points, logout_deadline,
    operational_window_sum, risk_elapsed_days, today_pnl,
)
from utils.dates import utc_today

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/accounts", tags=["accounts"])


@router.get("", response_model=list[AccountResponse])
def list_accounts(registry: AccountRegistry = Depends(get_registry)):
    """List all accounts in insertion order."""
    return registry.read(lambda accounts: [account_response_dict(a) for a in accounts])


@router.post("", response_model=AccountResponse, status_code=201)
def create_account(body: AccountCreate, registry: AccountRegistry = Depends(get_registry)):
    """Create an account with an empty history."""
    try:
        account = registry.add_account(body.name)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return read_account_or_404(registry, account.id, account_response_dict)


@router.delete("", response_model=DeleteAllResponse)
def delete_all_accounts(registry: AccountRegistry = Depends(get_registry)):
    """Delete every account and its history."""
    return DeleteAllResponse(deleted=registry.delete_all_accounts())


@router.get("/selected", response_model=Optional[AccountResponse])
def get_selected_account(registry: AccountRegistry = Depends(get_registry)):
    """Return the selected account, or null when nothing is selected."""
    account = registry.get_selected()
    if account is None:
        return None
    return registry.read_account(account.id, account_response_dict)


@router.get("/{account_id}", response_model=AccountResponse)
def get_account(account_id: str, registry: AccountRegistry = Depends(get_registry)):
    """Get a single account."""
    return read_account_or_404(registry, account_id, account_response_dict)


@router.patch("/{account_id}", response_model=AccountResponse)
def update_account(
    account_id: str,
    body: AccountUpdate,
    registry: AccountRegistry = Depends(get_registry),
):
    """Rename an account or change its risk date and last login."""
    get_account_or_404(registry, account_id)
    update_dict = body.model_dump(exclude_unset=True)

    if update_dict.get("name") is not None:
        try:
            registry.rename_account(account_id, update_dict["name"])
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
    if "risk_date" in update_dict:
        registry.set_risk_date(account_id, update_dict["risk_date"])
    if "last_login" in update_dict:
        registry.set_last_login(account_id, update_dict["last_login"])

    return read_account_or_404(registry, account_id, account_response_dict)


@router.delete("/{account_id}", status_code=204)
def delete_account(account_id: str, registry: AccountRegistry = Depends(get_registry)):
    """Delete an account and all of its records."""
    if not registry.delete_account(account_id):
        raise HTTPException(status_code=404, detail="Account not found")
    logger.info("Deleted account %s via API", account_id)


@router.post("/{account_id}/select", response_model=AccountResponse)
def select_account(account_id: str, registry: AccountRegistry = Depends(get_registry)):
    """Make an account the current selection."""
    if registry.select_account(account_id) is None:
        raise HTTPException(status_code=404, detail="Account not found")
    return read_account_or_404(registry, account_id, account_response_dict)


@router.post("/{account_id}/login", response_model=AccountResponse)
def record_login(
    account_id: str,
    body: Optional[LoginRequest] = Body(default=None),
    registry: AccountRegistry = Depends(get_registry),
):
    """Record a login, restarting the five-day logout countdown."""
    get_account_or_404(registry, account_id)
    registry.record_login(account_id, body.at if body else None)
    return read_account_or_404(registry, account_id, account_response_dict)


@router.get("/{account_id}/records", response_model=list[RecordMonthResponse])
def list_records(account_id: str, registry: AccountRegistry = Depends(get_registry)):
    """Full history grouped by month, newest month first."""
    return read_account_or_404(
        registry,
        account_id,
        lambda account: [
            RecordMonthResponse(
                month=month,
                records=[DailyRecordResponse(**record_response_dict(r)) for r in records],
            )
            for month, records in DailyRecordStore.group_by_month(account.points_history)
        ],
    )


@router.get("/{account_id}/recent", response_model=list[DailyRecordResponse])
def recent_records(
    account_id: str,
    limit: int = Query(default=RECENT_RECORDS_LIMIT, ge=1, le=366),
    registry: AccountRegistry = Depends(get_registry),
):
    """Most recent records, newest first."""
    return read_account_or_404(
        registry,
        account_id,
        lambda account: [
            record_response_dict(r) for r in DailyRecordStore.recent_records(account, limit)
        ],
    )


@router.get("/{account_id}/records/{day}", response_model=DailyRecordResponse)
def get_record(account_id: str, day: date, registry: AccountRegistry = Depends(get_registry)):
    """The saved record for a day, or a synthesized stand-in flagged as such."""
    return read_account_or_404(
        registry,
        account_id,
        lambda account: record_response_dict(DailyRecordStore.get_or_synthesize(account, day)),
    )


@router.put("/{account_id}/records/{day}", response_model=DailyRecordResponse)
def save_record(
    account_id: str,
    day: date,
    body: DailyRecordInput,
    registry: AccountRegistry = Depends(get_registry),
):
    """Create or overwrite the record for a day; points are recalculated."""
    get_account_or_404(registry, account_id)
    try:
        record = registry.save_record(
            account_id,
            day,
            start_balance=body.start_balance,
            end_balance=body.end_balance,
            volume=body.volume,
            balance=body.balance if body.balance is not None else body.end_balance,
            profit=body.profit,
            deducted_points=body.deducted_points,
            bonus_points=body.bonus_points,
        )
    except RecordValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    if record is None:
        raise HTTPException(status_code=404, detail="Account not found")
    return record_response_dict(record)


@router.get("/{account_id}/scores", response_model=ScoreResponse)
def get_scores(
    account_id: str,
    as_of: Optional[date] = Query(default=None, description="UTC day (default today)"),
    registry: AccountRegistry = Depends(get_registry),
):
    """Rolling 15-day scores and P&L for one account."""
    today = as_of or utc_today()

    def scores(account) -> ScoreResponse:
        return ScoreResponse(
            account_id=account.id,
            as_of=today,
            today_points=operational_window_sum(account, today),
            tomorrow_points=forward_window_sum(account, today),
            today_pnl=today_pnl(account, today),
            lifetime_pnl=lifetime_pnl(account),
            lifetime_points=lifetime_points(account),
            no_volume_today=DailyRecordStore.has_no_volume(account, today),
            logout_deadline=logout_deadline(account),
            risk_elapsed_days=risk_elapsed_days(account, today),
        )

    return read_account_or_404(registry, account_id, scores)
