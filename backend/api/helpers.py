"""Shared API helpers for route handlers.

Dependency providers and response builders used across multiple route files.
"""

from datetime import date
from typing import Callable, TypeVar

from fastapi import HTTPException, Request

from models import Account, DailyRecord, SynthesizedRecord
from services.account_registry import AccountRegistry
from services.account_store import AccountStore
from services.window_aggregator import logout_deadline, risk_elapsed_days

T = TypeVar("T")


def get_registry(request: Request) -> AccountRegistry:
    """Return the registry created at startup."""
    return request.app.state.registry


def get_store(request: Request) -> AccountStore:
    """Return the account store created at startup."""
    return request.app.state.store


def get_account_or_404(
    registry: AccountRegistry, account_id: str, detail: str = "Account not found"
) -> Account:
    """Fetch an account by id or raise 404.

    Args:
        registry: The running account registry.
        account_id: Account id.
        detail: Error message for the 404 response.

    Returns:
        The account.

    Raises:
        HTTPException: 404 if the account doesn't exist.
    """
    account = registry.get_account(account_id)
    if account is None:
        raise HTTPException(status_code=404, detail=detail)
    return account


def read_account_or_404(
    registry: AccountRegistry,
    account_id: str,
    reader: Callable[[Account], T],
    detail: str = "Account not found",
) -> T:
    """Run ``reader`` on an account under the registry lock, or raise 404."""
    result = registry.read_account(account_id, reader)
    if result is None:
        raise HTTPException(status_code=404, detail=detail)
    return result


def account_response_dict(account: Account, today: date | None = None) -> dict:
    """Build an AccountResponse-compatible dict from an Account.

    Args:
        account: The account.
        today: UTC day used for the risk-elapsed count (defaults to today).

    Returns:
        Dict matching the AccountResponse schema.
    """
    return {
        "id": account.id,
        "name": account.name,
        "balance": account.balance,
        "last_updated": account.last_updated,
        "created_at": account.created_at,
        "last_login": account.last_login,
        "risk_date": account.risk_date,
        "record_count": len(account.points_history),
        "logout_deadline": logout_deadline(account),
        "risk_elapsed_days": risk_elapsed_days(account, today),
    }


def record_response_dict(record: DailyRecord) -> dict:
    """Build a DailyRecordResponse-compatible dict from a DailyRecord."""
    synthesized = isinstance(record, SynthesizedRecord)
    return {
        "date": record.date,
        "balance": record.balance,
        "start_balance": record.start_balance,
        "end_balance": record.end_balance,
        "volume": record.volume,
        "balance_points": record.balance_points,
        "volume_points": record.volume_points,
        "total_points": record.total_points,
        "profit": record.profit,
        "deducted_points": record.deducted_points,
        "bonus_points": record.bonus_points,
        "modified": record.modified,
        "pnl": record.pnl,
        "synthesized": synthesized,
        "carried_from": record.carried_from if synthesized else None,
    }
