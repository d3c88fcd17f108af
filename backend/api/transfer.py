"""Import/export API endpoints (CSV and JSON)."""

import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from starlette.concurrency import run_in_threadpool

from api.helpers import get_registry, get_store, read_account_or_404
from schemas.account import ImportResultResponse, RestoreResponse
from services.account_registry import AccountRegistry
from services.account_store import AccountStore
from services.csv_import_service import CsvImportService
from services.export_service import ExportService
from utils.dates import utc_today

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/transfer", tags=["transfer"])


def content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback and an RFC 5987 UTF-8 name."""
    fallback = filename.encode("ascii", "ignore").decode().replace('"', "").replace("\\", "")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


def _download(content: str, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": content_disposition(filename)},
    )


async def _read_text(request: Request) -> str:
    raw = await request.body()
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=422, detail="Request body must be UTF-8 text")


@router.post("/csv", response_model=ImportResultResponse)
async def import_csv(request: Request, registry: AccountRegistry = Depends(get_registry)):
    """Import CSV rows sent as the raw request body.

    Rows are upserted one by one; bad rows are counted in ``errors`` and
    never fail the request. The import itself runs in the threadpool since
    it waits on the registry lock and commits to the database.
    """
    text = await _read_text(request)
    return await run_in_threadpool(CsvImportService.import_csv, registry, text)


@router.get("/csv")
def export_all_csv(registry: AccountRegistry = Depends(get_registry)):
    """Every account's history as one CSV file."""
    content = registry.read(ExportService.accounts_to_csv)
    return _download(content, "text/csv", f"alpha_points_{utc_today().isoformat()}.csv")


@router.get("/csv/{account_id}")
def export_account_csv(account_id: str, registry: AccountRegistry = Depends(get_registry)):
    """One account's history as CSV."""
    name, content = read_account_or_404(
        registry, account_id, lambda a: (a.name, ExportService.account_to_csv(a))
    )
    return _download(content, "text/csv", f"{name}_{utc_today().isoformat()}.csv")


@router.get("/json")
def export_all_json(registry: AccountRegistry = Depends(get_registry)):
    """Full backup of every account as JSON."""
    content = registry.read(ExportService.accounts_to_json)
    return _download(content, "application/json", f"alpha_points_{utc_today().isoformat()}.json")


@router.get("/json/{account_id}")
def export_account_json(account_id: str, registry: AccountRegistry = Depends(get_registry)):
    name, content = read_account_or_404(
        registry, account_id, lambda a: (a.name, ExportService.account_to_json(a))
    )
    return _download(content, "application/json", f"{name}_{utc_today().isoformat()}.json")


@router.post("/json", response_model=RestoreResponse)
async def restore_json(
    request: Request,
    registry: AccountRegistry = Depends(get_registry),
    store: AccountStore = Depends(get_store),
):
    """Replace every account with a JSON backup.

    An unreadable backup is rejected with 422 and nothing changes.
    """
    payload = await request.body()
    restored = await run_in_threadpool(ExportService.restore_json, registry, store, payload)
    if not restored:
        raise HTTPException(status_code=422, detail="Invalid account backup")
    return RestoreResponse(restored=True, accounts=registry.read(len))
