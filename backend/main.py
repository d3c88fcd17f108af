"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import accounts, dashboard, points, transfer
from config import settings
from database import get_session_local, init_db
from logging_config import setup_logging
from services.account_registry import AccountRegistry
from services.account_store import AccountStore

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and load the stored accounts on startup."""
    init_db()
    store = AccountStore(get_session_local())
    app.state.store = store
    app.state.registry = AccountRegistry.from_store(store)
    logger.info(
        "Loaded %d account(s) from %r",
        len(app.state.registry.list_accounts()),
        store.storage_key,
    )
    yield


app = FastAPI(
    title="Alpha Points Tracker",
    description="Daily balance, volume and rolling 15-day points per trading account",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS configuration for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(accounts.router)
app.include_router(dashboard.router)
app.include_router(points.router)
app.include_router(transfer.router)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}
