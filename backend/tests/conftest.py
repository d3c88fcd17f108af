"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, init_db
from main import app
from api.helpers import get_registry, get_store
from services.account_registry import AccountRegistry
from services.account_store import AccountStore
# Pytest fixtures - imported to make them available to tests
from tests.fixtures import account, account_with_history  # noqa: F401


@pytest.fixture(name="engine")
def engine_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(name="session_factory")
def session_factory_fixture(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(name="db")
def db_fixture(session_factory):
    """A session on the test database, for inspecting stored rows."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(name="store")
def store_fixture(session_factory):
    """An account store on the test database with the default keys."""
    return AccountStore(session_factory)


@pytest.fixture(name="registry")
def registry_fixture(store):
    """An empty registry that persists to the test database."""
    return AccountRegistry.from_store(store)


@pytest.fixture(name="client")
def client_fixture(registry, store):
    """Create a test client backed by the test registry."""
    app.dependency_overrides[get_registry] = lambda: registry
    app.dependency_overrides[get_store] = lambda: store
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
