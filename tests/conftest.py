"""
Shared fixtures: every test gets its own SQLite database file.
"""

import asyncio
import os

# Must be set before the application modules build their engine
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from database.connection import create_tables
from main import app
from services.claim_lifecycle import ClaimLifecycleService
from services.document_store import DocumentStore, get_document_store


def _make_engine(tmp_path):
    # NullPool: no connection outlives the event loop that opened it
    return create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'claimledger.db'}", poolclass=NullPool
    )


def _make_store(engine) -> DocumentStore:
    return DocumentStore(
        async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    )


@pytest.fixture
async def store(tmp_path):
    engine = _make_engine(tmp_path)
    await create_tables(bind=engine)
    yield _make_store(engine)
    await engine.dispose()


@pytest.fixture
def claim_service(store):
    return ClaimLifecycleService(store)


@pytest.fixture
def invoice_service(store):
    return ClaimLifecycleService(
        store, collection="invoices", id_prefix="INV", entity_name="Invoice"
    )


@pytest.fixture
def client(tmp_path):
    engine = _make_engine(tmp_path)
    asyncio.run(create_tables(bind=engine))
    test_store = _make_store(engine)

    app.dependency_overrides[get_document_store] = lambda: test_store
    # Not used as a context manager: lifespan would touch the default engine
    test_client = TestClient(app, raise_server_exceptions=False)
    try:
        yield test_client
    finally:
        app.dependency_overrides.clear()
        asyncio.run(engine.dispose())
