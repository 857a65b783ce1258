"""Pytest fixtures shared by the test modules."""

import pytest

from fakes import (
    FakeAssetDescriptionStore,
    FakeAssetStore,
    FakeBlockStore,
    FakeDatabase,
    FakeJobQueue,
    FakePool,
    FakeTransactionStore
)

API_KEY = "test-api-key"


@pytest.fixture
def db():
    """Fresh in-memory database."""
    return FakeDatabase()


@pytest.fixture
def pool(db):
    return FakePool(db)


@pytest.fixture
def transaction_store(db):
    return FakeTransactionStore(db)


@pytest.fixture
def asset_store(db):
    return FakeAssetStore(db)


@pytest.fixture
def asset_description_store(db):
    return FakeAssetDescriptionStore(db)


@pytest.fixture
def block_store(db):
    return FakeBlockStore(db)


@pytest.fixture
def api_settings(monkeypatch):
    """Pin the API key the auth dependency checks against."""
    monkeypatch.setattr('auth.get_settings', lambda: {'api_key': API_KEY})
    return {'api_key': API_KEY}


@pytest.fixture
def job_queue():
    return FakeJobQueue()


@pytest.fixture
def client(
    api_settings,
    pool,
    block_store,
    transaction_store,
    asset_store,
    asset_description_store,
    job_queue
):
    """FastAPI TestClient with every manager swapped for an in-memory fake."""
    from fastapi.testclient import TestClient

    from api import app
    from api import dependencies
    from blocks_loader import BlocksTransactionsLoader

    loader = BlocksTransactionsLoader(
        pool,
        blocks=block_store,
        transactions=transaction_store,
        jobs=job_queue
    )

    app.dependency_overrides[dependencies.get_block_manager] = lambda: block_store
    app.dependency_overrides[dependencies.get_transaction_manager] = lambda: transaction_store
    app.dependency_overrides[dependencies.get_asset_manager] = lambda: asset_store
    app.dependency_overrides[dependencies.get_asset_description_manager] = lambda: asset_description_store
    app.dependency_overrides[dependencies.get_blocks_loader] = lambda: loader

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {API_KEY}"}
