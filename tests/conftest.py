"""
Test configuration and fixtures for the URL shortener.
Every test gets its own SQLite file, so tests are isolated from each other.
"""

import pytest
from fastapi.testclient import TestClient

from main import create_app
from shortlink_app.config import Settings
from shortlink_app.database.connection import ConnectionPool
from shortlink_app.store.mapping_store import MappingStore


@pytest.fixture(scope="function")
def settings(tmp_path):
    """Settings pointing at a throwaway database, with caching disabled."""
    return Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        db_pool_size=5,
        db_pool_timeout=10,
        cache_backend="null",
        store_retry_backoff=0,
        log_level="WARNING",
    )


@pytest.fixture(scope="function")
def pool(settings):
    """Connection pool with the schema created."""
    pool = ConnectionPool(settings)
    pool.create_schema()
    try:
        yield pool
    finally:
        pool.dispose()


@pytest.fixture(scope="function")
def store(pool):
    return MappingStore(pool)


@pytest.fixture(scope="function")
def app(settings):
    return create_app(settings)


@pytest.fixture(scope="function")
def client(app):
    """
    Test client with the application lifespan running.
    This is the main fixture that API tests use.
    """
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(scope="function")
def app_store(client):
    """The store the running app writes to (for checking counters)."""
    return client.app.state.store
