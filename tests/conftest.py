"""Shared fixtures for datadesk tests."""

import pytest
import pytest_asyncio

from datadesk import config
from datadesk.store.database import DatabaseManager
from datadesk.store.tasks import TaskStore


@pytest.fixture(autouse=True)
def isolate_env(monkeypatch, tmp_path):
    """Prevent tests from reading real .env or touching real data."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'datadesk.db'}")
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    monkeypatch.setenv("ANTHROPIC_API_KEY", "test_key")
    monkeypatch.delenv("ANALYSIS_DATABASE_URL", raising=False)
    monkeypatch.delenv("KNOWLEDGE_CORPUS_PATH", raising=False)
    config.reset_settings()
    yield
    config.reset_settings()


@pytest_asyncio.fixture
async def db(tmp_path):
    """Fresh task database per test (temp file)."""
    manager = DatabaseManager(db_path=str(tmp_path / "tasks.db"))
    await manager.init()
    yield manager
    await manager.close()


@pytest_asyncio.fixture
async def task_store(db):
    return TaskStore(db)
