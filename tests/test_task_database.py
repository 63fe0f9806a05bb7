"""Tests for datadesk/store/database.py: schema init, pragmas, transactions."""

import asyncio

import pytest

from datadesk.store.database import DatabaseManager


@pytest.mark.asyncio
async def test_init_creates_tables(db):
    async with db.get_connection() as conn:
        rows = await conn.execute_fetchall(
            "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
        )
        names = {r["name"] for r in rows}

    assert {"users", "questions", "question_assignments"} <= names


@pytest.mark.asyncio
async def test_foreign_keys_enabled(db):
    async with db.get_connection() as conn:
        row = (await conn.execute_fetchall("PRAGMA foreign_keys"))[0]
    assert row[0] == 1


@pytest.mark.asyncio
async def test_wal_mode_enabled(db):
    async with db.get_connection() as conn:
        row = (await conn.execute_fetchall("PRAGMA journal_mode"))[0]
    assert row[0] == "wal"


@pytest.mark.asyncio
async def test_init_is_idempotent(tmp_path):
    path = str(tmp_path / "twice.db")
    for _ in range(2):
        manager = DatabaseManager(db_path=path)
        await manager.init()
        await manager.close()


@pytest.mark.asyncio
async def test_get_connection_before_init_raises(tmp_path):
    manager = DatabaseManager(db_path=str(tmp_path / "never.db"))
    with pytest.raises(RuntimeError, match="not initialised"):
        async with manager.get_connection():
            pass


@pytest.mark.asyncio
async def test_transaction_commits_on_success(db):
    async with db.transaction() as conn:
        await conn.execute(
            "INSERT INTO users (name, email) VALUES (?, ?)", ("Ada", "ada@example.com")
        )
    async with db.get_connection() as conn:
        rows = await conn.execute_fetchall("SELECT email FROM users")
    assert [r["email"] for r in rows] == ["ada@example.com"]


@pytest.mark.asyncio
async def test_transaction_rolls_back_on_error(db):
    with pytest.raises(ValueError):
        async with db.transaction() as conn:
            await conn.execute(
                "INSERT INTO users (name, email) VALUES (?, ?)", ("Ada", "ada@example.com")
            )
            raise ValueError("boom")
    async with db.get_connection() as conn:
        rows = await conn.execute_fetchall("SELECT COUNT(*) FROM users")
    assert rows[0][0] == 0


@pytest.mark.asyncio
async def test_nested_transaction_joins_outer(db):
    with pytest.raises(ValueError):
        async with db.transaction():
            async with db.transaction() as conn:
                await conn.execute(
                    "INSERT INTO users (name, email) VALUES (?, ?)", ("Ada", "ada@example.com")
                )
            # inner block exited cleanly but must not have committed
            raise ValueError("outer fails")
    async with db.get_connection() as conn:
        rows = await conn.execute_fetchall("SELECT COUNT(*) FROM users")
    assert rows[0][0] == 0


@pytest.mark.asyncio
async def test_concurrent_transactions_are_serialised(db):
    order: list[str] = []

    async def writer(tag: str) -> None:
        async with db.transaction() as conn:
            order.append(f"{tag}-start")
            await conn.execute(
                "INSERT INTO users (name, email) VALUES (?, ?)", (tag, f"{tag}@example.com")
            )
            await asyncio.sleep(0.01)
            order.append(f"{tag}-end")

    await asyncio.gather(writer("a"), writer("b"))
    assert order in (
        ["a-start", "a-end", "b-start", "b-end"],
        ["b-start", "b-end", "a-start", "a-end"],
    )
