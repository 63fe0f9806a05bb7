"""
SQLite database manager for datadesk.

Initialises the task schema (users, questions, question_assignments) with
foreign keys enforced, so uniqueness, reference existence and cascade
deletes are guaranteed by the storage layer itself.
Uses WAL mode for concurrent read safety with single-writer asyncio pattern.
"""

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import AsyncIterator

import aiosqlite

from ..config import settings

logger = logging.getLogger(__name__)

# Set while the current task holds the write transaction
_in_transaction: ContextVar[bool] = ContextVar("datadesk_in_transaction", default=False)


_DDL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;
PRAGMA foreign_keys=ON;

CREATE TABLE IF NOT EXISTS users (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    name         TEXT NOT NULL,
    email        TEXT NOT NULL UNIQUE,
    created_at   TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS questions (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    title          TEXT NOT NULL,
    content        TEXT NOT NULL,
    status         TEXT NOT NULL DEFAULT 'todo'
                   CHECK (status IN ('todo', 'progress', 'doing', 'done', 'cancelled')),
    reference_urls TEXT NOT NULL DEFAULT '[]',
    created_at     TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at     TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_questions_status ON questions(status);

CREATE TABLE IF NOT EXISTS question_assignments (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    question_id  INTEGER NOT NULL REFERENCES questions(id) ON DELETE CASCADE,
    user_id      INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    assigned_at  TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_assignments_question ON question_assignments(question_id);
CREATE INDEX IF NOT EXISTS idx_assignments_user ON question_assignments(user_id);
"""


class DatabaseManager:
    """Manages the SQLite connection and schema for datadesk."""

    def __init__(self, db_path: str | None = None) -> None:
        self.db_path = db_path or settings.db_path
        self._conn: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()

    async def init(self) -> None:
        """Open connection, run DDL."""
        if self.db_path != ":memory:":
            os.makedirs(os.path.dirname(self.db_path) or ".", exist_ok=True)

        self._conn = await aiosqlite.connect(self.db_path)
        self._conn.row_factory = aiosqlite.Row

        await self._conn.executescript(_DDL)
        await self._conn.commit()
        logger.info("Database initialised: %s", self.db_path)

    async def close(self) -> None:
        if self._conn:
            await self._conn.close()
            self._conn = None

    @asynccontextmanager
    async def get_connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield the shared connection. Callers must not close it."""
        if self._conn is None:
            raise RuntimeError("DatabaseManager not initialised, call init() first")
        yield self._conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Run the enclosed statements as one unit: commit on success, roll back
        on any exception.

        Nested use from the same task joins the outer transaction and leaves
        commit/rollback to it. Other tasks wait for the outer one to finish.
        """
        if _in_transaction.get():
            async with self.get_connection() as conn:
                yield conn
            return

        async with self._write_lock:
            token = _in_transaction.set(True)
            try:
                async with self.get_connection() as conn:
                    try:
                        yield conn
                    except BaseException:
                        await conn.rollback()
                        raise
                    else:
                        await conn.commit()
            finally:
                _in_transaction.reset(token)
