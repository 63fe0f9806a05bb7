"""
TaskStore: users, analysis questions and their assignments.

Every write runs inside DatabaseManager.transaction(), so callers can group
several writes into one atomic unit by opening an outer transaction:

    async with store.transaction():
        question = await store.insert_question(...)
        await store.insert_assignment(question.id, user.id)

Integrity errors from SQLite are re-raised as ConstraintViolation.
"""

import json
import logging
import sqlite3
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator

import aiosqlite

from ..exceptions import ConstraintViolation
from ..models import QUESTION_STATUSES, Assignment, Question, User
from .database import DatabaseManager

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _question_from_row(row: aiosqlite.Row) -> Question:
    data = dict(row)
    data["reference_urls"] = json.loads(data.get("reference_urls") or "[]")
    return Question(**data)


class TaskStore:
    """Persistent store for users, questions and question assignments."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        async with self._db.transaction() as conn:
            yield conn

    @asynccontextmanager
    async def _write(self, action: str) -> AsyncIterator[aiosqlite.Connection]:
        try:
            async with self._db.transaction() as conn:
                yield conn
        except sqlite3.IntegrityError as e:
            logger.warning("Constraint violation while trying to %s: %s", action, e)
            raise ConstraintViolation(f"Cannot {action}: {e}") from e

    # ------------------------------------------------------------------ users

    async def create_user(self, name: str, email: str) -> User:
        """Create an analyst account. Emails are unique."""
        now = _now()
        async with self._write("create user") as conn:
            cursor = await conn.execute(
                "INSERT INTO users (name, email, created_at) VALUES (?, ?, ?)",
                (name, email, now),
            )
            user_id = cursor.lastrowid
        logger.info("Created user %d <%s>", user_id, email)
        return User(id=user_id, name=name, email=email, created_at=now)

    async def find_users_by_email(self, email: str) -> list[User]:
        """Return every user with this exact email (zero or one, given the unique index)."""
        async with self._db.get_connection() as conn:
            cursor = await conn.execute(
                "SELECT id, name, email, created_at FROM users WHERE email = ? ORDER BY id",
                (email,),
            )
            rows = await cursor.fetchall()
        return [User(**dict(r)) for r in rows]

    async def delete_user(self, user_id: int) -> bool:
        """Delete a user; their assignments go with them. Returns True if deleted."""
        async with self._write("delete user") as conn:
            cursor = await conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
            return cursor.rowcount > 0

    # -------------------------------------------------------------- questions

    async def insert_question(
        self,
        title: str,
        content: str,
        status: str = "todo",
        reference_urls: list[str] | None = None,
    ) -> Question:
        """Insert a new question and return it with its assigned ID."""
        if status not in QUESTION_STATUSES:
            raise ConstraintViolation(
                f"Invalid status: {status}. Must be one of {', '.join(QUESTION_STATUSES)}"
            )
        urls = list(reference_urls or [])
        now = _now()
        async with self._write("insert question") as conn:
            cursor = await conn.execute(
                """
                INSERT INTO questions (title, content, status, reference_urls, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (title, content, status, json.dumps(urls), now, now),
            )
            question_id = cursor.lastrowid
        logger.info("Created question %d: %s", question_id, title)
        return Question(
            id=question_id,
            title=title,
            content=content,
            status=status,
            reference_urls=urls,
            created_at=now,
            updated_at=now,
        )

    async def get_question(self, question_id: int) -> Question | None:
        async with self._db.get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT id, title, content, status, reference_urls, created_at, updated_at
                FROM questions WHERE id = ?
                """,
                (question_id,),
            )
            row = await cursor.fetchone()
        return _question_from_row(row) if row else None

    async def list_questions(self, status: str | None = None) -> list[Question]:
        """List questions, newest first, optionally filtered by status."""
        sql = (
            "SELECT id, title, content, status, reference_urls, created_at, updated_at "
            "FROM questions"
        )
        params: tuple[Any, ...] = ()
        if status:
            sql += " WHERE status = ?"
            params = (status,)
        sql += " ORDER BY id DESC"
        async with self._db.get_connection() as conn:
            cursor = await conn.execute(sql, params)
            rows = await cursor.fetchall()
        return [_question_from_row(r) for r in rows]

    async def delete_question(self, question_id: int) -> bool:
        """Delete a question; its assignments go with it. Returns True if deleted."""
        async with self._write("delete question") as conn:
            cursor = await conn.execute("DELETE FROM questions WHERE id = ?", (question_id,))
            return cursor.rowcount > 0

    # ------------------------------------------------------------ assignments

    async def insert_assignment(self, question_id: int, user_id: int) -> Assignment:
        """Link a question to the analyst responsible for it."""
        now = _now()
        async with self._write("insert assignment") as conn:
            cursor = await conn.execute(
                """
                INSERT INTO question_assignments (question_id, user_id, assigned_at)
                VALUES (?, ?, ?)
                """,
                (question_id, user_id, now),
            )
            assignment_id = cursor.lastrowid
        logger.info("Assigned question %d to user %d", question_id, user_id)
        return Assignment(
            id=assignment_id, question_id=question_id, user_id=user_id, assigned_at=now
        )

    async def list_assignments(
        self,
        question_id: int | None = None,
        user_id: int | None = None,
    ) -> list[Assignment]:
        clauses = []
        params: list[Any] = []
        if question_id is not None:
            clauses.append("question_id = ?")
            params.append(question_id)
        if user_id is not None:
            clauses.append("user_id = ?")
            params.append(user_id)
        sql = "SELECT id, question_id, user_id, assigned_at FROM question_assignments"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY id"
        async with self._db.get_connection() as conn:
            cursor = await conn.execute(sql, tuple(params))
            rows = await cursor.fetchall()
        return [Assignment(**dict(r)) for r in rows]
