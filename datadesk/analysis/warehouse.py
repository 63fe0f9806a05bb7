"""
Read access to the analysis warehouse.

The analyst agent writes its own SQL. Statements are screened for destructive
operations before they reach the database, and the connection itself is
opened read-only, so writes that get past the screen still fail. Result sets
are capped to keep tool results small.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import aiosqlite

from ..exceptions import ConfigurationError, DestructiveQueryError, QueryExecutionError

logger = logging.getLogger(__name__)

# Checked against the start of the statement, after leading comments
_DESTRUCTIVE_PATTERNS = [
    re.compile(r"^drop\s+", re.IGNORECASE),
    re.compile(r"^truncate\s+", re.IGNORECASE),
    re.compile(r"^delete\s+from\s+", re.IGNORECASE),
    re.compile(r"^alter\s+table.*drop\s+", re.IGNORECASE | re.DOTALL),
]

_LEADING_COMMENT = re.compile(r"^\s*(?:--[^\n]*(?:\n|$)|/\*.*?\*/)", re.DOTALL)


def _strip_leading_comments(sql: str) -> str:
    while True:
        m = _LEADING_COMMENT.match(sql)
        if not m:
            return sql.strip()
        sql = sql[m.end():]


def is_destructive(sql: str) -> bool:
    normalised = _strip_leading_comments(sql).lower()
    return any(p.search(normalised) for p in _DESTRUCTIVE_PATTERNS)


def _quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


class Warehouse:
    """Async SQLite connection to the warehouse the analyst explores."""

    def __init__(self, db_path: str, max_rows: int = 500) -> None:
        self.db_path = db_path
        self.max_rows = max_rows
        self._conn: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Open the warehouse read-only. The file must already exist."""
        uri = Path(self.db_path).resolve().as_uri() + "?mode=ro"
        try:
            self._conn = await aiosqlite.connect(uri, uri=True)
        except Exception as e:
            raise ConfigurationError(f"Cannot open warehouse {self.db_path} read-only: {e}") from e
        self._conn.row_factory = aiosqlite.Row
        logger.info("Warehouse connected: %s", self.db_path)

    async def close(self) -> None:
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _require_conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Warehouse not connected, call connect() first")
        return self._conn

    async def query(self, sql: str) -> dict[str, Any]:
        """Execute one statement and return rows, row count and column names."""
        if is_destructive(sql):
            logger.warning("Blocked destructive query: %s", sql)
            raise DestructiveQueryError("Destructive operations are not allowed")

        conn = self._require_conn()
        logger.info("Executing query: %s", sql)
        try:
            cursor = await conn.execute(sql)
            rows = await cursor.fetchmany(self.max_rows + 1)
            fields = [{"name": d[0]} for d in cursor.description or []]
            await cursor.close()
        except Exception as e:
            if conn.in_transaction:
                await conn.rollback()
            raise QueryExecutionError(f"Query execution failed: {e}") from e

        truncated = len(rows) > self.max_rows
        rows = rows[: self.max_rows]
        result: dict[str, Any] = {
            "rows": [dict(r) for r in rows],
            "row_count": len(rows),
            "fields": fields,
        }
        if truncated:
            result["truncated"] = True
            result["message"] = (
                f"Result truncated to {self.max_rows} rows; add an aggregate or LIMIT clause."
            )
        return result

    async def schema_info(self, table: str | None = None) -> dict[str, Any]:
        """Describe one table in detail, or list every table with its columns."""
        conn = self._require_conn()
        try:
            if table:
                return {
                    "schema": await self._describe_table(conn, table),
                    "message": f"Schema information for table: {table}",
                }

            cursor = await conn.execute(
                "SELECT name FROM sqlite_master "
                "WHERE type = 'table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
            )
            tables = [r["name"] for r in await cursor.fetchall()]
            overview = []
            for name in tables:
                cursor = await conn.execute(f"PRAGMA table_info({_quote_identifier(name)})")
                columns = [f"{c['name']} {c['type']}".strip() for c in await cursor.fetchall()]
                overview.append({"table_name": name, "columns": columns})
            return {"schema": overview, "message": "Overview of all tables in the database"}
        except Exception as e:
            raise QueryExecutionError(f"Schema query failed: {e}") from e

    async def _describe_table(
        self, conn: aiosqlite.Connection, table: str
    ) -> list[dict[str, Any]]:
        ident = _quote_identifier(table)
        cursor = await conn.execute(f"PRAGMA foreign_key_list({ident})")
        foreign = {
            fk["from"]: (fk["table"], fk["to"]) for fk in await cursor.fetchall()
        }

        cursor = await conn.execute(f"PRAGMA table_info({ident})")
        columns = []
        for col in await cursor.fetchall():
            if col["pk"]:
                constraint = "PRIMARY KEY"
            elif col["name"] in foreign:
                constraint = "FOREIGN KEY"
            else:
                constraint = None
            foreign_table, foreign_column = foreign.get(col["name"], (None, None))
            columns.append({
                "table_name": table,
                "column_name": col["name"],
                "data_type": col["type"],
                "column_default": col["dflt_value"],
                "is_nullable": "NO" if col["notnull"] or col["pk"] else "YES",
                "constraint_type": constraint,
                "foreign_table_name": foreign_table,
                "foreign_column_name": foreign_column,
            })
        return columns
