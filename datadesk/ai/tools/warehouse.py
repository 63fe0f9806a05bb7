"""Warehouse query and schema tool executors."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ...exceptions import QueryExecutionError
from .results import error_result, to_result

if TYPE_CHECKING:
    from .registry import ToolRegistry

logger = logging.getLogger(__name__)


async def exec_query_database(registry: ToolRegistry, inp: dict) -> str:
    """Run a read-only SQL query against the warehouse."""
    if registry._warehouse is None:
        return error_result("Warehouse not configured.", "Set ANALYSIS_DATABASE_URL to enable queries.")

    sql = (inp.get("query") or "").strip()
    if not sql:
        return error_result("Please provide a SQL query.")

    try:
        return to_result(await registry._warehouse.query(sql))
    except QueryExecutionError as e:
        return error_result("Query execution failed", str(e))


async def exec_get_schema_info(registry: ToolRegistry, inp: dict) -> str:
    """Describe the warehouse schema, or a single table."""
    if registry._warehouse is None:
        return error_result("Warehouse not configured.", "Set ANALYSIS_DATABASE_URL to enable queries.")

    table = (inp.get("table") or "").strip() or None
    try:
        return to_result(await registry._warehouse.schema_info(table))
    except QueryExecutionError as e:
        return error_result("Schema query failed", str(e))
