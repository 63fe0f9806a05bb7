"""Knowledge lookup tool executors."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .results import error_result, to_result

if TYPE_CHECKING:
    from .registry import ToolRegistry

logger = logging.getLogger(__name__)


async def exec_search_knowledge(registry: ToolRegistry, inp: dict) -> str:
    """Search previously completed analyses."""
    if registry._knowledge_search is None:
        return error_result("Knowledge search not available.")

    query = inp.get("query")
    if not isinstance(query, str):
        return error_result("Invalid search request", "query must be a string")
    tags = inp.get("tags") or []

    return to_result(registry._knowledge_search.search(query, tags))
