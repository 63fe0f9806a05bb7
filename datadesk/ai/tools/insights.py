"""Insight discovery tool executors."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from ...analysis.insights import discover_insights
from .results import error_result, to_result

if TYPE_CHECKING:
    from .registry import ToolRegistry

logger = logging.getLogger(__name__)


async def exec_discover_insights(registry: ToolRegistry, inp: dict) -> str:
    """Find patterns in a dataset the agent already fetched."""
    if registry._insight_provider is None:
        return error_result("Insight discovery not available.")

    data = inp.get("data")
    if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
        return error_result("Invalid insight request", "data must be a list of objects")

    try:
        result = discover_insights(
            registry._insight_provider,
            data,
            inp.get("focus") or {},
            inp.get("options"),
        )
    except ValidationError as e:
        return error_result("Invalid insight request", str(e))
    return to_result(result)
