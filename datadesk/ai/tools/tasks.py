"""Analysis task (human escalation) tool executors."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .results import error_result, to_result

if TYPE_CHECKING:
    from .registry import ToolRegistry

logger = logging.getLogger(__name__)


async def exec_create_analysis_task(registry: ToolRegistry, inp: dict) -> str:
    """Create a task for a human analyst. Failures come back as an error result, never raised."""
    if registry._task_service is None:
        return error_result("Task creation not available.")

    result = await registry._task_service.create_analysis_task(
        title=inp.get("title", ""),
        content=inp.get("content", ""),
        task_context=inp.get("context") or {},
        reference_urls=inp.get("reference_urls"),
        assign_to=inp.get("assign_to"),
    )
    if "error" in result:
        logger.warning("create_analysis_task failed: %s", result.get("details"))
    return to_result(result)
