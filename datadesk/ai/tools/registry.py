"""
Tool registry class and dispatch logic.

This module contains the ToolRegistry class which holds references to the
analysis services and dispatches tool calls from the Anthropic API.
"""

from __future__ import annotations

import logging

from .results import error_result
from .schemas import TOOL_SCHEMAS

logger = logging.getLogger(__name__)


class ToolRegistry:
    """
    Holds references to the analysis services and dispatches tool calls
    from the Anthropic API.

    Services are injected at construction time; any of them may be None, in
    which case the matching tools report that they are unavailable.
    """

    def __init__(
        self,
        *,
        task_service=None,
        knowledge_search=None,
        warehouse=None,
        insight_provider=None,
    ) -> None:
        self._task_service = task_service
        self._knowledge_search = knowledge_search
        self._warehouse = warehouse
        self._insight_provider = insight_provider

    @property
    def schemas(self) -> list[dict]:
        """Return the list of Anthropic tool schemas."""
        return TOOL_SCHEMAS

    async def dispatch(self, tool_name: str, tool_input: dict) -> str:
        """
        Execute the named tool with the given input.
        Returns a JSON string suitable for feeding back as a tool_result block.
        """
        try:
            match tool_name:
                # Knowledge
                case "search_knowledge":
                    from .knowledge import exec_search_knowledge
                    return await exec_search_knowledge(self, tool_input)

                # Escalation
                case "create_analysis_task":
                    from .tasks import exec_create_analysis_task
                    return await exec_create_analysis_task(self, tool_input)

                # Warehouse
                case "query_database":
                    from .warehouse import exec_query_database
                    return await exec_query_database(self, tool_input)
                case "get_schema_info":
                    from .warehouse import exec_get_schema_info
                    return await exec_get_schema_info(self, tool_input)

                # Insights
                case "discover_insights":
                    from .insights import exec_discover_insights
                    return await exec_discover_insights(self, tool_input)

                case _:
                    return error_result(f"Unknown tool: {tool_name}")

        except Exception as exc:
            logger.error("Tool %s failed: %s", tool_name, exc, exc_info=True)
            return error_result(f"Tool {tool_name} encountered an error", str(exc))
