"""
Tool registry package for native Anthropic tool use (function calling).

The package is organised into domain-specific modules:
- schemas.py: Tool schema definitions (Anthropic ToolParam format)
- registry.py: ToolRegistry class and dispatch logic
- results.py: JSON result helpers
- knowledge.py: Prior-analysis lookup executors
- tasks.py: Human escalation executors
- warehouse.py: SQL query and schema executors
- insights.py: Insight discovery executors

Re-exports:
    ToolRegistry: Main class for dispatching tool calls
    TOOL_SCHEMAS: List of Anthropic tool schemas
"""

from .registry import ToolRegistry
from .schemas import TOOL_SCHEMAS

__all__ = ["ToolRegistry", "TOOL_SCHEMAS"]
