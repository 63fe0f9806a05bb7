"""
Tool schemas for native Anthropic tool use (function calling).

Tools available:
  Knowledge
    search_knowledge      → look up previously completed analyses

  Escalation
    create_analysis_task  → hand an uncertain analysis to a human analyst

  Warehouse
    get_schema_info       → tables, columns and relationships
    query_database        → run a read-only SQL query

  Insights
    discover_insights     → patterns in a set of query results
"""

from __future__ import annotations

TOOL_SCHEMAS: list[dict] = [
    # ------------------------------------------------------------------ #
    # Knowledge                                                            #
    # ------------------------------------------------------------------ #
    {
        "name": "search_knowledge",
        "description": (
            "Search for existing analysis answers and insights. Always call this before "
            "writing new queries so a question that has already been answered is not "
            "analysed twice. Results are ordered newest first."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Search query or question to find relevant analyses (e.g. 'churn rate').",
                },
                "tags": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Optional tags to filter analyses by (e.g. ['customer retention']).",
                },
            },
            "required": ["query"],
        },
    },

    # ------------------------------------------------------------------ #
    # Escalation                                                           #
    # ------------------------------------------------------------------ #
    {
        "name": "create_analysis_task",
        "description": (
            "Create a task for human analysts when uncertain about data analysis results. "
            "Explain clearly why human analysis is needed and include all relevant data. "
            "Only the first email in assign_to is used for assignment."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "title": {
                    "type": "string",
                    "description": "Title of the analysis task.",
                },
                "content": {
                    "type": "string",
                    "description": "Detailed description of what needs to be analyzed.",
                },
                "context": {
                    "type": "object",
                    "properties": {
                        "query": {
                            "type": "string",
                            "description": "The original query that led to this task.",
                        },
                        "uncertainty": {
                            "type": "string",
                            "description": "Description of why human analysis is needed.",
                        },
                        "data": {
                            "type": "object",
                            "description": "Relevant data or query results.",
                        },
                        "suggested_approach": {
                            "type": "string",
                            "description": "Optional suggested approach for the analyst.",
                        },
                    },
                    "required": ["query", "uncertainty"],
                },
                "reference_urls": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Related URLs or documentation.",
                },
                "assign_to": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Email addresses of analysts to assign.",
                },
            },
            "required": ["title", "content", "context"],
        },
    },

    # ------------------------------------------------------------------ #
    # Warehouse                                                            #
    # ------------------------------------------------------------------ #
    {
        "name": "get_schema_info",
        "description": (
            "Get information about the database schema including tables, columns, and "
            "relationships. Use before writing queries to validate assumptions about the data."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "table": {
                    "type": "string",
                    "description": "Optional specific table name to get schema for.",
                },
            },
            "required": [],
        },
    },
    {
        "name": "query_database",
        "description": (
            "Execute SQL queries against the database and return results. Prefer aggregate "
            "queries; otherwise use a LIMIT clause. DROP, TRUNCATE and DELETE are refused "
            "and the connection is read-only, so writes fail."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "SQL query to execute.",
                },
            },
            "required": ["query"],
        },
    },

    # ------------------------------------------------------------------ #
    # Insights                                                             #
    # ------------------------------------------------------------------ #
    {
        "name": "discover_insights",
        "description": (
            "Automatically discover interesting patterns and insights in data: trends, "
            "anomalies, correlations, distributions and group comparisons."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "data": {
                    "type": "array",
                    "items": {"type": "object"},
                    "description": "Dataset to analyze (rows as objects).",
                },
                "focus": {
                    "type": "object",
                    "properties": {
                        "metrics": {
                            "type": "array",
                            "items": {"type": "string"},
                            "description": "Numeric columns to analyze.",
                        },
                        "dimensions": {
                            "type": "array",
                            "items": {"type": "string"},
                            "description": "Categorical columns to group by.",
                        },
                        "time_column": {
                            "type": "string",
                            "description": "Column containing timestamps.",
                        },
                    },
                    "required": ["metrics"],
                },
                "options": {
                    "type": "object",
                    "properties": {
                        "min_confidence": {"type": "number", "minimum": 0, "maximum": 1},
                        "max_insights": {"type": "integer", "minimum": 0},
                        "insight_types": {
                            "type": "array",
                            "items": {
                                "type": "string",
                                "enum": ["trend", "anomaly", "correlation", "distribution", "comparison"],
                            },
                        },
                    },
                },
            },
            "required": ["data", "focus"],
        },
    },
]
