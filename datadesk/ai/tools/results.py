"""Tool results are JSON strings so they can go straight into a tool_result block."""

from __future__ import annotations

import json
from typing import Any


def to_result(payload: Any) -> str:
    return json.dumps(payload, default=str)


def error_result(error: str, details: str = "") -> str:
    return to_result({"error": error, "details": details})
