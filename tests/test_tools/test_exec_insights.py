"""Tests for datadesk.ai.tools.insights module."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from datadesk.ai.tools.insights import exec_discover_insights
from datadesk.analysis.insights import StatisticalInsightProvider
from datadesk.models import Insight


def make_registry(**kwargs) -> MagicMock:
    registry = MagicMock()
    registry._insight_provider = kwargs.get("insight_provider")
    return registry


def _insight(type_, importance, confidence):
    return Insight(
        type=type_,
        description=f"{type_} insight",
        importance=importance,
        confidence=confidence,
        related_columns=["revenue"],
    )


class TestExecDiscoverInsights:

    @pytest.mark.asyncio
    async def test_no_provider_returns_not_available(self):
        result = json.loads(await exec_discover_insights(make_registry(), {"data": []}))
        assert "not available" in result["error"].lower()

    @pytest.mark.asyncio
    async def test_data_must_be_list_of_objects(self):
        registry = make_registry(insight_provider=StatisticalInsightProvider())
        result = json.loads(await exec_discover_insights(
            registry, {"data": [1, 2, 3], "focus": {"metrics": ["x"]}}
        ))
        assert result["error"] == "Invalid insight request"

    @pytest.mark.asyncio
    async def test_focus_without_metrics_is_invalid(self):
        registry = make_registry(insight_provider=StatisticalInsightProvider())
        result = json.loads(await exec_discover_insights(registry, {"data": [], "focus": {}}))
        assert result["error"] == "Invalid insight request"

    @pytest.mark.asyncio
    async def test_options_filter_and_cap(self):
        provider = MagicMock()
        provider.discover = MagicMock(return_value=[
            _insight("trend", 0.2, 0.9),
            _insight("anomaly", 0.9, 0.9),
            _insight("comparison", 0.8, 0.4),
            _insight("distribution", 0.5, 0.95),
        ])
        registry = make_registry(insight_provider=provider)

        result = json.loads(await exec_discover_insights(registry, {
            "data": [{"revenue": 1}],
            "focus": {"metrics": ["revenue"]},
            "options": {"min_confidence": 0.5, "max_insights": 2},
        }))

        assert [i["type"] for i in result["insights"]] == ["anomaly", "distribution"]
        assert result["summary"] == "Discovered 2 significant insights in the data"
