"""Tests for datadesk/analysis/insights.py: statistical insight discovery."""

import pytest
from pydantic import ValidationError

from datadesk.analysis.insights import StatisticalInsightProvider, discover_insights
from datadesk.models import Insight, InsightFocus


MONTHLY = [
    {"month": f"2024-{m:02d}", "revenue": 100_000 + 5_000 * m, "orders": 1_000 + 40 * m}
    for m in range(1, 13)
]


@pytest.fixture
def provider():
    return StatisticalInsightProvider()


def _types(insights):
    return [i.type for i in insights]


def test_upward_trend_detected(provider):
    insights = provider.discover(MONTHLY, InsightFocus(metrics=["revenue"], time_column="month"))

    trend = next(i for i in insights if i.type == "trend")
    assert trend.details["after"] > trend.details["before"]
    assert trend.details["change"] > 0
    assert trend.related_columns == ["revenue", "month"]
    assert trend.description.startswith("Upward trend in revenue")


def test_trend_uses_time_order_not_row_order(provider):
    shuffled = list(reversed(MONTHLY))
    insights = provider.discover(shuffled, InsightFocus(metrics=["revenue"], time_column="month"))
    trend = next(i for i in insights if i.type == "trend")
    assert trend.details["change"] > 0


def test_no_trend_without_time_column(provider):
    insights = provider.discover(MONTHLY, InsightFocus(metrics=["revenue"]))
    assert "trend" not in _types(insights)


def test_anomaly_on_latest_spike(provider):
    rows = [{"day": f"2024-03-{d:02d}", "cancellation_rate": 0.02} for d in range(1, 10)]
    rows[3]["cancellation_rate"] = 0.021
    rows.append({"day": "2024-03-10", "cancellation_rate": 0.08})

    insights = provider.discover(
        rows, InsightFocus(metrics=["cancellation_rate"], time_column="day")
    )

    anomaly = next(i for i in insights if i.type == "anomaly")
    assert anomaly.details["after"] == pytest.approx(0.08)
    assert anomaly.details["z_score"] > 3


def test_strong_positive_correlation(provider):
    insights = provider.discover(MONTHLY, InsightFocus(metrics=["revenue", "orders"]))

    corr = next(i for i in insights if i.type == "correlation")
    assert corr.details["direction"] == "positive"
    assert corr.details["strength"] == "strong"
    assert corr.details["coefficient"] == pytest.approx(1.0)


def test_constant_column_has_no_correlation(provider):
    rows = [{"a": i, "b": 5} for i in range(10)]
    insights = provider.discover(rows, InsightFocus(metrics=["a", "b"]))
    assert "correlation" not in _types(insights)


def test_skewed_distribution(provider):
    rows = [{"value": v} for v in [1, 1, 1, 1, 2, 2, 2, 3, 50, 90]]
    insights = provider.discover(rows, InsightFocus(metrics=["value"]))

    dist = next(i for i in insights if i.type == "distribution")
    assert dist.details["shape"] == "skewed"
    assert dist.details["median"] == 2


def test_group_comparison(provider):
    rows = [
        {"segment": "Enterprise", "order_value": 5200},
        {"segment": "Enterprise", "order_value": 5200},
        {"segment": "SMB", "order_value": 1800},
        {"segment": "SMB", "order_value": 1800},
        {"segment": "Individual", "order_value": 150},
    ]
    insights = provider.discover(
        rows, InsightFocus(metrics=["order_value"], dimensions=["segment"])
    )

    comparison = next(i for i in insights if i.type == "comparison")
    assert comparison.details["highest"] == "Enterprise"
    assert comparison.details["lowest"] == "Individual"
    assert comparison.details["difference"] == 5050


def test_non_numeric_values_ignored(provider):
    rows = [{"x": "n/a"}, {"x": None}, {"x": True}, {"x": "3"}, {"x": 4}, {"x": 5.5}]
    insights = provider.discover(rows, InsightFocus(metrics=["x"]))
    dist = next(i for i in insights if i.type == "distribution")
    assert dist.details["mean"] == pytest.approx((3 + 4 + 5.5) / 3)


class _FixedProvider:
    def __init__(self, insights):
        self._insights = insights

    def discover(self, data, focus):
        return list(self._insights)


def _insight(type, importance, confidence):
    return Insight(
        type=type,
        description=f"{type} insight",
        importance=importance,
        confidence=confidence,
        related_columns=["x"],
    )


FIXED = _FixedProvider([
    _insight("trend", 0.9, 0.85),
    _insight("correlation", 0.8, 0.92),
    _insight("anomaly", 0.95, 0.88),
    _insight("distribution", 0.75, 0.82),
    _insight("comparison", 0.99, 0.5),
])


def test_discover_filters_by_confidence_and_sorts_by_importance():
    result = discover_insights(FIXED, [], {"metrics": ["x"]})

    assert [i["type"] for i in result["insights"]] == [
        "anomaly", "trend", "correlation", "distribution",
    ]
    assert result["summary"] == "Discovered 4 significant insights in the data"


def test_discover_respects_max_insights():
    result = discover_insights(FIXED, [], {"metrics": ["x"]}, {"max_insights": 2})
    assert [i["type"] for i in result["insights"]] == ["anomaly", "trend"]


def test_discover_lower_confidence_threshold():
    result = discover_insights(FIXED, [], {"metrics": ["x"]}, {"min_confidence": 0.5})
    assert result["insights"][0]["type"] == "comparison"


def test_discover_filters_insight_types():
    result = discover_insights(
        FIXED, [], {"metrics": ["x"]}, {"insight_types": ["correlation", "distribution"]}
    )
    assert [i["type"] for i in result["insights"]] == ["correlation", "distribution"]


def test_discover_rejects_invalid_options():
    with pytest.raises(ValidationError):
        discover_insights(FIXED, [], {"metrics": ["x"]}, {"min_confidence": 2})


def test_discover_end_to_end(provider):
    result = discover_insights(
        provider, MONTHLY, {"metrics": ["revenue", "orders"], "time_column": "month"}
    )
    assert 1 <= len(result["insights"]) <= 5
    importances = [i["importance"] for i in result["insights"]]
    assert importances == sorted(importances, reverse=True)
    assert all(i["confidence"] >= 0.7 for i in result["insights"])


def test_trend_on_integer_time_column(provider):
    rows = [{"month": m, "revenue": 100 * m} for m in range(1, 13)]
    insights = provider.discover(rows, InsightFocus(metrics=["revenue"], time_column="month"))

    trend = next(i for i in insights if i.type == "trend")
    assert trend.details["before"] == pytest.approx(350.0)
    assert trend.details["after"] == pytest.approx(950.0)


def test_anomaly_on_integer_time_column(provider):
    rows = [{"day": d, "errors": 10} for d in range(1, 12)]
    rows[2]["errors"] = 11
    rows[-1]["errors"] = 90  # day 11 sorts before day 2 as text

    insights = provider.discover(rows, InsightFocus(metrics=["errors"], time_column="day"))

    anomaly = next(i for i in insights if i.type == "anomaly")
    assert anomaly.details["after"] == 90


def test_mixed_time_values_fall_back_to_text_order(provider):
    rows = [{"t": 1, "v": 1}, {"t": "2", "v": 2}, {"t": 3, "v": 3}, {"t": "4", "v": 4}]
    insights = provider.discover(rows, InsightFocus(metrics=["v"], time_column="t"))
    assert "trend" in _types(insights)


def test_discover_returns_one_recommendation_per_insight():
    result = discover_insights(FIXED, [], {"metrics": ["x"]}, {"min_confidence": 0.5})

    assert len(result["recommendations"]) == len(result["insights"]) == 5
    assert all(isinstance(r, str) and r for r in result["recommendations"])


def test_recommendation_follows_insight_type(provider):
    rows = [{"value": v} for v in [1, 1, 1, 1, 2, 2, 2, 3, 50, 90]]
    result = discover_insights(
        provider, rows, {"metrics": ["value"]}, {"insight_types": ["distribution"]}
    )
    assert result["recommendations"] == ["Report the median of value rather than the mean"]
