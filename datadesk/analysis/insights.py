"""
Insight discovery over tabular query results.

Given rows (a list of dicts) and a focus (metric columns, optional dimension
columns and time column), a provider proposes insights. Each insight carries
an importance and a confidence in [0, 1]; discover_insights() keeps the
confident ones, most important first.

StatisticalInsightProvider uses plain descriptive statistics. Confidence is a
function of sample size only: n / (n + 3).
"""

from __future__ import annotations

import logging
import statistics
from collections import defaultdict
from itertools import combinations
from typing import Any, Iterable, Mapping, Protocol, Sequence

from ..models import Insight, InsightFocus, InsightOptions

logger = logging.getLogger(__name__)

_MIN_TREND_CHANGE = 0.05
_MIN_CORRELATION = 0.3
_ANOMALY_Z = 3.0
_SKEW_THRESHOLD = 0.5


class InsightProvider(Protocol):
    def discover(self, data: Sequence[Mapping[str, Any]], focus: InsightFocus) -> list[Insight]: ...


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _numbers(rows: Iterable[Mapping[str, Any]], column: str) -> list[float]:
    values = (_as_number(r.get(column)) for r in rows)
    return [v for v in values if v is not None]


def _confidence(n: int) -> float:
    return round(n / (n + 3), 3) if n > 0 else 0.0


def _relative_change(before: float, after: float) -> float | None:
    if before == 0:
        return None
    return (after - before) / abs(before)


def _order_by(rows: Sequence[Mapping[str, Any]], column: str) -> list[Mapping[str, Any]]:
    """Rows with a value in column, in the column's natural order (str order if types are mixed)."""
    present = [r for r in rows if r.get(column) is not None]
    try:
        return sorted(present, key=lambda r: r[column])
    except TypeError:
        return sorted(present, key=lambda r: str(r[column]))


class StatisticalInsightProvider:
    """Trend, anomaly, correlation, distribution and comparison insights."""

    def discover(self, data: Sequence[Mapping[str, Any]], focus: InsightFocus) -> list[Insight]:
        insights: list[Insight] = []
        if focus.time_column:
            ordered = _order_by(data, focus.time_column)
            for metric in focus.metrics:
                series = _numbers(ordered, metric)
                insights.extend(self._trend(metric, focus.time_column, series))
                insights.extend(self._anomaly(metric, focus.time_column, series))
        for a, b in combinations(focus.metrics, 2):
            insights.extend(self._correlation(data, a, b))
        for metric in focus.metrics:
            insights.extend(self._distribution(metric, _numbers(data, metric)))
        for dimension in focus.dimensions:
            for metric in focus.metrics:
                insights.extend(self._comparison(data, dimension, metric))
        return insights

    def _trend(self, metric: str, time_column: str, series: list[float]) -> list[Insight]:
        if len(series) < 4:
            return []
        half = len(series) // 2
        before = statistics.fmean(series[:half])
        after = statistics.fmean(series[-half:])
        change = _relative_change(before, after)
        if change is None or abs(change) < _MIN_TREND_CHANGE:
            return []
        direction = "upward" if change > 0 else "downward"
        return [Insight(
            type="trend",
            description=f"{direction.capitalize()} trend in {metric} over {time_column} ({change:+.1%})",
            importance=round(min(1.0, abs(change)), 3),
            confidence=_confidence(len(series)),
            related_columns=[metric, time_column],
            details={"before": before, "after": after, "change": change},
        )]

    def _anomaly(self, metric: str, time_column: str, series: list[float]) -> list[Insight]:
        if len(series) < 5:
            return []
        history, latest = series[:-1], series[-1]
        mean = statistics.fmean(history)
        stdev = statistics.stdev(history)
        if stdev == 0:
            return []
        z = (latest - mean) / stdev
        if abs(z) < _ANOMALY_Z:
            return []
        kind = "spike" if z > 0 else "drop"
        return [Insight(
            type="anomaly",
            description=f"Unusual {kind} in {metric} at the latest {time_column}",
            importance=round(min(1.0, 0.5 + abs(z) / 10), 3),
            confidence=_confidence(len(history)),
            related_columns=[metric, time_column],
            details={
                "before": mean,
                "after": latest,
                "change": _relative_change(mean, latest),
                "z_score": round(z, 3),
            },
        )]

    def _correlation(self, data: Sequence[Mapping[str, Any]], a: str, b: str) -> list[Insight]:
        pairs = [(_as_number(r.get(a)), _as_number(r.get(b))) for r in data]
        pairs = [(x, y) for x, y in pairs if x is not None and y is not None]
        if len(pairs) < 3:
            return []
        xs, ys = zip(*pairs)
        try:
            r = statistics.correlation(xs, ys)
        except statistics.StatisticsError:
            return []  # constant column
        if abs(r) < _MIN_CORRELATION:
            return []
        strength = "strong" if abs(r) >= 0.7 else "moderate" if abs(r) >= 0.5 else "weak"
        direction = "positive" if r > 0 else "negative"
        return [Insight(
            type="correlation",
            description=f"{strength.capitalize()} {direction} correlation between {a} and {b}",
            importance=round(abs(r), 3),
            confidence=_confidence(len(pairs)),
            related_columns=[a, b],
            details={"coefficient": round(r, 3), "direction": direction, "strength": strength},
        )]

    def _distribution(self, metric: str, values: list[float]) -> list[Insight]:
        if len(values) < 3:
            return []
        mean = statistics.fmean(values)
        median = statistics.median(values)
        stdev = statistics.stdev(values)
        skewness = 3 * (mean - median) / stdev if stdev else 0.0
        shape = "skewed" if abs(skewness) >= _SKEW_THRESHOLD else "normal"
        if shape == "skewed":
            side = "right" if skewness > 0 else "left"
            description = f"{metric} is {side}-skewed (mean {mean:.4g}, median {median:.4g})"
            importance = 0.5 + min(0.4, abs(skewness) / 5)
        else:
            description = f"{metric} is roughly symmetric around {mean:.4g}"
            importance = 0.4
        return [Insight(
            type="distribution",
            description=description,
            importance=round(importance, 3),
            confidence=_confidence(len(values)),
            related_columns=[metric],
            details={
                "mean": mean,
                "median": median,
                "stdev": stdev,
                "skewness": round(skewness, 3),
                "shape": shape,
            },
        )]

    def _comparison(
        self, data: Sequence[Mapping[str, Any]], dimension: str, metric: str
    ) -> list[Insight]:
        groups: dict[str, list[float]] = defaultdict(list)
        for row in data:
            key, value = row.get(dimension), _as_number(row.get(metric))
            if key is not None and value is not None:
                groups[str(key)].append(value)
        if len(groups) < 2:
            return []
        means = {k: statistics.fmean(v) for k, v in groups.items()}
        highest = max(means, key=means.get)
        lowest = min(means, key=means.get)
        difference = means[highest] - means[lowest]
        percent_change = _relative_change(means[lowest], means[highest])
        importance = min(1.0, abs(percent_change) / 2) if percent_change is not None else 0.5
        return [Insight(
            type="comparison",
            description=f"{highest} has the highest average {metric} by {dimension}, {lowest} the lowest",
            importance=round(importance, 3),
            confidence=_confidence(sum(len(v) for v in groups.values())),
            related_columns=[dimension, metric],
            details={
                "groups": means,
                "highest": highest,
                "lowest": lowest,
                "difference": difference,
                "percent_change": percent_change,
            },
        )]


def recommend(insight: Insight) -> str:
    """One follow-up action for an insight, phrased for the analyst."""
    columns = insight.related_columns
    if not columns:
        return f"Review the {insight.type} in the underlying data"
    match insight.type:
        case "trend":
            direction = "growth" if (insight.details.get("change") or 0) > 0 else "decline"
            return f"Investigate what is driving the {direction} in {columns[0]}"
        case "anomaly":
            return f"Check the latest {columns[0]} value for data issues or a real incident"
        case "correlation":
            return f"Test whether {columns[0]} and {columns[-1]} are causally linked before acting on it"
        case "distribution":
            if insight.details.get("shape") == "skewed":
                return f"Report the median of {columns[0]} rather than the mean"
            return f"Use the mean of {columns[0]} as a representative value"
        case "comparison":
            return (
                f"Look into why {insight.details.get('lowest')} trails "
                f"{insight.details.get('highest')} on {columns[-1]}"
            )
    return f"Review {', '.join(columns)}"


def discover_insights(
    provider: InsightProvider,
    data: Sequence[Mapping[str, Any]],
    focus: InsightFocus | Mapping[str, Any],
    options: InsightOptions | Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Run the provider, keep confident insights, most important first, one recommendation each."""
    focus = InsightFocus.model_validate(focus)
    options = InsightOptions.model_validate(options or {})

    found = provider.discover(data, focus)
    if options.insight_types:
        found = [i for i in found if i.type in options.insight_types]
    kept = sorted(
        (i for i in found if i.confidence >= options.min_confidence),
        key=lambda i: i.importance,
        reverse=True,
    )[: options.max_insights]

    logger.debug("Insight discovery: %d candidates, %d kept", len(found), len(kept))
    return {
        "insights": [i.model_dump() for i in kept],
        "summary": f"Discovered {len(kept)} significant insights in the data",
        "recommendations": [recommend(i) for i in kept],
    }
