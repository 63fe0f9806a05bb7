"""
Knowledge lookup over previously completed analyses.

The agent checks here before writing new queries so it can reuse an existing
answer instead of repeating the work. The corpus sits behind KnowledgeProvider
so a search index can replace the static list without touching callers.
"""

from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Protocol, Sequence

from ..models import KnowledgeEntry

logger = logging.getLogger(__name__)


class KnowledgeProvider(Protocol):
    def entries(self) -> Sequence[KnowledgeEntry]: ...


class StaticKnowledgeCorpus:
    """Fixed, in-memory list of prior analyses."""

    def __init__(self, entries: Sequence[KnowledgeEntry]) -> None:
        self._entries = tuple(entries)

    def entries(self) -> Sequence[KnowledgeEntry]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)


DEFAULT_CORPUS = StaticKnowledgeCorpus([
    KnowledgeEntry(
        id="analysis-1",
        question="What is the average order value by customer segment?",
        answer=(
            "Our analysis shows that Enterprise customers have the highest average order "
            "value at $5,200, followed by SMB at $1,800, and Individual customers at $150. "
            "Enterprise segment shows 3x higher value than SMB."
        ),
        attachments=["order_value_chart.png"],
        url="https://analytics.example.com/reports/customer-segments-2024",
        tags=["customer segmentation", "revenue analysis", "order value"],
        created_at=date(2024, 1, 15),
    ),
    KnowledgeEntry(
        id="analysis-2",
        question="Which products have the highest profit margin?",
        answer=(
            "Premium subscription plans show the highest profit margin at 85%, followed by "
            "Enterprise licenses at 75%. Hardware products have lower margins ranging from "
            "25-35% due to manufacturing and shipping costs."
        ),
        attachments=["margin_comparison.pdf", "product_profitability.xlsx"],
        url="https://analytics.example.com/reports/product-profitability",
        tags=["product analysis", "profitability", "margins"],
        created_at=date(2024, 2, 1),
    ),
    KnowledgeEntry(
        id="analysis-3",
        question="What is the customer churn rate trend?",
        answer=(
            "Monthly churn rate has decreased from 3.2% to 1.8% over the past quarter. "
            "This improvement is attributed to the new customer success program and "
            "improved product onboarding."
        ),
        attachments=["churn_trend.png", "retention_analysis.pdf"],
        url="https://analytics.example.com/reports/churn-analysis-q1",
        tags=["churn", "customer retention", "trend analysis"],
        created_at=date(2024, 3, 1),
    ),
])


def load_corpus(path: str | Path) -> StaticKnowledgeCorpus:
    """Load a corpus from a JSON array of entry objects."""
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, list):
        raise ValueError(f"Knowledge corpus {path} must be a JSON array")
    entries = [KnowledgeEntry.model_validate(item) for item in raw]
    logger.info("Loaded %d knowledge entries from %s", len(entries), path)
    return StaticKnowledgeCorpus(entries)


def _matches(entry: KnowledgeEntry, needle: str, tags: set[str]) -> bool:
    if needle not in entry.question.lower() and needle not in entry.answer.lower():
        return False
    if not tags:
        return True
    return any(t.lower() in tags for t in entry.tags)


class KnowledgeSearch:
    """Keyword + tag search over a KnowledgeProvider, newest first."""

    def __init__(self, provider: KnowledgeProvider) -> None:
        self._provider = provider

    def search(self, query: str, tags: Sequence[str] | None = None) -> dict[str, Any]:
        needle = query.lower()
        wanted = {t.lower() for t in tags or []}

        matched = [e for e in self._provider.entries() if _matches(e, needle, wanted)]
        # sorted() is stable, so same-day entries keep corpus order
        matched = sorted(matched, key=lambda e: e.created_at, reverse=True)

        logger.debug("Knowledge search %r tags=%s matched %d", query, sorted(wanted), len(matched))
        return {
            "results": [e.summary() for e in matched],
            "count": len(matched),
            "message": (
                f"Found {len(matched)} relevant analyses"
                if matched
                else "No existing analyses found for this query"
            ),
        }
