"""
Analysis services exposed to the analyst agent.

- tasks.py: escalation to human analysts (create_analysis_task)
- knowledge.py: lookup of previously completed analyses
- warehouse.py: read-only SQL and schema introspection
- insights.py: pattern discovery over query results
"""

from .insights import StatisticalInsightProvider, discover_insights
from .knowledge import DEFAULT_CORPUS, KnowledgeSearch, StaticKnowledgeCorpus, load_corpus
from .tasks import TaskAuthoringService, render_task_content
from .warehouse import Warehouse

__all__ = [
    "DEFAULT_CORPUS",
    "KnowledgeSearch",
    "StaticKnowledgeCorpus",
    "StatisticalInsightProvider",
    "TaskAuthoringService",
    "Warehouse",
    "discover_insights",
    "load_corpus",
    "render_task_content",
]
