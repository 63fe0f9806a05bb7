"""
Pydantic v2 data models for datadesk.
"""

from datetime import date
from typing import Annotated, Any, Literal, Optional

from pydantic import BaseModel, Field, StringConstraints

QuestionStatus = Literal["todo", "progress", "doing", "done", "cancelled"]
QUESTION_STATUSES: tuple[str, ...] = ("todo", "progress", "doing", "done", "cancelled")

InsightType = Literal["trend", "anomaly", "correlation", "distribution", "comparison"]


class User(BaseModel):
    id: int
    name: str
    email: str
    created_at: str


class Question(BaseModel):
    id: int
    title: str
    content: str  # markdown
    status: QuestionStatus = "todo"
    reference_urls: list[str] = Field(default_factory=list)
    created_at: str
    updated_at: str


class Assignment(BaseModel):
    id: int
    question_id: int
    user_id: int
    assigned_at: str


class TaskContext(BaseModel):
    query: str  # the question that triggered escalation
    uncertainty: str  # why a human has to look at it
    data: Optional[dict[str, Any]] = None
    suggested_approach: Optional[str] = None


class AnalysisTaskRequest(BaseModel):
    title: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    content: str
    context: TaskContext
    reference_urls: list[str] = Field(default_factory=list)
    assign_to: list[str] = Field(default_factory=list)


class KnowledgeEntry(BaseModel):
    id: str
    question: str
    answer: str
    attachments: list[str] = Field(default_factory=list)
    url: str
    tags: list[str] = Field(default_factory=list)
    created_at: date

    def summary(self) -> dict[str, Any]:
        """Public view of the entry; tags are for filtering only."""
        return {
            "question": self.question,
            "answer": self.answer,
            "attachments": list(self.attachments),
            "url": self.url,
            "created_at": self.created_at.isoformat(),
        }


class InsightFocus(BaseModel):
    metrics: list[str]
    dimensions: list[str] = Field(default_factory=list)
    time_column: Optional[str] = None


class InsightOptions(BaseModel):
    min_confidence: float = Field(default=0.7, ge=0.0, le=1.0)
    max_insights: int = Field(default=5, ge=0)
    insight_types: Optional[list[InsightType]] = None


class Insight(BaseModel):
    type: InsightType
    description: str
    importance: float  # 0-1
    confidence: float  # 0-1
    related_columns: list[str]
    details: dict[str, Any] = Field(default_factory=dict)
