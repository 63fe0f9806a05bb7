"""
Task authoring: turn an escalation request into a persisted analysis question.

When the analyst agent is not confident enough in its own answer it hands the
problem to a human: the request is rendered into one markdown body, stored as
a `todo` question and, if emails were supplied, pre-assigned.

Only the first email is looked up and only the first matching user is
assigned. Extra emails are accepted and ignored.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

from pydantic import ValidationError

from ..models import AnalysisTaskRequest, Question, TaskContext, User
from ..store.tasks import TaskStore

logger = logging.getLogger(__name__)

CREATE_FAILED = "Failed to create analysis task"
INVALID_REQUEST = "Invalid analysis task request"


def render_task_content(content: str, context: TaskContext) -> str:
    """Render the description and escalation context as a single markdown body."""
    sections = [
        f"## Analysis Request\n{content}",
        f"## Original Query\n{context.query}",
        f"## Uncertainty Context\n{context.uncertainty}",
    ]
    if context.suggested_approach:
        sections.append(f"## Suggested Approach\n{context.suggested_approach}")
    data = json.dumps(context.data or {}, indent=2, default=str)
    sections.append(f"## Relevant Data\n```json\n{data}\n```")
    return "\n\n".join(sections) + "\n"


def _failure(error: str, details: str) -> dict[str, Any]:
    return {"error": error, "details": details}


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "request"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


class TaskAuthoringService:
    """Creates analysis tasks for human analysts."""

    def __init__(self, store: TaskStore, view_path_prefix: str = "/tasks") -> None:
        self._store = store
        self._view_path_prefix = view_path_prefix.rstrip("/")

    def view_url(self, question_id: int) -> str:
        return f"{self._view_path_prefix}/{question_id}"

    async def create_analysis_task(
        self,
        title: str,
        content: str,
        task_context: TaskContext | Mapping[str, Any],
        reference_urls: list[str] | None = None,
        assign_to: list[str] | None = None,
    ) -> dict[str, Any]:
        """
        Persist a new analysis task and optionally assign it.

        Never raises: storage and validation problems come back as
        ``{"error": ..., "details": ...}`` so the calling agent can decide
        what to do next. On success returns ``task_id``, ``status``,
        ``message``, ``view_url`` and ``assigned_to``.

        The question insert and the assignment share one transaction, so a
        failed assignment leaves no orphan question behind.
        """
        try:
            request = AnalysisTaskRequest(
                title=title,
                content=content,
                context=task_context,
                reference_urls=reference_urls or [],
                assign_to=assign_to or [],
            )
        except ValidationError as e:
            logger.warning("Rejected analysis task request: %s", e)
            return _failure(INVALID_REQUEST, _format_validation_error(e))

        body = render_task_content(request.content, request.context)

        try:
            question, assignee = await self._persist(request, body)
        except Exception as e:
            logger.error("Error creating analysis task %r: %s", request.title, e, exc_info=True)
            return _failure(CREATE_FAILED, str(e) or type(e).__name__)

        return {
            "task_id": question.id,
            "status": "created",
            "message": self._message(request, question, assignee),
            "view_url": self.view_url(question.id),
            "assigned_to": assignee.email if assignee else None,
        }

    async def _persist(
        self, request: AnalysisTaskRequest, body: str
    ) -> tuple[Question, User | None]:
        async with self._store.transaction():
            question = await self._store.insert_question(
                title=request.title,
                content=body,
                status="todo",
                reference_urls=request.reference_urls,
            )

            if not request.assign_to:
                return question, None

            email = request.assign_to[0]
            users = await self._store.find_users_by_email(email)
            if not users:
                logger.info("No user with email %s; task %d left unassigned", email, question.id)
                return question, None

            assignee = users[0]
            await self._store.insert_assignment(question.id, assignee.id)
            return question, assignee

    @staticmethod
    def _message(
        request: AnalysisTaskRequest, question: Question, assignee: User | None
    ) -> str:
        message = f'Created analysis task "{request.title}" with ID {question.id}'
        if assignee is not None:
            message += f" and assigned to {assignee.email}"
        elif request.assign_to:
            message += f" (no user found for {request.assign_to[0]}; left unassigned)"
        ignored = request.assign_to[1:]
        if ignored:
            message += f". Only the first assignee is used; ignored: {', '.join(ignored)}"
        return message
