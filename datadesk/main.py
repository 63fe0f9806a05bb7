"""
datadesk entry point.
Builds the services with explicit dependencies and exposes them as a small CLI.

Usage:
    datadesk init-db
    datadesk add-user "Ada Lovelace" ada@example.com
    datadesk search "churn rate" --tag "customer retention"
    datadesk create-task --title ... --content ... --query ... --uncertainty ...
    datadesk ask "What was revenue by region last quarter?"
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import dataclass

from .ai.tools import ToolRegistry
from .analysis.insights import StatisticalInsightProvider
from .analysis.knowledge import DEFAULT_CORPUS, KnowledgeSearch, load_corpus
from .analysis.tasks import TaskAuthoringService
from .analysis.warehouse import Warehouse
from .config import Settings, get_settings
from .exceptions import ConfigurationError, DataDeskError
from .logging_config import setup_logging
from .store.database import DatabaseManager
from .store.tasks import TaskStore

logger = logging.getLogger(__name__)


@dataclass
class App:
    """All long-lived components, wired once at startup."""

    settings: Settings
    db: DatabaseManager
    task_store: TaskStore
    task_service: TaskAuthoringService
    knowledge_search: KnowledgeSearch
    warehouse: Warehouse | None
    tool_registry: ToolRegistry

    async def startup(self) -> None:
        await self.db.init()
        if self.warehouse is not None:
            await self.warehouse.connect()
        logger.info("datadesk ready")

    async def shutdown(self) -> None:
        if self.warehouse is not None:
            await self.warehouse.close()
        await self.db.close()


def _corpus(settings: Settings):
    if not settings.knowledge_corpus_path:
        return DEFAULT_CORPUS
    try:
        return load_corpus(settings.knowledge_corpus_path)
    except (OSError, ValueError) as e:
        raise ConfigurationError(
            f"KNOWLEDGE_CORPUS_PATH {settings.knowledge_corpus_path!r} is not a usable corpus: {e}"
        ) from e


def build_app(settings: Settings) -> App:
    db = DatabaseManager(settings.db_path)
    task_store = TaskStore(db)
    task_service = TaskAuthoringService(task_store, settings.task_view_path_prefix)

    knowledge_search = KnowledgeSearch(_corpus(settings))

    warehouse = None
    if settings.analysis_db_path:
        warehouse = Warehouse(settings.analysis_db_path, max_rows=settings.warehouse_max_rows)
    else:
        logger.info("ANALYSIS_DATABASE_URL not set, warehouse tools disabled")

    tool_registry = ToolRegistry(
        task_service=task_service,
        knowledge_search=knowledge_search,
        warehouse=warehouse,
        insight_provider=StatisticalInsightProvider(),
    )
    return App(
        settings=settings,
        db=db,
        task_store=task_store,
        task_service=task_service,
        knowledge_search=knowledge_search,
        warehouse=warehouse,
        tool_registry=tool_registry,
    )


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, default=str))


async def _run(app: App, args: argparse.Namespace) -> int:
    match args.command:
        case "init-db":
            print(f"Database initialised at: {app.db.db_path}")
        case "add-user":
            user = await app.task_store.create_user(args.name, args.email)
            _print_json(user.model_dump())
        case "search":
            _print_json(app.knowledge_search.search(args.query, args.tag))
        case "create-task":
            context = {"query": args.query, "uncertainty": args.uncertainty}
            if args.suggested_approach:
                context["suggested_approach"] = args.suggested_approach
            if args.data is not None:
                context["data"] = args.data
            result = await app.task_service.create_analysis_task(
                title=args.title,
                content=args.content,
                task_context=context,
                reference_urls=args.url,
                assign_to=args.assign,
            )
            _print_json(result)
            return 1 if "error" in result else 0
        case "ask":
            from .ai.claude_client import ClaudeClient
            if not app.settings.anthropic_api_key:
                raise ConfigurationError("ANTHROPIC_API_KEY is required for ask")
            answer = await ClaudeClient(app.settings.anthropic_api_key).ask(
                args.question, app.tool_registry
            )
            print(answer)
    return 0


def _json_object(value: str) -> dict:
    try:
        data = json.loads(value)
    except json.JSONDecodeError as e:
        raise argparse.ArgumentTypeError(f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise argparse.ArgumentTypeError("must be a JSON object")
    return data


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="datadesk", description="Data analyst agent backend")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create the task schema")

    add_user = sub.add_parser("add-user", help="Register an analyst")
    add_user.add_argument("name")
    add_user.add_argument("email")

    search = sub.add_parser("search", help="Search previous analyses")
    search.add_argument("query")
    search.add_argument("--tag", action="append", default=[], help="Filter by tag (repeatable)")

    task = sub.add_parser("create-task", help="Escalate an analysis to a human")
    task.add_argument("--title", required=True)
    task.add_argument("--content", required=True)
    task.add_argument("--query", required=True, help="Original question that triggered escalation")
    task.add_argument("--uncertainty", required=True, help="Why a human needs to look at it")
    task.add_argument("--suggested-approach")
    task.add_argument("--data", type=_json_object, help="JSON object attached as evidence")
    task.add_argument("--url", action="append", default=[], help="Reference URL (repeatable)")
    task.add_argument("--assign", action="append", default=[], help="Assignee email (only the first is used)")

    ask = sub.add_parser("ask", help="Ask the analyst agent a question")
    ask.add_argument("question")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _parser().parse_args(argv)

    try:
        settings = get_settings()
        setup_logging(settings.log_level, settings.logs_dir, settings.json_logs)
        app = build_app(settings)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    async def _main() -> int:
        try:
            await app.startup()
            return await _run(app, args)
        finally:
            await app.shutdown()

    try:
        return asyncio.run(_main())
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except DataDeskError as e:
        logger.error("%s failed: %s", args.command, e)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
