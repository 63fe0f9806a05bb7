"""
Central configuration for datadesk.
Uses Pydantic BaseSettings for type-safe configuration from environment variables.
"""

import os
from pathlib import Path

from pydantic import ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError

# Resolve .env relative to this file (datadesk/config.py → project root)
_ENV_FILE = Path(__file__).parent.parent / ".env"

_SQLITE_PREFIX = "sqlite:///"


def _load_env_file() -> None:
    """
    Load .env into os.environ, but only for keys that are currently unset
    or set to empty strings. Explicit non-empty shell values still win.
    """
    if not _ENV_FILE.exists():
        return
    from dotenv import dotenv_values
    for key, value in dotenv_values(_ENV_FILE).items():
        if value and not os.environ.get(key):
            os.environ[key] = value


# Run at import time so Settings() sees the correct values
_load_env_file()


def database_path_from_url(url: str) -> str:
    """
    Turn a connection string into the SQLite file path aiosqlite expects.

    Accepts ``sqlite:///relative.db``, ``sqlite:////abs/path.db``,
    ``sqlite:///:memory:`` or a bare filesystem path.
    """
    url = url.strip()
    if not url:
        raise ConfigurationError("Database URL is empty")
    if url.startswith(_SQLITE_PREFIX):
        path = url[len(_SQLITE_PREFIX):]
        if not path:
            raise ConfigurationError(f"Database URL has no path: {url!r}")
        return path
    if "://" in url:
        scheme = url.split("://", 1)[0]
        raise ConfigurationError(
            f"Unsupported database scheme {scheme!r}; expected sqlite:///<path>"
        )
    return url


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Task store (users, questions, assignments), required
    database_url: str

    # Warehouse queried by the analyst tools; empty disables them
    analysis_database_url: str = ""
    warehouse_max_rows: int = 500

    # Anthropic
    anthropic_api_key: str = ""
    model_complex: str = "claude-sonnet-4-6"
    anthropic_max_tokens: int = 4096
    claude_max_retries: int = 3
    claude_retry_base_delay: float = 2.0
    claude_max_tool_iterations: int = 5

    # Environment
    data_dir: str = "./data"
    json_logs: bool = False

    # Logging
    log_level: str = "INFO"

    # Task authoring
    task_view_path_prefix: str = "/tasks"

    # Knowledge lookup: JSON file of prior analyses; empty = built-in corpus
    knowledge_corpus_path: str = ""

    @model_validator(mode="after")
    def check_database_urls(self) -> "Settings":
        database_path_from_url(self.database_url)
        if self.analysis_database_url:
            database_path_from_url(self.analysis_database_url)
        return self

    @property
    def db_path(self) -> str:
        return database_path_from_url(self.database_url)

    @property
    def analysis_db_path(self) -> str | None:
        if not self.analysis_database_url:
            return None
        return database_path_from_url(self.analysis_database_url)

    @property
    def logs_dir(self) -> str:
        return os.path.join(self.data_dir, "logs")


def load_settings() -> Settings:
    """
    Build Settings from the environment.

    Missing or malformed connection parameters are fatal: they surface as a
    ConfigurationError naming the offending fields.
    """
    try:
        return Settings()
    except ConfigurationError:
        raise
    except ValidationError as e:
        fields = ", ".join(
            ".".join(str(p) for p in err["loc"]).upper() or "settings"
            for err in e.errors()
        )
        raise ConfigurationError(f"Invalid or missing configuration: {fields}") from e


def get_settings() -> "Settings":
    """Return the application settings singleton."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached singleton so the next access re-reads the environment."""
    global _settings
    _settings = None


_settings: Settings | None = None


class _SettingsProxy:
    """Lazy proxy so `from datadesk.config import settings` works without eager init."""
    def __getattr__(self, name):
        return getattr(get_settings(), name)


settings = _SettingsProxy()  # type: ignore[assignment]
