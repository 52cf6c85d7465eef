"""Configuration loading and validation."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

_DEFAULT_SUBREDDITS = ("puertovallarta", "mexico", "travel")


@dataclass(frozen=True)
class Config:
    """Application configuration. All values sourced from environment variables."""

    # Storage
    database_path: str = "pv-news.db"

    # Polling
    poll_interval_minutes: int = 15
    http_timeout_seconds: float = 20.0
    search_query: str = "puerto vallarta"

    # Reddit
    reddit_primary_subreddit: str = "puertovallarta"
    reddit_subreddits: tuple[str, ...] = field(default=_DEFAULT_SUBREDDITS)

    # X
    x_bearer_token: str | None = None

    # Application
    web_host: str = "0.0.0.0"
    web_port: int = 3001
    log_level: str = "INFO"
    log_format: str = "json"
    app_env: str = "production"


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got {raw!r}") from None


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be a number, got {raw!r}") from None


def _list_env(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def load_config(env_path: str | Path | None = None) -> Config:
    """Load configuration from environment variables.

    Loads a .env file if present (for local development). Every setting has a
    default; raises ValueError for values that are present but malformed.
    """
    load_dotenv(dotenv_path=env_path)

    poll_interval = _int_env("POLL_INTERVAL_MINUTES", 15)
    if poll_interval < 1:
        raise ValueError("POLL_INTERVAL_MINUTES must be at least 1")

    timeout = _float_env("HTTP_TIMEOUT_SECONDS", 20.0)
    if timeout <= 0:
        raise ValueError("HTTP_TIMEOUT_SECONDS must be positive")

    return Config(
        database_path=os.environ.get("DB_PATH") or "pv-news.db",
        poll_interval_minutes=poll_interval,
        http_timeout_seconds=timeout,
        search_query=os.environ.get("SEARCH_QUERY") or "puerto vallarta",
        reddit_primary_subreddit=os.environ.get("REDDIT_PRIMARY_SUB") or "puertovallarta",
        reddit_subreddits=_list_env("REDDIT_SUBREDDITS", _DEFAULT_SUBREDDITS),
        x_bearer_token=os.environ.get("X_BEARER_TOKEN") or None,
        web_host=os.environ.get("HOST", "0.0.0.0"),
        web_port=_int_env("PORT", 3001),
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
        log_format=os.environ.get("LOG_FORMAT", "json"),
        app_env=os.environ.get("APP_ENV", "production"),
    )
