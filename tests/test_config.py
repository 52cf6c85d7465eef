"""Tests for pvnews.config."""

import dataclasses

import pytest

from pvnews.config import Config, load_config

_ENV_KEYS = (
    "DB_PATH", "POLL_INTERVAL_MINUTES", "HTTP_TIMEOUT_SECONDS", "SEARCH_QUERY",
    "REDDIT_PRIMARY_SUB", "REDDIT_SUBREDDITS", "X_BEARER_TOKEN", "HOST", "PORT",
    "LOG_LEVEL", "LOG_FORMAT", "APP_ENV",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Remove all config-related env vars before each test."""
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    # Prevent .env file from re-setting variables during tests
    monkeypatch.setattr("pvnews.config.load_dotenv", lambda *a, **kw: None)


def test_defaults_without_env():
    """Every setting has a default; nothing is required."""
    config = load_config()

    assert config.database_path == "pv-news.db"
    assert config.poll_interval_minutes == 15
    assert config.http_timeout_seconds == 20.0
    assert config.search_query == "puerto vallarta"
    assert config.reddit_primary_subreddit == "puertovallarta"
    assert config.reddit_subreddits == ("puertovallarta", "mexico", "travel")
    assert config.x_bearer_token is None
    assert config.web_host == "0.0.0.0"
    assert config.web_port == 3001
    assert config.log_level == "INFO"
    assert config.log_format == "json"
    assert config.app_env == "production"


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("DB_PATH", "/data/pv.db")
    monkeypatch.setenv("POLL_INTERVAL_MINUTES", "5")
    monkeypatch.setenv("HTTP_TIMEOUT_SECONDS", "7.5")
    monkeypatch.setenv("SEARCH_QUERY", "vallarta")
    monkeypatch.setenv("REDDIT_PRIMARY_SUB", "vallarta")
    monkeypatch.setenv("X_BEARER_TOKEN", "tok")
    monkeypatch.setenv("HOST", "127.0.0.1")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("LOG_FORMAT", "text")
    monkeypatch.setenv("APP_ENV", "development")

    config = load_config()

    assert config.database_path == "/data/pv.db"
    assert config.poll_interval_minutes == 5
    assert config.http_timeout_seconds == 7.5
    assert config.search_query == "vallarta"
    assert config.reddit_primary_subreddit == "vallarta"
    assert config.x_bearer_token == "tok"
    assert config.web_host == "127.0.0.1"
    assert config.web_port == 8080
    assert config.log_level == "DEBUG"
    assert config.log_format == "text"
    assert config.app_env == "development"


def test_subreddit_list_parsing(monkeypatch):
    """Comma-separated list; whitespace trimmed and blanks dropped."""
    monkeypatch.setenv("REDDIT_SUBREDDITS", " mexico, ,travel ,")
    assert load_config().reddit_subreddits == ("mexico", "travel")


def test_empty_bearer_token_is_none(monkeypatch):
    monkeypatch.setenv("X_BEARER_TOKEN", "")
    assert load_config().x_bearer_token is None


def test_blank_interval_uses_default(monkeypatch):
    monkeypatch.setenv("POLL_INTERVAL_MINUTES", "  ")
    assert load_config().poll_interval_minutes == 15


def test_non_integer_interval_raises(monkeypatch):
    monkeypatch.setenv("POLL_INTERVAL_MINUTES", "soon")
    with pytest.raises(ValueError, match="POLL_INTERVAL_MINUTES"):
        load_config()


def test_non_integer_port_raises(monkeypatch):
    monkeypatch.setenv("PORT", "http")
    with pytest.raises(ValueError, match="PORT"):
        load_config()


def test_interval_below_one_raises(monkeypatch):
    monkeypatch.setenv("POLL_INTERVAL_MINUTES", "0")
    with pytest.raises(ValueError, match="at least 1"):
        load_config()


def test_non_positive_timeout_raises(monkeypatch):
    monkeypatch.setenv("HTTP_TIMEOUT_SECONDS", "0")
    with pytest.raises(ValueError, match="HTTP_TIMEOUT_SECONDS"):
        load_config()


def test_config_is_frozen():
    config = Config()
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.database_path = "/other.db"
