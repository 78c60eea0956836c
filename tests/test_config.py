from __future__ import annotations

import pytest
from pydantic import ValidationError

from news_briefing.config import HttpSettings, Settings


def test_defaults_match_feed_constants(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://news:secret@db:5432/news")

    settings = Settings(_env_file=None)

    assert settings.feed.recent_window_hours == 24
    assert settings.feed.recent_updates_limit == 10
    assert settings.feed.suggestions_limit == 5
    assert settings.http.port == 8080
    assert settings.http.session_cookie_name == "sid"


def test_nested_values_come_from_double_underscore_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://news@db/news")
    monkeypatch.setenv("HTTP__PORT", "9000")
    monkeypatch.setenv("FEED__SUGGESTIONS_LIMIT", "3")

    settings = Settings(_env_file=None)

    assert settings.http.port == 9000
    assert settings.feed.suggestions_limit == 3


def test_public_dict_masks_secrets(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://news:secret@db:5432/news")
    monkeypatch.setenv("SENTRY_DSN", "https://key@sentry.example/1")

    data = Settings(_env_file=None).public_dict()

    assert "secret" not in data["database_url"]
    assert data["database_url"].startswith("postgresql+asyncpg://news:***@db:5432/news")
    assert data["sentry_dsn"] == "***"


def test_missing_database_url_is_invalid(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DATABASE_URL", raising=False)

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


@pytest.mark.parametrize("name", ["", "a b", "sid;x"])
def test_cookie_name_must_be_a_token(name: str) -> None:
    with pytest.raises(ValidationError):
        HttpSettings(session_cookie_name=name)
