"""Application configuration."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import make_url


class HttpSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = Field(8080, ge=1, le=65535)
    session_cookie_name: str = "sid"
    session_cookie_max_age_days: int = Field(365, ge=1)
    session_cookie_secure: bool = False

    @field_validator("session_cookie_name")
    @classmethod
    def validate_cookie_name(cls, value: str) -> str:
        name = value.strip()
        if not name or any(ch in name for ch in " ;,="):
            raise ValueError("session_cookie_name must be a plain token")
        return name


class FeedSettings(BaseModel):
    recent_window_hours: int = Field(24, ge=1)
    recent_updates_limit: int = Field(10, ge=1)
    suggestions_limit: int = Field(5, ge=1)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8-sig",
        env_prefix="",
        env_nested_delimiter="__",
        extra="ignore",
    )

    database_url: str = Field(..., validation_alias="DATABASE_URL")
    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")
    log_json: bool = Field(True, validation_alias="LOG_JSON")
    sentry_dsn: str | None = Field(default=None, validation_alias="SENTRY_DSN")

    http: HttpSettings = HttpSettings()
    feed: FeedSettings = FeedSettings()

    def public_dict(self) -> dict[str, Any]:
        data = self.model_dump()
        data["database_url"] = make_url(self.database_url).render_as_string(hide_password=True)
        if data.get("sentry_dsn"):
            data["sentry_dsn"] = "***"
        return data
