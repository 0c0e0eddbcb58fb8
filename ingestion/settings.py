"""Configuration models for the ingestion service."""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Annotated, Any, List, Optional

from pydantic import (
    Field,
    PositiveFloat,
    PositiveInt,
    SecretStr,
    ValidationError,
    field_validator,
)
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from ingestion.connectors import NEWS_ADAPTERS, TENDER_ADAPTERS

DEFAULT_NEWS_SOURCES = ["bjx_news", "solarbe_news"]
DEFAULT_TENDER_SOURCES = ["bidcenter", "bjx_tender", "ggzy"]


def _parse_source_list(value: Any, env_name: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        if text.startswith("["):
            try:
                value = json.loads(text)
            except json.JSONDecodeError as exc:
                raise ValueError(f"{env_name} must be a JSON array or a comma separated string.") from exc
        else:
            value = text.split(",")
    if not isinstance(value, list):
        raise ValueError(f"{env_name} must be a list.")
    return [str(v).strip() for v in value if str(v).strip()]


class Settings(BaseSettings):
    """Environment settings for the ingestion pipeline."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    database_url: str = Field(..., alias="DATABASE_URL", description="SQLAlchemy DSN for the content store.")
    redis_url: str = Field(
        "redis://localhost:6379/0",
        alias="INGESTION_REDIS_URL",
        description="Celery broker/backend Redis DSN.",
    )
    scrape_keyword: str = Field("钙钛矿", alias="SCRAPE_KEYWORD", description="Keyword matched in scraped link text.")
    http_timeout_seconds: PositiveFloat = Field(15.0, alias="HTTP_TIMEOUT_SECONDS", description="Per-request HTTP timeout.")
    http_max_retries: int = Field(2, ge=0, alias="HTTP_MAX_RETRIES", description="Retries after the first HTTP attempt.")
    http_retry_backoff_seconds: float = Field(
        2.0,
        ge=0.0,
        alias="HTTP_RETRY_BACKOFF_SECONDS",
        description="Linear backoff base; attempt i waits base * (i + 1).",
    )
    llm_parse_batch_size: PositiveInt = Field(10, alias="LLM_PARSE_BATCH_SIZE", description="Raw items sent to the parse step.")
    news_target_count: int = Field(5, ge=0, alias="NEWS_TARGET_COUNT", description="Minimum news candidates per run.")
    tender_target_count: int = Field(3, ge=0, alias="TENDER_TARGET_COUNT", description="Minimum tender candidates per run.")
    dedup_prefix_length: PositiveInt = Field(20, alias="DEDUP_PREFIX_LENGTH", description="Title prefix used by the dedup check.")
    enabled_news_sources: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_NEWS_SOURCES),
        alias="ENABLED_NEWS_SOURCES",
    )
    enabled_tender_sources: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_TENDER_SOURCES),
        alias="ENABLED_TENDER_SOURCES",
    )
    scheduler_enabled: bool = Field(True, alias="INGESTION_SCHEDULER_ENABLED", description="Run the in-process daily scheduler.")
    owner_notify_webhook_url: Optional[str] = Field(None, alias="OWNER_NOTIFY_WEBHOOK_URL")
    owner_notify_timeout_seconds: PositiveFloat = Field(5.0, alias="OWNER_NOTIFY_TIMEOUT_SECONDS")
    admin_api_token: Optional[SecretStr] = Field(None, alias="ADMIN_API_TOKEN", description="Token required by admin routes.")
    structlog_level: str = Field("INFO", alias="STRUCTLOG_LEVEL", description="Log level.")
    log_json: bool = Field(False, alias="LOG_JSON", description="Emit logs as JSON lines.")
    celery_task_soft_time_limit: PositiveInt = Field(
        900,
        alias="CELERY_TASK_SOFT_TIME_LIMIT",
        description="Celery task soft time limit (seconds).",
    )
    celery_worker_concurrency: PositiveInt = Field(
        4,
        alias="CELERY_WORKER_CONCURRENCY",
        description="Celery worker concurrency.",
    )

    @field_validator("enabled_news_sources", mode="before")
    @classmethod
    def _parse_news_sources(cls, value: Any) -> List[str]:
        return _parse_source_list(value, "ENABLED_NEWS_SOURCES")

    @field_validator("enabled_tender_sources", mode="before")
    @classmethod
    def _parse_tender_sources(cls, value: Any) -> List[str]:
        return _parse_source_list(value, "ENABLED_TENDER_SOURCES")

    @field_validator("enabled_news_sources")
    @classmethod
    def _known_news_sources(cls, value: List[str]) -> List[str]:
        unknown = [name for name in value if name not in NEWS_ADAPTERS]
        if unknown:
            raise ValueError(f"unknown news sources: {', '.join(unknown)}")
        return value

    @field_validator("enabled_tender_sources")
    @classmethod
    def _known_tender_sources(cls, value: List[str]) -> List[str]:
        unknown = [name for name in value if name not in TENDER_ADAPTERS]
        if unknown:
            raise ValueError(f"unknown tender sources: {', '.join(unknown)}")
        return value

    @field_validator("database_url")
    @classmethod
    def _validate_database_url(cls, value: str) -> str:
        if "://" not in value:
            raise ValueError("DATABASE_URL must be a valid DSN string.")
        return value

    @field_validator("scrape_keyword")
    @classmethod
    def _non_blank_keyword(cls, value: str) -> str:
        keyword = value.strip()
        if not keyword:
            raise ValueError("SCRAPE_KEYWORD must not be blank.")
        return keyword


@lru_cache()
def get_settings() -> Settings:
    """Return the Settings instance built from the environment."""
    try:
        return Settings()
    except ValidationError as exc:
        raise RuntimeError(f"environment validation failed: {exc}") from exc


def reset_settings_cache() -> None:
    """Clear the Settings LRU cache (used by tests)."""
    get_settings.cache_clear()  # type: ignore[attr-defined]
