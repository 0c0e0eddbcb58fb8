"""Settings for the OpenAI-compatible LLM used by the enrichment steps."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, PositiveFloat, PositiveInt, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMSettings(BaseSettings):
    """Environment-driven configuration for chat completion calls."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    openai_api_key: str = Field(..., alias="OPENAI_API_KEY", description="OpenAI API key")
    openai_base_url: Optional[str] = Field(
        None,
        alias="OPENAI_BASE_URL",
        description="Base URL of an OpenAI-compatible endpoint",
    )
    llm_model: str = Field("gpt-4o-mini", alias="LLM_MODEL", description="Chat completion model name")
    llm_max_tokens: PositiveInt = Field(4096, alias="LLM_MAX_TOKENS", description="Max completion tokens")
    llm_temperature: float = Field(0.3, alias="LLM_TEMPERATURE", ge=0.0, le=2.0, description="Sampling temperature")
    llm_request_timeout_seconds: Optional[PositiveFloat] = Field(
        None,
        alias="LLM_REQUEST_TIMEOUT_SECONDS",
        description="HTTP request timeout; client library default when unset",
    )

    @field_validator("openai_api_key")
    @classmethod
    def _non_empty_api_key(cls, v: str) -> str:
        s = v.strip()
        if not s:
            raise ValueError("OPENAI_API_KEY must not be blank.")
        return s

    @field_validator("openai_base_url", mode="before")
    @classmethod
    def _blank_base_url(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v


@lru_cache()
def get_llm_settings() -> LLMSettings:
    try:
        return LLMSettings()
    except ValidationError as exc:
        raise RuntimeError(f"LLM settings validation failed: {exc}") from exc


def reset_llm_settings_cache() -> None:
    get_llm_settings.cache_clear()  # type: ignore[attr-defined]
