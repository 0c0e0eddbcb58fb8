"""LLM module - OpenAI client and settings."""

from llm.client.openai_client import (
    LLMError,
    OpenAIClient,
    PermanentLLMError,
    ProviderFn,
    TransientLLMError,
    extract_content,
)
from llm.settings import LLMSettings, get_llm_settings, reset_llm_settings_cache

__all__ = [
    "LLMError",
    "OpenAIClient",
    "PermanentLLMError",
    "ProviderFn",
    "TransientLLMError",
    "extract_content",
    "LLMSettings",
    "get_llm_settings",
    "reset_llm_settings_cache",
]
