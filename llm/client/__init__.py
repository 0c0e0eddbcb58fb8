"""LLM client module."""

from llm.client.openai_client import (
    LLMError,
    OpenAIClient,
    PermanentLLMError,
    ProviderFn,
    TransientLLMError,
    extract_content,
)

__all__ = [
    "LLMError",
    "OpenAIClient",
    "PermanentLLMError",
    "ProviderFn",
    "TransientLLMError",
    "extract_content",
]
