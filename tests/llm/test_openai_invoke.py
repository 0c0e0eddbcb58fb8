from __future__ import annotations

import asyncio
from typing import Any, Dict, List

import pytest

from llm.client.openai_client import (
    LLMError,
    OpenAIClient,
    PermanentLLMError,
    TransientLLMError,
    extract_content,
)
from llm.settings import get_llm_settings, reset_llm_settings_cache


@pytest.fixture(autouse=True)
def _env(monkeypatch):
    reset_llm_settings_cache()
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-123")
    monkeypatch.setenv("LLM_MODEL", "gpt-4o-mini")
    monkeypatch.setenv("LLM_MAX_TOKENS", "1024")
    monkeypatch.setenv("LLM_TEMPERATURE", "0.3")
    yield
    reset_llm_settings_cache()


MESSAGES = [{"role": "system", "content": "s"}, {"role": "user", "content": "u"}]


def test_invoke_builds_payload_and_returns_response():
    payloads: List[Dict[str, Any]] = []

    async def provider(payload: Dict[str, Any]) -> Dict[str, Any]:
        payloads.append(payload)
        return {
            "choices": [{"message": {"content": '{"items": []}'}}],
            "usage": {"prompt_tokens": 10, "completion_tokens": 3},
            "model": "gpt-4o-mini",
        }

    fmt = {"type": "json_schema", "json_schema": {"name": "news_list", "strict": True, "schema": {}}}
    client = OpenAIClient.from_env(provider=provider)
    resp = asyncio.run(client.invoke(MESSAGES, response_format=fmt))

    assert extract_content(resp) == '{"items": []}'
    assert payloads == [
        {
            "model": "gpt-4o-mini",
            "messages": MESSAGES,
            "temperature": 0.3,
            "max_tokens": 1024,
            "response_format": fmt,
        }
    ]


def test_invoke_omits_response_format_when_not_given():
    payloads: List[Dict[str, Any]] = []

    async def provider(payload: Dict[str, Any]) -> Dict[str, Any]:
        payloads.append(payload)
        return {"choices": [{"message": {"content": "hi"}}]}

    asyncio.run(OpenAIClient.from_env(provider=provider).invoke(MESSAGES))

    assert "response_format" not in payloads[0]


def test_invoke_wraps_unexpected_provider_error_as_transient():
    async def provider(_: Dict[str, Any]) -> Dict[str, Any]:
        raise ConnectionResetError("reset by peer")

    with pytest.raises(TransientLLMError):
        asyncio.run(OpenAIClient.from_env(provider=provider).invoke(MESSAGES))


def test_invoke_does_not_retry_permanent_errors():
    calls = {"n": 0}

    async def provider(_: Dict[str, Any]) -> Dict[str, Any]:
        calls["n"] += 1
        raise PermanentLLMError("invalid schema")

    with pytest.raises(LLMError):
        asyncio.run(OpenAIClient.from_env(provider=provider).invoke(MESSAGES))
    assert calls["n"] == 1


@pytest.mark.parametrize(
    "response",
    [{}, {"choices": []}, {"choices": [{"message": {}}]}, {"choices": [{"message": {"content": None}}]}],
)
def test_extract_content_handles_missing_content(response: Dict[str, Any]):
    assert extract_content(response) is None


def test_settings_reject_blank_api_key(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "   ")
    reset_llm_settings_cache()

    with pytest.raises(RuntimeError):
        get_llm_settings()


def test_settings_defaults(monkeypatch):
    monkeypatch.delenv("LLM_MODEL", raising=False)
    monkeypatch.delenv("LLM_MAX_TOKENS", raising=False)
    monkeypatch.delenv("LLM_TEMPERATURE", raising=False)
    monkeypatch.delenv("LLM_REQUEST_TIMEOUT_SECONDS", raising=False)
    monkeypatch.delenv("OPENAI_BASE_URL", raising=False)
    reset_llm_settings_cache()

    settings = get_llm_settings()

    assert settings.llm_model == "gpt-4o-mini"
    assert settings.llm_max_tokens == 4096
    assert settings.llm_temperature == 0.3
    assert settings.llm_request_timeout_seconds is None
    assert settings.openai_base_url is None
