"""OpenAI chat completion wrapper.

- Async ``invoke`` returning an OpenAI-shaped dict, so callers and tests share
  one response shape regardless of the transport.
- Provider injection removes the network dependency in tests.
- No retries at this layer; callers decide how to degrade.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ingestion.utils.logging import get_logger
from llm.settings import LLMSettings, get_llm_settings

logger = get_logger(__name__)


class LLMError(Exception):
    """Base error for LLM calls."""


class TransientLLMError(LLMError):
    """Temporary failure (timeout, rate limit, upstream 5xx)."""


class PermanentLLMError(LLMError):
    """Non-recoverable failure (bad request, auth, missing library)."""


ProviderFn = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]


def _classify_openai_error(exc: Exception) -> LLMError:
    import openai

    if isinstance(exc, (openai.APITimeoutError, openai.APIConnectionError, openai.RateLimitError)):
        return TransientLLMError(f"LLM upstream unavailable: {exc}")
    if isinstance(exc, openai.APIStatusError) and exc.status_code >= 500:
        return TransientLLMError(f"LLM upstream error: {exc.status_code}")
    return PermanentLLMError(f"LLM request rejected: {exc}")


def extract_content(response: Dict[str, Any]) -> Optional[str]:
    """Return ``choices[0].message.content`` or None when absent."""
    choices = response.get("choices") or []
    if not choices:
        return None
    message = choices[0].get("message") or {}
    content = message.get("content")
    return content if isinstance(content, str) else None


@dataclass(frozen=True)
class OpenAIClient:
    settings: LLMSettings
    provider: Optional[ProviderFn] = None

    @classmethod
    def from_env(cls, provider: Optional[ProviderFn] = None) -> "OpenAIClient":
        return cls(get_llm_settings(), provider=provider)

    def _get_provider(self) -> ProviderFn:
        if self.provider is not None:
            return self.provider
        try:
            from openai import AsyncOpenAI
        except ImportError as exc:  # pragma: no cover - tests inject a provider
            raise PermanentLLMError("openai library is not installed.") from exc

        kwargs: Dict[str, Any] = {"api_key": self.settings.openai_api_key}
        if self.settings.openai_base_url:
            kwargs["base_url"] = self.settings.openai_base_url
        if self.settings.llm_request_timeout_seconds is not None:
            kwargs["timeout"] = float(self.settings.llm_request_timeout_seconds)
        client = AsyncOpenAI(**kwargs)

        async def _call(payload: Dict[str, Any]) -> Dict[str, Any]:  # pragma: no cover - network
            try:
                resp = await client.chat.completions.create(**payload)
            except Exception as exc:
                raise _classify_openai_error(exc) from exc
            usage = resp.usage
            return {
                "choices": [{"message": {"content": resp.choices[0].message.content}}],
                "usage": {
                    "prompt_tokens": getattr(usage, "prompt_tokens", 0),
                    "completion_tokens": getattr(usage, "completion_tokens", 0),
                },
                "model": resp.model,
            }

        return _call

    def build_payload(
        self,
        messages: List[Dict[str, str]],
        response_format: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.settings.llm_model,
            "messages": messages,
            "temperature": float(self.settings.llm_temperature),
            "max_tokens": int(self.settings.llm_max_tokens),
        }
        if response_format is not None:
            payload["response_format"] = response_format
        return payload

    async def invoke(
        self,
        messages: List[Dict[str, str]],
        response_format: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Send one chat completion request and return the normalised response."""
        payload = self.build_payload(messages, response_format)
        provider = self._get_provider()
        try:
            resp = await provider(payload)
        except LLMError:
            raise
        except Exception as exc:
            raise TransientLLMError(f"LLM provider failed: {exc}") from exc
        usage = resp.get("usage") or {}
        logger.info(
            "llm.invoke.done",
            extra={
                "model": resp.get("model") or self.settings.llm_model,
                "prompt_tokens": int(usage.get("prompt_tokens", 0) or 0),
                "completion_tokens": int(usage.get("completion_tokens", 0) or 0),
            },
        )
        return resp
