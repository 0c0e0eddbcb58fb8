"""HTML fetch with linear-backoff retry, and a best-effort tag stripper."""

from __future__ import annotations

import asyncio
import re
from typing import Awaitable, Callable, Dict, Optional

import httpx

from ingestion.utils.logging import get_logger

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

BROWSER_HEADERS: Dict[str, str] = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8",
    "Accept-Encoding": "gzip, deflate",
    "Referer": "https://www.google.com/",
}

DEFAULT_TIMEOUT_SECONDS = 15.0
DEFAULT_BACKOFF_SECONDS = 2.0
MAX_REDIRECTS = 5

SleepFn = Callable[[float], Awaitable[None]]

logger = get_logger(__name__)


def retry_delay(attempt: int, backoff_seconds: float = DEFAULT_BACKOFF_SECONDS) -> float:
    """Delay after the failed 0-based ``attempt``: linear, uncapped."""
    return backoff_seconds * (attempt + 1)


async def fetch_html(
    url: str,
    retries: int = 2,
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
    client: Optional[httpx.AsyncClient] = None,
    sleep: SleepFn = asyncio.sleep,
) -> str:
    """GET ``url`` as a desktop browser and return the body text.

    Makes up to ``retries + 1`` attempts. Non-2xx responses count as failures.
    After the last failed attempt the underlying ``httpx`` error is re-raised.
    """
    owns_client = client is None
    http = client or httpx.AsyncClient(
        headers=BROWSER_HEADERS,
        timeout=timeout,
        follow_redirects=True,
        max_redirects=MAX_REDIRECTS,
    )
    try:
        for attempt in range(retries + 1):
            try:
                resp = await http.get(url, headers=BROWSER_HEADERS, timeout=timeout)
                resp.raise_for_status()
                return resp.text
            except httpx.HTTPError as exc:
                if attempt >= retries:
                    raise
                delay = retry_delay(attempt, backoff_seconds)
                logger.info(
                    "http.fetch.retry",
                    extra={"url": url, "attempt": attempt + 1, "delay": delay, "error": str(exc)},
                )
                await sleep(delay)
    finally:
        if owns_client:
            await http.aclose()
    raise AssertionError("unreachable")  # pragma: no cover


_SCRIPT_RE = re.compile(r"<script[\s\S]*?</script>", re.IGNORECASE)
_STYLE_RE = re.compile(r"<style[\s\S]*?</style>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s{2,}")

_ENTITIES = (
    ("&nbsp;", " "),
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
)


def strip_html(html: str) -> str:
    """Drop script/style blocks and tags, unescape a few entities, squash whitespace.

    Not an HTML parser; anchors are scraped from raw HTML by the connectors.
    """
    text = _SCRIPT_RE.sub("", html)
    text = _STYLE_RE.sub("", text)
    text = _TAG_RE.sub(" ", text)
    for entity, char in _ENTITIES:
        text = text.replace(entity, char)
    return _WS_RE.sub(" ", text).strip()
