"""Owner notification over an HTTP webhook."""

from __future__ import annotations

from typing import Optional

import httpx

from ingestion.settings import Settings, get_settings
from ingestion.utils.logging import get_logger

logger = get_logger(__name__)


async def notify_owner(
    title: str,
    content: str,
    *,
    settings: Optional[Settings] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> bool:
    """POST ``{"title", "content"}`` to the owner webhook.

    Returns True on a 2xx response. When no webhook is configured the message
    is only logged and False is returned. HTTP failures propagate; callers
    decide whether a lost notification matters.
    """
    config = settings or get_settings()
    url = config.owner_notify_webhook_url
    if not url:
        logger.info("notify.skipped", extra={"reason": "webhook_unset", "title": title})
        return False

    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=float(config.owner_notify_timeout_seconds))
    try:
        resp = await http.post(url, json={"title": title, "content": content})
        resp.raise_for_status()
    finally:
        if owns_client:
            await http.aclose()
    logger.info("notify.sent", extra={"title": title, "status_code": resp.status_code})
    return True
