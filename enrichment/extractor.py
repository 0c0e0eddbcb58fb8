"""LLM parse/enrich step and knowledge-fallback step.

Both steps return validated candidates and never raise for LLM trouble: an
empty or malformed reply, a rejected request or a schema violation all yield
fewer (possibly zero) candidates.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from enrichment.prompts.templates import (
    PromptTemplate,
    build_fallback_messages,
    build_parse_messages,
    get_template,
    response_format,
)
from ingestion.models.domain import CandidateBase, RawItem, RecordKind
from ingestion.utils.logging import get_logger
from llm.client.openai_client import LLMError, OpenAIClient, extract_content

DEFAULT_PARSE_BATCH_SIZE = 10

logger = get_logger(__name__)


def _decode_items(template: PromptTemplate, content: Optional[str], *, step: str) -> List[CandidateBase]:
    if not content:
        logger.info("enrich.empty_content", extra={"kind": template.kind.value, "step": step})
        return []
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        logger.warning(
            "enrich.malformed_json",
            extra={"kind": template.kind.value, "step": step, "error": str(exc)},
        )
        return []
    raw = data.get("items") if isinstance(data, dict) else None
    if not isinstance(raw, list):
        logger.warning("enrich.missing_items", extra={"kind": template.kind.value, "step": step})
        return []

    candidates: List[CandidateBase] = []
    for index, entry in enumerate(raw):
        if not isinstance(entry, dict):
            continue
        try:
            candidates.append(template.candidate_model.model_validate(entry))
        except ValidationError as exc:
            logger.warning(
                "enrich.item_invalid",
                extra={
                    "kind": template.kind.value,
                    "step": step,
                    "index": index,
                    "errors": exc.error_count(),
                },
            )
    return candidates


async def _complete(
    client: OpenAIClient,
    template: PromptTemplate,
    messages: List[dict],
    fmt: Dict[str, Any],
    *,
    step: str,
) -> List[CandidateBase]:
    try:
        resp = await client.invoke(messages, response_format=fmt)
    except LLMError as exc:
        logger.warning(
            "enrich.llm_failed",
            extra={
                "kind": template.kind.value,
                "step": step,
                "error_type": type(exc).__name__,
                "error": str(exc),
            },
        )
        return []
    items = _decode_items(template, extract_content(resp), step=step)
    logger.info("enrich.done", extra={"kind": template.kind.value, "step": step, "items": len(items)})
    return items


async def parse_with_llm(
    kind: RecordKind | str,
    raw_items: Sequence[RawItem],
    client: OpenAIClient,
    *,
    batch_size: int = DEFAULT_PARSE_BATCH_SIZE,
) -> List[CandidateBase]:
    """Structure up to ``batch_size`` scraped items into candidates of ``kind``."""
    if not raw_items:
        return []
    template = get_template(kind)
    batch = list(raw_items[:batch_size])
    messages = build_parse_messages(template, batch)
    return await _complete(client, template, messages, response_format(template), step="parse")


async def generate_from_knowledge(
    kind: RecordKind | str,
    count: int,
    client: OpenAIClient,
) -> List[CandidateBase]:
    """Ask the model to recall ``count`` recent items of ``kind`` with no scraped input.

    The output is unverified; it passes through the same validation and
    duplicate check as parsed items.
    """
    if count <= 0:
        return []
    template = get_template(kind)
    messages = build_fallback_messages(template, count)
    return await _complete(
        client,
        template,
        messages,
        response_format(template, fallback=True),
        step="fallback",
    )
