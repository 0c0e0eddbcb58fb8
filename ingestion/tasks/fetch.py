"""News and tender fetchers: scrape, enrich, deduplicate, insert."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from functools import partial
from typing import Callable, List, Optional, Sequence

from sqlalchemy.orm import Session

from enrichment.extractor import generate_from_knowledge, parse_with_llm
from ingestion.connectors import FetchFn, SourceAdapter, build_adapters, scrape_all
from ingestion.db.models import Base
from ingestion.db.session import get_engine, session_scope
from ingestion.models.domain import CandidateBase, RecordKind
from ingestion.repositories.content import insert_news, insert_tender, news_exists, tender_exists
from ingestion.services.deduplicator import TitlePrefixDeduplicator
from ingestion.settings import Settings, get_settings
from ingestion.utils.html import fetch_html
from ingestion.utils.logging import get_logger
from llm.client.openai_client import OpenAIClient

# Pluggable for tests: (kind, enabled source names, fetcher) -> adapters.
ADAPTER_FACTORY: Callable[[RecordKind, Sequence[str], FetchFn], List[SourceAdapter]] | None = None
# Pluggable for tests: () -> OpenAIClient with an injected provider.
LLM_CLIENT_FACTORY: Callable[[], OpenAIClient] | None = None

logger = get_logger(__name__)


@dataclass(frozen=True)
class _KindStore:
    exists: Callable[[Session, str, int], bool]
    insert: Callable[[Session, CandidateBase, datetime], object]


_STORES = {
    RecordKind.NEWS: _KindStore(exists=news_exists, insert=insert_news),
    RecordKind.TENDER: _KindStore(exists=tender_exists, insert=insert_tender),
}


def ensure_schema() -> None:
    # For local runs/tests, ensure schema exists (idempotent)
    Base.metadata.create_all(bind=get_engine())


def build_fetcher(settings: Settings) -> FetchFn:
    return partial(
        fetch_html,
        retries=settings.http_max_retries,
        timeout=float(settings.http_timeout_seconds),
        backoff_seconds=float(settings.http_retry_backoff_seconds),
    )


def _get_adapters(kind: RecordKind, settings: Settings) -> List[SourceAdapter]:
    names = settings.enabled_news_sources if kind is RecordKind.NEWS else settings.enabled_tender_sources
    fetcher = build_fetcher(settings)
    if ADAPTER_FACTORY is not None:
        return ADAPTER_FACTORY(kind, names, fetcher)
    return build_adapters(kind, names, fetcher=fetcher)


def _get_llm_client() -> OpenAIClient:
    if LLM_CLIENT_FACTORY is not None:
        return LLM_CLIENT_FACTORY()
    return OpenAIClient.from_env()


def _target_count(kind: RecordKind, settings: Settings) -> int:
    return settings.news_target_count if kind is RecordKind.NEWS else settings.tender_target_count


def insert_candidates(
    kind: RecordKind,
    candidates: Sequence[CandidateBase],
    *,
    prefix_length: int,
    now: Optional[Callable[[], datetime]] = None,
) -> int:
    """Insert candidates that pass the title-prefix check; one transaction per item.

    A failing item is logged and skipped. Returns the number of rows inserted.
    """
    store = _STORES[kind]
    clock = now or (lambda: datetime.now(timezone.utc))

    def _lookup(title: str) -> bool:
        with session_scope() as session:
            return store.exists(session, title, prefix_length)

    dedup = TitlePrefixDeduplicator(_lookup, kind=kind.value)
    inserted = 0
    for candidate in candidates:
        try:
            if dedup.is_duplicate(candidate.title):
                logger.info("fetch.duplicate", extra={"kind": kind.value, "title": candidate.title[:40]})
                continue
            with session_scope() as session:
                store.insert(session, candidate, clock())
            inserted += 1
        except Exception as exc:
            logger.warning(
                "fetch.insert_failed",
                extra={
                    "kind": kind.value,
                    "title": candidate.title[:40],
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )
    return inserted


async def fetch_latest(kind: RecordKind) -> int:
    """Run the whole pipeline for one record kind and return rows inserted.

    Never raises: anything escaping a stage is logged and the count so far is
    returned.
    """
    count = 0
    try:
        settings = get_settings()
        ensure_schema()
        logger.info("fetch.start", extra={"kind": kind.value})

        adapters = _get_adapters(kind, settings)
        raw_items = await scrape_all(adapters, settings.scrape_keyword)
        logger.info("fetch.scraped", extra={"kind": kind.value, "raw_items": len(raw_items)})

        client = _get_llm_client()
        candidates: List[CandidateBase] = []
        if raw_items:
            candidates = await parse_with_llm(
                kind,
                raw_items,
                client,
                batch_size=settings.llm_parse_batch_size,
            )

        needed = max(0, _target_count(kind, settings) - len(candidates))
        if needed > 0:
            logger.info("fetch.fallback", extra={"kind": kind.value, "needed": needed})
            candidates = candidates + await generate_from_knowledge(kind, needed, client)

        count = insert_candidates(kind, candidates, prefix_length=settings.dedup_prefix_length)
        logger.info(
            "fetch.done",
            extra={"kind": kind.value, "candidates": len(candidates), "inserted": count},
        )
    except Exception:
        logger.exception("fetch.failed", extra={"kind": kind.value, "inserted": count})
    return count


async def fetch_latest_news() -> int:
    return await fetch_latest(RecordKind.NEWS)


async def fetch_latest_tenders() -> int:
    return await fetch_latest(RecordKind.TENDER)
