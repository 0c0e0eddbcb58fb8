"""One-shot ingestion run, or a scrape-only smoke test of the source adapters.

Usage:
  uv run -- python scripts/run_ingestion.py                  # full run, logged as manual_fetch
  uv run -- python scripts/run_ingestion.py --scheduled      # logged as scheduled_fetch
  uv run -- python scripts/run_ingestion.py --scrape-only -n 3

Reads configuration from .env via pydantic settings. A full run requires
DATABASE_URL and OPENAI_API_KEY; --scrape-only needs neither the LLM nor the
database and prints what each source returned.
"""

from __future__ import annotations

import argparse
import asyncio
import os
from typing import List

from ingestion.connectors import build_adapters
from ingestion.db.models import JobType
from ingestion.models.domain import RecordKind
from ingestion.settings import get_settings
from ingestion.tasks.daily import run_ingestion
from ingestion.tasks.fetch import build_fetcher
from ingestion.utils.logging import configure_logging


async def _scrape_only(top: int) -> int:
    cfg = get_settings()
    fetcher = build_fetcher(cfg)
    for kind, names in (
        (RecordKind.NEWS, cfg.enabled_news_sources),
        (RecordKind.TENDER, cfg.enabled_tender_sources),
    ):
        for adapter in build_adapters(kind, names, fetcher=fetcher):
            items = await adapter.scrape(cfg.scrape_keyword)
            print(f"[{kind.value}] {adapter.name} ({adapter.platform}): {len(items)} items")
            for idx, it in enumerate(items[:top], start=1):
                print(f"  {idx}. {it.title[:120]}\n     {it.url}")
    return 0


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Perovskite content ingestion")
    parser.add_argument("--scheduled", action="store_true", help="Record the run as scheduled_fetch")
    parser.add_argument("--scrape-only", action="store_true", help="Only scrape and print raw items")
    parser.add_argument("-n", "--top", type=int, default=5, help="Print top N items per source (default: 5)")
    args = parser.parse_args(argv)

    # Scrape-only runs do not touch the database
    if args.scrape_only:
        os.environ.setdefault("DATABASE_URL", "sqlite:///./var/dev.db")

    cfg = get_settings()
    configure_logging(cfg.structlog_level, json_enabled=cfg.log_json)

    if args.scrape_only:
        return asyncio.run(_scrape_only(args.top))

    job_type = JobType.SCHEDULED_FETCH if args.scheduled else JobType.MANUAL_FETCH
    result = asyncio.run(run_ingestion(job_type))
    if not result.success:
        print(f"Ingestion failed: {result.error}")
        return 2
    print(f"Inserted {result.news_count} news and {result.tender_count} tenders.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
