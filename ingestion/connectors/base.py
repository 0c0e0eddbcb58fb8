"""Source adapter abstraction and the settle-all scrape helper."""

from __future__ import annotations

import asyncio
import re
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Awaitable, Callable, Iterator, List, Optional, Pattern, Sequence, Tuple
from urllib.parse import urljoin

from ingestion.models.domain import RawItem, RecordKind
from ingestion.utils.html import fetch_html
from ingestion.utils.logging import get_logger

FetchFn = Callable[[str], Awaitable[str]]

logger = get_logger(__name__)


@lru_cache(maxsize=64)
def _compile(template: str, keyword: str) -> Pattern[str]:
    # Templates carry regex quantifiers like {5,80}, so no str.format here.
    return re.compile(template.replace("{keyword}", re.escape(keyword)), re.IGNORECASE)


class SourceAdapter(ABC):
    """One scraping strategy per source site.

    Subclasses declare the search URL and a regular expression with ``href`` and
    ``title`` groups that is matched against the raw HTML. Markup drift on the
    site makes the pattern match nothing; that surfaces as an empty result, not
    an error.
    """

    name: str
    platform: str
    kind: RecordKind
    base_url: str
    limit: int
    pattern_template: str

    def __init__(self, fetcher: Optional[FetchFn] = None):
        self._fetcher: FetchFn = fetcher or fetch_html

    @abstractmethod
    def build_url(self, keyword: str) -> str:
        """Return the search/list page URL for ``keyword``."""

    def accept(self, title: str, keyword: str) -> bool:
        return True

    def link_pattern(self, keyword: str) -> Pattern[str]:
        return _compile(self.pattern_template, keyword)

    def _iter_links(self, html: str, keyword: str) -> Iterator[Tuple[str, str]]:
        for match in self.link_pattern(keyword).finditer(html):
            yield match.group("href"), match.group("title").strip()

    def _absolute(self, href: str) -> str:
        if href.startswith("http"):
            return href
        return urljoin(self.base_url, href)

    def parse(self, html: str, keyword: str) -> List[RawItem]:
        items: List[RawItem] = []
        for href, title in self._iter_links(html, keyword):
            if not title or not self.accept(title, keyword):
                continue
            items.append(RawItem(title=title, url=self._absolute(href), snippet="", platform=self.platform))
            if len(items) >= self.limit:
                break
        return items

    async def scrape(self, keyword: str) -> List[RawItem]:
        """Fetch and parse; any failure is logged and yields no items."""
        url = self.build_url(keyword)
        try:
            html = await self._fetcher(url)
            items = self.parse(html, keyword)
        except Exception as exc:
            logger.warning(
                "scrape.failed",
                extra={
                    "source": self.name,
                    "url": url,
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )
            return []
        logger.info("scrape.done", extra={"source": self.name, "items": len(items)})
        return items


async def scrape_all(adapters: Sequence[SourceAdapter], keyword: str) -> List[RawItem]:
    """Run every adapter concurrently and concatenate results in adapter order.

    Settle-all: one source failing never blocks or aborts the others.
    """
    results = await asyncio.gather(*(a.scrape(keyword) for a in adapters), return_exceptions=True)
    merged: List[RawItem] = []
    for adapter, result in zip(adapters, results):
        if isinstance(result, BaseException):
            logger.warning(
                "scrape.rejected",
                extra={"source": adapter.name, "error": str(result)},
            )
            continue
        merged.extend(result)
    return merged
