"""Source adapters keyed by name, one registry per record kind."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Type

from ingestion.models.domain import RecordKind

from .base import (  # noqa: F401
    FetchFn,
    SourceAdapter,
    scrape_all,
)
from .news_sites import BjxNewsAdapter, SolarBeNewsAdapter
from .tender_sites import (
    BidCenterAdapter,
    BjxTenderAdapter,
    GgzyTenderAdapter,
    PowerChinaTenderAdapter,
)

NEWS_ADAPTERS: Dict[str, Type[SourceAdapter]] = {
    cls.name: cls for cls in (BjxNewsAdapter, SolarBeNewsAdapter)
}
TENDER_ADAPTERS: Dict[str, Type[SourceAdapter]] = {
    cls.name: cls
    for cls in (BidCenterAdapter, BjxTenderAdapter, GgzyTenderAdapter, PowerChinaTenderAdapter)
}


def registry_for(kind: RecordKind) -> Dict[str, Type[SourceAdapter]]:
    return NEWS_ADAPTERS if kind is RecordKind.NEWS else TENDER_ADAPTERS


def build_adapters(
    kind: RecordKind,
    names: Iterable[str],
    fetcher: Optional[FetchFn] = None,
) -> List[SourceAdapter]:
    """Instantiate the named adapters of ``kind`` in the given order."""
    registry = registry_for(kind)
    return [registry[name](fetcher) for name in names]


__all__ = [
    "BidCenterAdapter",
    "BjxNewsAdapter",
    "BjxTenderAdapter",
    "FetchFn",
    "GgzyTenderAdapter",
    "NEWS_ADAPTERS",
    "PowerChinaTenderAdapter",
    "SolarBeNewsAdapter",
    "SourceAdapter",
    "TENDER_ADAPTERS",
    "build_adapters",
    "registry_for",
    "scrape_all",
]
