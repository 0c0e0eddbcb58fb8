"""Title-prefix duplicate check with a pluggable existence lookup."""

from __future__ import annotations

from typing import Callable

from ingestion.utils.logging import get_logger

ExistsFn = Callable[[str], bool]

logger = get_logger(__name__)


class TitlePrefixDeduplicator:
    """Decides whether a candidate title is already stored.

    ``exists_fn`` answers "does any stored title contain this title's prefix".
    The check is a heuristic: titles sharing a boilerplate opening collide, and
    reworded duplicates slip through. When the lookup itself fails the
    candidate is treated as new, so an unavailable store never blocks inserts.
    """

    def __init__(self, exists_fn: ExistsFn, *, kind: str = "") -> None:
        self._exists = exists_fn
        self._kind = kind

    def is_duplicate(self, title: str) -> bool:
        try:
            return bool(self._exists(title))
        except Exception as exc:
            logger.warning(
                "dedup.lookup_failed",
                extra={"kind": self._kind, "title": title[:40], "error": str(exc)},
            )
            return False
