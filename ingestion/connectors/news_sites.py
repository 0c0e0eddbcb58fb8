"""News source adapters (北极星光伏网, 索比光伏网)."""

from __future__ import annotations

from urllib.parse import quote

from ingestion.models.domain import RecordKind

from .base import SourceAdapter


class BjxNewsAdapter(SourceAdapter):
    """北极星光伏网 search results, article links only.

    The link text is not required to contain the keyword; any title longer than
    10 characters is kept, since the search page is already keyword-filtered.
    """

    name = "bjx_news"
    platform = "北极星光伏网"
    kind = RecordKind.NEWS
    base_url = "https://guangfu.bjx.com.cn"
    limit = 8
    pattern_template = (
        r'<a[^>]+href="(?P<href>https?://guangfu\.bjx\.com\.cn/news/\d+/\d+\.shtml)"[^>]*>'
        r"(?P<title>[^<]{5,80})</a>"
    )

    def build_url(self, keyword: str) -> str:
        return f"https://guangfu.bjx.com.cn/search/?keyword={quote(keyword)}&type=news"

    def accept(self, title: str, keyword: str) -> bool:
        return keyword in title or len(title) > 10


class SolarBeNewsAdapter(SourceAdapter):
    name = "solarbe_news"
    platform = "索比光伏网"
    kind = RecordKind.NEWS
    base_url = "https://www.solarbe.com"
    limit = 6
    pattern_template = (
        r'<a[^>]+href="(?P<href>https?://www\.solarbe\.com/[^"]+)"[^>]*>'
        r"(?P<title>[^<]*{keyword}[^<]*)</a>"
    )

    def build_url(self, keyword: str) -> str:
        return f"https://www.solarbe.com/search?q={quote(keyword)}&type=news"
