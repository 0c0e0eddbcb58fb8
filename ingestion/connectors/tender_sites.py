"""Tender source adapters (采招网, 北极星招投标, 全国公共资源交易平台, 中国电建)."""

from __future__ import annotations

from urllib.parse import quote

from ingestion.models.domain import RecordKind

from .base import SourceAdapter

_GGZY_QUERY = (
    "DEAL_TIME=&DEAL_CLASSIFY_ID=&DEAL_TYPE=&DEAL_PROVINCE=&DEAL_CITY=&DEAL_COUNTY=&DEAL_STAGE="
    "&DEAL_ISSHOW_INVALID=1&BID_SECTION_NAME=&TENDEREE=&AGENCY=&DEAL_NAME={name}&DEAL_CODE="
    "&DEAL_CONTENT=&DEAL_AMOUNT_START=&DEAL_AMOUNT_END=&DEAL_FILED=DEAL_TIME&DEAL_SORT=DESC"
    "&PAGEINDEX=1&PAGESIZE=10&DEAL_STATUS="
)


class BidCenterAdapter(SourceAdapter):
    name = "bidcenter"
    platform = "采招网"
    kind = RecordKind.TENDER
    base_url = "https://www.bidcenter.com.cn"
    limit = 10
    pattern_template = (
        r'<a[^>]+href="(?P<href>[^"]*/zbkeyw[^"]*|[^"]*bidDetail[^"]*)"[^>]*>'
        r"(?P<title>[^<]*{keyword}[^<]*)</a>"
    )

    def build_url(self, keyword: str) -> str:
        return f"https://www.bidcenter.com.cn/search/?keyword={quote(keyword)}&type=1"


class BjxTenderAdapter(SourceAdapter):
    name = "bjx_tender"
    platform = "北极星光伏网"
    kind = RecordKind.TENDER
    base_url = "https://guangfu.bjx.com.cn"
    limit = 8
    pattern_template = (
        r'<a[^>]+href="(?P<href>https?://guangfu\.bjx\.com\.cn/zb/[^"]+)"[^>]*>'
        r"(?P<title>[^<]*{keyword}[^<]*)</a>"
    )

    def build_url(self, keyword: str) -> str:
        return f"https://guangfu.bjx.com.cn/zb/search/?keyword={quote(keyword)}"


class GgzyTenderAdapter(SourceAdapter):
    """Matches the ``title`` attribute; the listing truncates visible link text."""

    name = "ggzy"
    platform = "全国公共资源交易平台"
    kind = RecordKind.TENDER
    base_url = "https://deal.ggzy.gov.cn"
    limit = 5
    pattern_template = r'<a[^>]+href="(?P<href>[^"]+)"[^>]*title="(?P<title>[^"]*{keyword}[^"]*)"[^>]*>'

    def build_url(self, keyword: str) -> str:
        query = _GGZY_QUERY.replace("{name}", quote(keyword))
        return f"https://deal.ggzy.gov.cn/ds/deal/dealList_find.jsp?{query}"


class PowerChinaTenderAdapter(SourceAdapter):
    """中国电建 procurement column. Fixed list page, keyword is only used for matching."""

    name = "powerchina"
    platform = "中国电建"
    kind = RecordKind.TENDER
    base_url = "https://www.powerchina.cn"
    limit = 5
    pattern_template = r'<a[^>]+href="(?P<href>[^"]+)"[^>]*>(?P<title>[^<]*(?:{keyword}|perovskite)[^<]*)</a>'

    def build_url(self, keyword: str) -> str:
        return "https://www.powerchina.cn/col/col5741/index.html"
