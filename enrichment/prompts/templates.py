"""Prompt and JSON-schema registry for the LLM enrichment steps.

One ``PromptTemplate`` per record kind. The parse step (structure scraped
anchors) and the fallback step (recall items from model knowledge) share the
same item schema and candidate model, so both paths produce identical shapes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Type

from ingestion.models.domain import (
    CandidateBase,
    NewsCandidate,
    RawItem,
    RecordKind,
    TenderCandidate,
)


def _object_schema(fields: Dict[str, str]) -> Dict[str, Any]:
    item = {
        "type": "object",
        "properties": {name: {"type": kind} for name, kind in fields.items()},
        "required": list(fields),
        "additionalProperties": False,
    }
    return {
        "type": "object",
        "properties": {"items": {"type": "array", "items": item}},
        "required": ["items"],
        "additionalProperties": False,
    }


NEWS_ITEM_FIELDS: Dict[str, str] = {
    "title": "string",
    "summary": "string",
    "sourceName": "string",
    "sourceUrl": "string",
    "category": "string",
    "isImportant": "boolean",
}

TENDER_ITEM_FIELDS: Dict[str, str] = {
    "title": "string",
    "description": "string",
    "projectType": "string",
    "budget": "string",
    "region": "string",
    "publisherName": "string",
    "isImportant": "boolean",
    "status": "string",
    "sourceUrl": "string",
    "sourcePlatform": "string",
}

NEWS_SCHEMA = _object_schema(NEWS_ITEM_FIELDS)
TENDER_SCHEMA = _object_schema(TENDER_ITEM_FIELDS)


NEWS_PARSE_SYSTEM = (
    "你是一位专业的钙钛矿光伏行业资讯编辑。请对以下从新闻网站抓取的原始资讯进行解析和结构化处理。\n"
    "对每条信息，提取或推断：\n"
    "- title: 新闻标题（保持原标题）\n"
    "- summary: 新闻摘要（100字以内，描述新闻主要内容）\n"
    "- sourceName: 来源媒体名称\n"
    "- sourceUrl: 原始链接（保持不变）\n"
    "- category: domestic（国内动态）/ international（国际资讯）/ research（技术研究）/ "
    "policy（政策法规）/ market（市场分析）/ technology（技术前沿）\n"
    "- isImportant: 是否重要（效率突破、重大融资、重要政策则为true）\n"
    "\n"
    "今天日期：{today}"
)

NEWS_FALLBACK_SYSTEM = (
    "你是一位专业的钙钛矿光伏行业资讯编辑。请根据你对近期（2025-2026年）钙钛矿光伏行业动态的了解，"
    "生成{count}条真实可信的行业资讯。\n"
    "要求：\n"
    "1. 必须是真实发生的行业动态（效率突破、企业融资、产线建设、政策发布、国际合作等）\n"
    "2. sourceName应为真实的媒体或机构名称\n"
    "3. sourceUrl填写对应媒体网站的相关频道URL（如北极星光伏网、索比光伏网等）\n"
    "4. 内容多样化，涵盖国内外动态、技术研究、政策法规等不同类别"
)

TENDER_PARSE_SYSTEM = (
    "你是一位专业的钙钛矿光伏行业招投标信息编辑。请对以下从招标网站抓取的原始招标信息进行解析和结构化处理。\n"
    "对每条信息，提取或推断：\n"
    "- title: 招标项目标题（保持原标题）\n"
    "- description: 项目描述（100字以内，描述项目内容和意义）\n"
    "- projectType: procurement（设备采购）/ construction（工程建设）/ research（研究合作）/ "
    "service（服务外包）/ other（其他）\n"
    "- budget: 预算金额（如已知，否则填\"未披露\"）\n"
    "- region: 项目地区（如北京市、广东省深圳市等）\n"
    "- publisherName: 招标方名称\n"
    "- isImportant: 是否重要（涉及央企、大型项目、金额超千万则为true）\n"
    "- status: open（招标中）/ closed（已截止）/ awarded（已中标）/ cancelled（已取消）\n"
    "- sourceUrl: 原始链接（保持不变）\n"
    "- sourcePlatform: 来源平台名称\n"
    "\n"
    "今天日期：{today}"
)

TENDER_FALLBACK_SYSTEM = (
    "你是一位专业的钙钛矿光伏行业招投标信息编辑。请根据你对近期（2025-2026年）钙钛矿光伏行业招投标动态的了解，"
    "生成{count}条真实可信的招投标信息。\n"
    "要求：\n"
    "1. 必须是真实发生或高度可能发生的项目（基于已知的行业动态）\n"
    "2. 招标方应为真实存在的机构（央企、高校、科研院所等）\n"
    "3. sourceUrl填写对应招标平台的搜索页面URL（如采招网、北极星等）\n"
    "4. 不要重复已知的华能清能院、河南大学、四川融创中心等项目\n"
    "5. 重点关注：设备采购、中试产线建设、研发合作、材料检测等方向"
)


def _news_line(index: int, item: RawItem) -> str:
    return f"[{index}] 标题: {item.title}\n来源: {item.platform}\n链接: {item.url}"


def _tender_line(index: int, item: RawItem) -> str:
    return f"{_news_line(index, item)}\n摘要: {item.snippet}"


@dataclass(frozen=True)
class PromptTemplate:
    kind: RecordKind
    parse_schema_name: str
    fallback_schema_name: str
    schema: Dict[str, Any]
    parse_system: str
    fallback_system: str
    parse_user: str
    fallback_user: str
    format_item: Callable[[int, RawItem], str]
    candidate_model: Type[CandidateBase]


NEWS_TEMPLATE = PromptTemplate(
    kind=RecordKind.NEWS,
    parse_schema_name="news_parse_result",
    fallback_schema_name="news_list",
    schema=NEWS_SCHEMA,
    parse_system=NEWS_PARSE_SYSTEM,
    fallback_system=NEWS_FALLBACK_SYSTEM,
    parse_user="请解析以下{n}条钙钛矿光伏资讯：\n\n{body}",
    fallback_user="今天是{today}，请生成{count}条近期钙钛矿光伏行业资讯，要求内容真实、来源可信。",
    format_item=_news_line,
    candidate_model=NewsCandidate,
)

TENDER_TEMPLATE = PromptTemplate(
    kind=RecordKind.TENDER,
    parse_schema_name="tender_parse_result",
    fallback_schema_name="tender_list",
    schema=TENDER_SCHEMA,
    parse_system=TENDER_PARSE_SYSTEM,
    fallback_system=TENDER_FALLBACK_SYSTEM,
    parse_user="请解析以下{n}条招标信息：\n\n{body}",
    fallback_user="今天是{today}，请生成{count}条近期钙钛矿光伏招投标信息，要求来源可信、内容真实。",
    format_item=_tender_line,
    candidate_model=TenderCandidate,
)

TEMPLATES: Dict[RecordKind, PromptTemplate] = {
    RecordKind.NEWS: NEWS_TEMPLATE,
    RecordKind.TENDER: TENDER_TEMPLATE,
}


def get_template(kind: RecordKind | str) -> PromptTemplate:
    return TEMPLATES[RecordKind(kind)]


def _today(today: Optional[date]) -> str:
    return (today or datetime.now(timezone.utc).date()).isoformat()


def response_format(template: PromptTemplate, *, fallback: bool = False) -> Dict[str, Any]:
    """Strict ``json_schema`` response format for the parse or fallback call."""
    name = template.fallback_schema_name if fallback else template.parse_schema_name
    return {
        "type": "json_schema",
        "json_schema": {"name": name, "strict": True, "schema": template.schema},
    }


def build_parse_messages(
    template: PromptTemplate,
    raw_items: Sequence[RawItem],
    *,
    today: Optional[date] = None,
) -> List[dict]:
    body = "\n\n".join(template.format_item(i, item) for i, item in enumerate(raw_items, start=1))
    return [
        {"role": "system", "content": template.parse_system.format(today=_today(today))},
        {"role": "user", "content": template.parse_user.format(n=len(raw_items), body=body)},
    ]


def build_fallback_messages(
    template: PromptTemplate,
    count: int,
    *,
    today: Optional[date] = None,
) -> List[dict]:
    return [
        {"role": "system", "content": template.fallback_system.format(count=count)},
        {"role": "user", "content": template.fallback_user.format(today=_today(today), count=count)},
    ]
