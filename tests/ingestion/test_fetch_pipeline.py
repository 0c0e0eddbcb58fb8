from __future__ import annotations

import asyncio
import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import httpx
import pytest
from sqlalchemy import select

from ingestion.connectors import FetchFn, SourceAdapter, build_adapters
from ingestion.db.models import News, Tender
from ingestion.db.session import session_scope
from ingestion.models.domain import RecordKind
from ingestion.repositories.content import news_exists
from ingestion.settings import reset_settings_cache
from ingestion.tasks import fetch as fetch_mod
from llm.client.openai_client import OpenAIClient
from llm.settings import get_llm_settings, reset_llm_settings_cache


@pytest.fixture(autouse=True)
def _env(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'fetch.db'}")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-123")
    monkeypatch.delenv("ENABLED_NEWS_SOURCES", raising=False)
    monkeypatch.delenv("ENABLED_TENDER_SOURCES", raising=False)
    reset_settings_cache()
    reset_llm_settings_cache()
    yield
    reset_settings_cache()
    reset_llm_settings_cache()


class _ScriptedLLM:
    """Answers by response schema name; records every request."""

    def __init__(self, answers: Dict[str, Optional[List[Dict[str, Any]]]]) -> None:
        self.answers = answers
        self.requests: List[Dict[str, Any]] = []

    async def __call__(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.requests.append(payload)
        name = payload["response_format"]["json_schema"]["name"]
        items = self.answers.get(name)
        content = None if items is None else json.dumps({"items": items}, ensure_ascii=False)
        return {"choices": [{"message": {"content": content}}]}

    def names(self) -> List[str]:
        return [r["response_format"]["json_schema"]["name"] for r in self.requests]


def _install(monkeypatch, llm: _ScriptedLLM, pages: Optional[Dict[str, str]] = None) -> None:
    async def _fetch(url: str) -> str:
        if pages is None or url not in pages:
            raise httpx.ConnectError(f"unreachable: {url}")
        return pages[url]

    def _adapters(kind: RecordKind, names: Sequence[str], _fetcher: FetchFn) -> List[SourceAdapter]:
        return build_adapters(kind, names, fetcher=_fetch)

    monkeypatch.setattr(fetch_mod, "ADAPTER_FACTORY", _adapters)
    monkeypatch.setattr(fetch_mod, "LLM_CLIENT_FACTORY", lambda: OpenAIClient(get_llm_settings(), provider=llm))


def _news(title: str) -> Dict[str, Any]:
    return {
        "title": title,
        "summary": "摘要",
        "sourceName": "北极星光伏网",
        "sourceUrl": "https://guangfu.bjx.com.cn/news/20260101/1.shtml",
        "category": "technology",
        "isImportant": False,
    }


def _tender(title: str) -> Dict[str, Any]:
    return {
        "title": title,
        "description": "设备采购",
        "projectType": "procurement",
        "budget": "未披露",
        "region": "江苏省苏州市",
        "publisherName": "某研究院",
        "isImportant": False,
        "status": "open",
        "sourceUrl": "",
        "sourcePlatform": "采招网",
    }


def _news_titles() -> List[str]:
    with session_scope() as session:
        return list(session.scalars(select(News.title).order_by(News.id)))


def _bjx_page(titles: Sequence[str]) -> str:
    return "".join(
        f'<a href="https://guangfu.bjx.com.cn/news/20260101/{i}.shtml">{t}</a>' for i, t in enumerate(titles)
    )


NEWS_A = "钙钛矿叠层电池认证效率突破34%创下新纪录"
NEWS_B = "工信部印发新型光伏电池产业高质量发展指导意见"


def test_all_sources_fail_and_llm_empty_yield_zero(monkeypatch):
    llm = _ScriptedLLM({})
    _install(monkeypatch, llm)

    async def _run():
        return await asyncio.gather(fetch_mod.fetch_latest_news(), fetch_mod.fetch_latest_tenders())

    assert asyncio.run(_run()) == [0, 0]
    # nothing scraped, so only the fallback was asked
    assert sorted(llm.names()) == ["news_list", "tender_list"]


def test_zero_scraped_requests_full_target_from_fallback(monkeypatch):
    llm = _ScriptedLLM({"tender_list": [_tender("钙钛矿中试线镀膜设备采购项目"), _tender("钙钛矿组件户外实证测试服务")]})
    _install(monkeypatch, llm)

    asyncio.run(fetch_mod.fetch_latest_news())
    inserted = asyncio.run(fetch_mod.fetch_latest_tenders())

    news_prompt = llm.requests[0]["messages"][0]["content"]
    tender_prompt = llm.requests[1]["messages"][0]["content"]
    assert "生成5条" in news_prompt
    assert "生成3条" in tender_prompt
    assert inserted == 2


def test_fallback_output_passes_the_same_dedup(monkeypatch):
    fetch_mod.ensure_schema()
    with session_scope() as session:
        session.add(Tender(title="钙钛矿中试线镀膜设备采购项目（二次）", published_at=datetime.now(timezone.utc)))

    llm = _ScriptedLLM({"tender_list": [_tender("钙钛矿中试线镀膜设备采购项目"), _tender("钙钛矿组件户外实证测试服务")]})
    _install(monkeypatch, llm)

    assert asyncio.run(fetch_mod.fetch_latest_tenders()) == 1


def test_end_to_end_inserts_parsed_news(monkeypatch):
    pages = {build_adapters(RecordKind.NEWS, ["bjx_news"])[0].build_url("钙钛矿"): _bjx_page([NEWS_A, NEWS_B])}
    llm = _ScriptedLLM({"news_parse_result": [_news(NEWS_A), _news(NEWS_B)], "news_list": []})
    _install(monkeypatch, llm, pages)

    started = datetime.now(timezone.utc)
    inserted = asyncio.run(fetch_mod.fetch_latest_news())

    assert inserted == 2
    assert _news_titles() == [NEWS_A, NEWS_B]
    assert llm.names() == ["news_parse_result", "news_list"]
    assert "生成3条" in llm.requests[1]["messages"][0]["content"]
    with session_scope() as session:
        for row in session.scalars(select(News)):
            published = row.published_at
            if published.tzinfo is None:
                published = published.replace(tzinfo=timezone.utc)
            assert started - timedelta(seconds=1) <= published <= datetime.now(timezone.utc) + timedelta(seconds=1)


def test_end_to_end_skips_prefix_duplicate(monkeypatch):
    fetch_mod.ensure_schema()
    with session_scope() as session:
        session.add(News(title="【快讯】" + NEWS_A, published_at=datetime.now(timezone.utc)))

    pages = {build_adapters(RecordKind.NEWS, ["bjx_news"])[0].build_url("钙钛矿"): _bjx_page([NEWS_A, NEWS_B])}
    llm = _ScriptedLLM({"news_parse_result": [_news(NEWS_A), _news(NEWS_B)], "news_list": []})
    _install(monkeypatch, llm, pages)

    assert asyncio.run(fetch_mod.fetch_latest_news()) == 1
    with session_scope() as session:
        assert news_exists(session, NEWS_B)


def test_same_run_items_sharing_a_title_prefix_insert_once(monkeypatch):
    # NEWS_A and the recalled title share their first 20 characters
    recalled = NEWS_A[:20] + "（国家光伏质检中心认证）"
    pages = {build_adapters(RecordKind.NEWS, ["bjx_news"])[0].build_url("钙钛矿"): _bjx_page([NEWS_A])}
    llm = _ScriptedLLM({"news_parse_result": [_news(NEWS_A)], "news_list": [_news(recalled)]})
    _install(monkeypatch, llm, pages)

    assert asyncio.run(fetch_mod.fetch_latest_news()) == 1
    assert _news_titles() == [NEWS_A]
    assert llm.names() == ["news_parse_result", "news_list"]


def test_two_parsed_items_sharing_a_title_prefix_insert_once(monkeypatch):
    reprint = NEWS_A + "（转载）"
    pages = {build_adapters(RecordKind.NEWS, ["bjx_news"])[0].build_url("钙钛矿"): _bjx_page([NEWS_A, reprint])}
    llm = _ScriptedLLM({"news_parse_result": [_news(NEWS_A), _news(reprint)], "news_list": []})
    _install(monkeypatch, llm, pages)

    assert asyncio.run(fetch_mod.fetch_latest_news()) == 1
    assert _news_titles() == [NEWS_A]


def test_insert_failure_is_skipped_per_item(monkeypatch):
    llm = _ScriptedLLM({"news_list": [_news("第一条钙钛矿新闻标题"), _news("第二条钙钛矿新闻标题")]})
    _install(monkeypatch, llm)
    original = fetch_mod._STORES[RecordKind.NEWS]

    def _flaky_insert(session, candidate, published_at):
        if candidate.title.startswith("第一条"):
            raise RuntimeError("disk full")
        return original.insert(session, candidate, published_at)

    monkeypatch.setitem(fetch_mod._STORES, RecordKind.NEWS, fetch_mod._KindStore(exists=original.exists, insert=_flaky_insert))

    assert asyncio.run(fetch_mod.fetch_latest_news()) == 1
    assert _news_titles() == ["第二条钙钛矿新闻标题"]


def test_missing_llm_configuration_does_not_raise(monkeypatch):
    _install(monkeypatch, _ScriptedLLM({}))

    def _broken_client() -> OpenAIClient:
        raise RuntimeError("LLM settings validation failed")

    monkeypatch.setattr(fetch_mod, "LLM_CLIENT_FACTORY", _broken_client)

    assert asyncio.run(fetch_mod.fetch_latest_news()) == 0
