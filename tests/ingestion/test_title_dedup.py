from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from ingestion.db.models import Base, News, Tender
from ingestion.db.session import get_engine, session_scope
from ingestion.models.domain import NewsCandidate
from ingestion.repositories.content import insert_news, news_exists, tender_exists, title_prefix
from ingestion.services.deduplicator import TitlePrefixDeduplicator
from ingestion.settings import reset_settings_cache


@pytest.fixture(autouse=True)
def _env(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'dedup.db'}")
    reset_settings_cache()
    Base.metadata.create_all(bind=get_engine())
    yield
    reset_settings_cache()


STORED = "隆基绿能宣布钙钛矿晶硅叠层电池效率达到34.85%刷新世界纪录"


def _store_news(title: str) -> None:
    with session_scope() as session:
        session.add(News(title=title, published_at=datetime.now(timezone.utc)))


def test_title_prefix_uses_first_twenty_chars():
    assert title_prefix(STORED) == STORED[:20]
    assert title_prefix("短标题") == "短标题"


def test_prefix_check_catches_real_duplicate():
    _store_news(STORED)
    candidate = STORED[:20] + "，业内专家点评"

    with session_scope() as session:
        assert news_exists(session, candidate) is True


def test_prefix_check_misses_reworded_duplicate():
    _store_news(STORED)
    reworded = "刷新世界纪录！隆基绿能钙钛矿晶硅叠层电池效率达34.85%"

    with session_scope() as session:
        assert news_exists(session, reworded) is False


def test_prefix_check_matches_anywhere_in_stored_title():
    _store_news("【快讯】" + STORED)

    with session_scope() as session:
        assert news_exists(session, STORED) is True


def test_like_wildcards_in_prefix_match_literally():
    _store_news("效率提升至26.1%的钙钛矿组件通过认证")

    with session_scope() as session:
        assert news_exists(session, "效率提升至26_1%的钙钛矿组件通过认证") is False
        assert news_exists(session, "效率提升至26.1%的钙钛矿组件通过认证") is True


def test_news_and_tender_tables_are_checked_separately():
    _store_news(STORED)

    with session_scope() as session:
        assert tender_exists(session, STORED) is False
        session.add(Tender(title=STORED, published_at=datetime.now(timezone.utc)))
        session.flush()
        assert tender_exists(session, STORED) is True


def test_insert_news_persists_candidate_fields():
    candidate = NewsCandidate.model_validate(
        {
            "title": "钙钛矿产业联盟成立",
            "summary": "",
            "sourceName": "索比光伏网",
            "sourceUrl": "",
            "category": "policy",
            "isImportant": True,
        }
    )
    published = datetime(2026, 1, 1, tzinfo=timezone.utc)

    with session_scope() as session:
        row = insert_news(session, candidate, published)
        row_id = row.id

    with session_scope() as session:
        stored = session.get(News, row_id)
        assert stored is not None
        assert stored.summary is None
        assert stored.source_url is None
        assert stored.source_name == "索比光伏网"
        assert stored.category.value == "policy"
        assert stored.is_important is True


def test_deduplicator_treats_lookup_failure_as_new():
    def _broken(title: str) -> bool:
        raise RuntimeError("database is locked")

    dedup = TitlePrefixDeduplicator(_broken, kind="news")

    assert dedup.is_duplicate(STORED) is False


def test_deduplicator_delegates_to_lookup():
    seen = []

    def _lookup(title: str) -> bool:
        seen.append(title)
        return True

    assert TitlePrefixDeduplicator(_lookup).is_duplicate("标题") is True
    assert seen == ["标题"]
