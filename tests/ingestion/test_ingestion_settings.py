import pytest

from ingestion.settings import get_settings, reset_settings_cache


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    reset_settings_cache()
    yield
    reset_settings_cache()


def _set_required_env(monkeypatch, **overrides):
    defaults = {
        "DATABASE_URL": "sqlite:///./var/dev.db",
    }
    defaults.update(overrides)
    for key, value in defaults.items():
        monkeypatch.setenv(key, value)


def test_get_settings_defaults(monkeypatch):
    for name in ("ENABLED_NEWS_SOURCES", "ENABLED_TENDER_SOURCES", "SCRAPE_KEYWORD", "ADMIN_API_TOKEN"):
        monkeypatch.delenv(name, raising=False)
    _set_required_env(monkeypatch)

    settings = get_settings()

    assert settings.database_url == "sqlite:///./var/dev.db"
    assert settings.scrape_keyword == "钙钛矿"
    assert settings.http_timeout_seconds == 15.0
    assert settings.http_max_retries == 2
    assert settings.http_retry_backoff_seconds == 2.0
    assert (settings.news_target_count, settings.tender_target_count) == (5, 3)
    assert settings.dedup_prefix_length == 20
    assert settings.enabled_news_sources == ["bjx_news", "solarbe_news"]
    assert settings.enabled_tender_sources == ["bidcenter", "bjx_tender", "ggzy"]
    assert settings.admin_api_token is None


def test_source_lists_accept_comma_separated_and_json(monkeypatch):
    _set_required_env(
        monkeypatch,
        ENABLED_NEWS_SOURCES="bjx_news, solarbe_news",
        ENABLED_TENDER_SOURCES='["ggzy", "powerchina"]',
    )

    settings = get_settings()

    assert settings.enabled_news_sources == ["bjx_news", "solarbe_news"]
    assert settings.enabled_tender_sources == ["ggzy", "powerchina"]


def test_unknown_source_is_rejected(monkeypatch):
    _set_required_env(monkeypatch, ENABLED_TENDER_SOURCES="bidcenter,unknown_site")

    with pytest.raises(RuntimeError) as excinfo:
        get_settings()

    assert "unknown_site" in str(excinfo.value)


def test_invalid_database_url_is_rejected(monkeypatch):
    _set_required_env(monkeypatch, DATABASE_URL="not-a-dsn")

    with pytest.raises(RuntimeError):
        get_settings()


def test_blank_keyword_is_rejected(monkeypatch):
    _set_required_env(monkeypatch, SCRAPE_KEYWORD="   ")

    with pytest.raises(RuntimeError):
        get_settings()


def test_reset_settings_cache_reloads(monkeypatch):
    _set_required_env(monkeypatch, SCRAPE_KEYWORD="perovskite")
    assert get_settings().scrape_keyword == "perovskite"

    monkeypatch.setenv("SCRAPE_KEYWORD", "钙钛矿电池")
    assert get_settings().scrape_keyword == "perovskite"

    reset_settings_cache()
    assert get_settings().scrape_keyword == "钙钛矿电池"
