import pytest

celery = pytest.importorskip("celery")  # noqa: F841

from celery.schedules import crontab

from ingestion.celery_app import DAILY_FETCH_TASK, create_celery_app
from ingestion.settings import Settings


def _make_settings(**overrides) -> Settings:
    values = dict(
        database_url="sqlite:///./var/dev.db",
        redis_url="redis://localhost:6379/0",
        scheduler_enabled=False,
        structlog_level="DEBUG",
        celery_worker_concurrency=2,
    )
    values.update(overrides)
    return Settings(**values)


def test_create_celery_app_schedules_daily_fetch_at_utc_midnight():
    app = create_celery_app(_make_settings())

    entry = app.conf.beat_schedule["ingestion.daily_fetch"]
    assert entry["task"] == DAILY_FETCH_TASK == "ingestion.tasks.daily.run_scheduled_fetch"
    assert entry["schedule"] == crontab(minute=0, hour=0)
    assert app.conf.timezone == "UTC"
    assert app.conf.worker_concurrency == 2


def test_beat_schedule_empty_when_in_process_scheduler_enabled():
    app = create_celery_app(_make_settings(scheduler_enabled=True))

    assert app.conf.beat_schedule == {}
