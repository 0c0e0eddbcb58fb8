"""One ingestion run: job log, both fetchers, owner notification."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, Optional

from celery import shared_task

from ingestion.db.models import JobStatus, JobType
from ingestion.db.session import session_scope
from ingestion.repositories.content import complete_job_log, create_job_log
from ingestion.tasks.fetch import ensure_schema, fetch_latest_news, fetch_latest_tenders
from ingestion.utils.logging import get_logger
from publish.notifier import notify_owner

logger = get_logger(__name__)


@dataclass(frozen=True)
class IngestionResult:
    success: bool
    news_count: int = 0
    tender_count: int = 0
    error: Optional[str] = None

    @property
    def total(self) -> int:
        return self.news_count + self.tender_count

    def as_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "news_count": self.news_count,
            "tender_count": self.tender_count,
            "error": self.error,
        }


def _open_job_log(job_type: JobType) -> Optional[int]:
    try:
        ensure_schema()
        with session_scope() as session:
            return create_job_log(session, job_type).id
    except Exception:
        logger.exception("ingestion.job_log.create_failed", extra={"job_type": job_type.value})
        return None


def _close_job_log(
    job_id: Optional[int],
    status: JobStatus,
    *,
    items_processed: int = 0,
    error_message: Optional[str] = None,
) -> None:
    if job_id is None:
        return
    try:
        with session_scope() as session:
            complete_job_log(
                session,
                job_id,
                status=status,
                items_processed=items_processed,
                error_message=error_message,
            )
    except Exception:
        logger.exception("ingestion.job_log.update_failed", extra={"job_id": job_id})


async def _notify_quietly(title: str, content: str) -> None:
    try:
        await notify_owner(title, content)
    except Exception as exc:
        logger.warning("ingestion.notify_failed", extra={"title": title, "error": str(exc)})


def _success_message(job_type: JobType, news: int, tenders: int) -> Optional[tuple[str, str]]:
    if job_type is JobType.MANUAL_FETCH:
        return "数据更新完成", f"手动触发数据更新完成：新增新闻 {news} 条，招投标信息 {tenders} 条"
    if news + tenders > 0:
        return "每日数据更新完成", f"今日自动更新完成：新增行业资讯 {news} 条，招投标信息 {tenders} 条。"
    return None


def _failure_message(job_type: JobType, error: str) -> tuple[str, str]:
    if job_type is JobType.MANUAL_FETCH:
        return "数据更新失败", f"手动触发数据更新失败：{error}"
    return "每日数据更新失败", f"自动更新任务失败：{error}"


async def run_ingestion(
    job_type: JobType | str = JobType.SCHEDULED_FETCH,
    *,
    raise_on_failure: bool = False,
) -> IngestionResult:
    """Fetch news and tenders concurrently and record the run in ``job_logs``.

    Scheduled runs notify the owner only when something was inserted; manual
    runs always report back. A failure marks the job log failed and sends a
    best-effort failure notice, then re-raises when ``raise_on_failure``.
    """
    job_type = JobType(job_type)
    job_id = _open_job_log(job_type)
    logger.info("ingestion.start", extra={"job_type": job_type.value, "job_id": job_id})

    try:
        news_count, tender_count = await asyncio.gather(fetch_latest_news(), fetch_latest_tenders())
    except Exception as exc:
        error = str(exc)
        logger.exception("ingestion.failed", extra={"job_type": job_type.value, "job_id": job_id})
        _close_job_log(job_id, JobStatus.FAILED, error_message=error)
        await _notify_quietly(*_failure_message(job_type, error))
        if raise_on_failure:
            raise
        return IngestionResult(success=False, error=error)

    total = news_count + tender_count
    _close_job_log(job_id, JobStatus.SUCCESS, items_processed=total)
    logger.info(
        "ingestion.done",
        extra={
            "job_type": job_type.value,
            "job_id": job_id,
            "news": news_count,
            "tenders": tender_count,
        },
    )
    message = _success_message(job_type, news_count, tender_count)
    if message is not None:
        await _notify_quietly(*message)
    return IngestionResult(success=True, news_count=news_count, tender_count=tender_count)


@shared_task(name="ingestion.tasks.daily.run_scheduled_fetch")
def run_scheduled_fetch() -> Dict[str, Any]:  # pragma: no cover - thin Celery wrapper
    """Celery beat entry point for the daily run."""
    return asyncio.run(run_ingestion(JobType.SCHEDULED_FETCH)).as_dict()
