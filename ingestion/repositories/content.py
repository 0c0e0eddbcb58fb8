"""Repositories for news/tender rows and ingestion job logs."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Type

from sqlalchemy import select
from sqlalchemy.orm import Session

from ingestion.db.models import JobLog, JobStatus, JobType, News, Tender
from ingestion.models.domain import NewsCandidate, TenderCandidate

DEFAULT_PREFIX_LENGTH = 20
_LIKE_ESCAPE = "\\"


def title_prefix(title: str, length: int = DEFAULT_PREFIX_LENGTH) -> str:
    """Leading ``length`` characters of ``title``; the whole title when shorter."""
    return title[:length]


def _escape_like(text: str) -> str:
    return (
        text.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )


def _title_contains(session: Session, model: Type[News] | Type[Tender], prefix: str) -> bool:
    pattern = f"%{_escape_like(prefix)}%"
    stmt = select(model.id).where(model.title.like(pattern, escape=_LIKE_ESCAPE)).limit(1)
    return session.execute(stmt).first() is not None


def news_exists(session: Session, title: str, prefix_length: int = DEFAULT_PREFIX_LENGTH) -> bool:
    return _title_contains(session, News, title_prefix(title, prefix_length))


def tender_exists(session: Session, title: str, prefix_length: int = DEFAULT_PREFIX_LENGTH) -> bool:
    return _title_contains(session, Tender, title_prefix(title, prefix_length))


def insert_news(session: Session, candidate: NewsCandidate, published_at: datetime) -> News:
    entity = News(
        title=candidate.title,
        summary=candidate.summary,
        source_name=candidate.source_name,
        source_url=candidate.source_url,
        category=candidate.category,
        is_important=candidate.is_important,
        published_at=published_at,
    )
    session.add(entity)
    session.flush()
    return entity


def insert_tender(session: Session, candidate: TenderCandidate, published_at: datetime) -> Tender:
    entity = Tender(
        title=candidate.title,
        description=candidate.description,
        project_type=candidate.project_type,
        budget=candidate.budget,
        region=candidate.region,
        publisher_name=candidate.publisher_name,
        source_url=candidate.source_url,
        source_platform=candidate.source_platform,
        is_important=candidate.is_important,
        status=candidate.status,
        published_at=published_at,
    )
    session.add(entity)
    session.flush()
    return entity


def create_job_log(session: Session, job_type: JobType | str) -> JobLog:
    """Insert a running job log row and commit it immediately."""
    job = JobLog(
        job_type=JobType(job_type).value,
        status=JobStatus.RUNNING,
        items_processed=0,
        started_at=datetime.now(timezone.utc),
    )
    session.add(job)
    session.commit()
    return job


def complete_job_log(
    session: Session,
    job_id: int,
    *,
    status: JobStatus,
    items_processed: int = 0,
    error_message: str | None = None,
) -> JobLog | None:
    job = session.get(JobLog, job_id)
    if job is None:
        return None
    job.status = status
    job.items_processed = items_processed
    job.error_message = error_message
    job.completed_at = datetime.now(timezone.utc)
    session.add(job)
    session.commit()
    return job


def list_job_logs(session: Session, limit: int = 20) -> List[JobLog]:
    stmt = select(JobLog).order_by(JobLog.started_at.desc(), JobLog.id.desc()).limit(limit)
    return list(session.scalars(stmt))
