"""SQLAlchemy models for the content store tables the pipeline writes."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum as SAEnum,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ingestion.models.domain import NewsCategory, ProjectType, TenderStatus


class Base(DeclarativeBase):
    """Base class for ORM models."""


class TimestampMixin:
    """Adds created_at/updated_at columns."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class JobType(str, Enum):
    SCHEDULED_FETCH = "scheduled_fetch"
    MANUAL_FETCH = "manual_fetch"


class JobStatus(str, Enum):
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class News(TimestampMixin, Base):
    """Industry news article. Title uniqueness is only approximated at insert time."""

    __tablename__ = "news"
    __table_args__ = (Index("ix_news_published", "published_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    summary: Mapped[str | None] = mapped_column(Text)
    source_url: Mapped[str | None] = mapped_column(String(1024))
    source_name: Mapped[str | None] = mapped_column(String(256))
    category: Mapped[NewsCategory] = mapped_column(
        SAEnum(NewsCategory, name="news_category", native_enum=False, length=16,
               values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=NewsCategory.DOMESTIC,
    )
    is_important: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    published_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )


class Tender(TimestampMixin, Base):
    """Tender / bidding listing."""

    __tablename__ = "tenders"
    __table_args__ = (Index("ix_tenders_status_published", "status", "published_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    project_type: Mapped[ProjectType] = mapped_column(
        SAEnum(ProjectType, name="tender_project_type", native_enum=False, length=16,
               values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ProjectType.PROCUREMENT,
    )
    budget: Mapped[str | None] = mapped_column(String(256))
    region: Mapped[str | None] = mapped_column(String(256))
    publisher_name: Mapped[str | None] = mapped_column(String(256))
    source_url: Mapped[str | None] = mapped_column(String(1024))
    source_platform: Mapped[str | None] = mapped_column(String(256))
    is_important: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[TenderStatus] = mapped_column(
        SAEnum(TenderStatus, name="tender_status", native_enum=False, length=16,
               values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=TenderStatus.OPEN,
    )
    published_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )


class JobLog(Base):
    """One ingestion run; the pipeline's only persisted audit trail."""

    __tablename__ = "job_logs"
    __table_args__ = (Index("ix_job_logs_started", "started_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    job_type: Mapped[str] = mapped_column(String(128), nullable=False)
    status: Mapped[JobStatus] = mapped_column(
        SAEnum(JobStatus, name="job_status", native_enum=False, length=16,
               values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=JobStatus.RUNNING,
    )
    items_processed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error_message: Mapped[str | None] = mapped_column(Text)
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
