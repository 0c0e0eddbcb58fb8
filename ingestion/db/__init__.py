"""Database utilities for the content store."""

from .models import Base, JobLog, JobStatus, JobType, News, Tender  # noqa: F401
from .session import get_engine, get_sessionmaker, session_scope  # noqa: F401

__all__ = [
    "Base",
    "JobLog",
    "JobStatus",
    "JobType",
    "News",
    "Tender",
    "get_engine",
    "get_sessionmaker",
    "session_scope",
]
