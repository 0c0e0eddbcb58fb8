"""Domain DTOs for the ingestion pipeline."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

E = TypeVar("E", bound=Enum)


class RecordKind(str, Enum):
    NEWS = "news"
    TENDER = "tender"


class NewsCategory(str, Enum):
    DOMESTIC = "domestic"
    INTERNATIONAL = "international"
    RESEARCH = "research"
    POLICY = "policy"
    MARKET = "market"
    TECHNOLOGY = "technology"


class ProjectType(str, Enum):
    PROCUREMENT = "procurement"
    CONSTRUCTION = "construction"
    RESEARCH = "research"
    SERVICE = "service"
    OTHER = "other"


class TenderStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    AWARDED = "awarded"
    CANCELLED = "cancelled"


def _coerce_enum(enum_cls: Type[E], value: Any, fallback: E) -> E:
    if isinstance(value, enum_cls):
        return value
    text = str(value or "").strip().lower()
    try:
        return enum_cls(text)
    except ValueError:
        return fallback


def _blank_to_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class RawItem(BaseModel):
    """One anchor scraped from a source site, before any LLM processing."""

    title: str
    url: str
    snippet: str = ""
    platform: str = Field(..., description="Display name of the source site")

    @field_validator("title", "url")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        s = v.strip()
        if not s:
            raise ValueError("must not be blank")
        return s


class CandidateBase(BaseModel):
    """Fields shared by every LLM-proposed record."""

    title: str = Field(..., max_length=512)
    is_important: bool = Field(False, alias="isImportant")
    source_url: Optional[str] = Field(None, alias="sourceUrl", max_length=1024)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("title")
    @classmethod
    def _title_required(cls, v: str) -> str:
        s = v.strip()
        if not s:
            raise ValueError("title must not be blank")
        return s

    @field_validator("source_url", mode="before")
    @classmethod
    def _url_blank_to_none(cls, v: Any) -> Optional[str]:
        return _blank_to_none(v)


class NewsCandidate(CandidateBase):
    """News record proposed by the LLM, prior to the duplicate check."""

    summary: Optional[str] = None
    source_name: Optional[str] = Field(None, alias="sourceName", max_length=256)
    category: NewsCategory = NewsCategory.DOMESTIC

    @field_validator("summary", "source_name", mode="before")
    @classmethod
    def _text_blank_to_none(cls, v: Any) -> Optional[str]:
        return _blank_to_none(v)

    @field_validator("category", mode="before")
    @classmethod
    def _known_category(cls, v: Any) -> NewsCategory:
        return _coerce_enum(NewsCategory, v, NewsCategory.DOMESTIC)


class TenderCandidate(CandidateBase):
    """Tender record proposed by the LLM, prior to the duplicate check."""

    description: Optional[str] = None
    project_type: ProjectType = Field(ProjectType.OTHER, alias="projectType")
    budget: Optional[str] = Field(None, max_length=256)
    region: Optional[str] = Field(None, max_length=256)
    publisher_name: Optional[str] = Field(None, alias="publisherName", max_length=256)
    status: TenderStatus = TenderStatus.OPEN
    source_platform: Optional[str] = Field(None, alias="sourcePlatform", max_length=256)

    @field_validator("description", "budget", "region", "publisher_name", "source_platform", mode="before")
    @classmethod
    def _text_blank_to_none(cls, v: Any) -> Optional[str]:
        return _blank_to_none(v)

    @field_validator("project_type", mode="before")
    @classmethod
    def _known_project_type(cls, v: Any) -> ProjectType:
        return _coerce_enum(ProjectType, v, ProjectType.OTHER)

    @field_validator("status", mode="before")
    @classmethod
    def _known_status(cls, v: Any) -> TenderStatus:
        return _coerce_enum(TenderStatus, v, TenderStatus.OPEN)
