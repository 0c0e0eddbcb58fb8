from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ingestion.db.models import JobStatus


class TriggerFetchResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    news_count: int = Field(..., alias="newsCount")
    tender_count: int = Field(..., alias="tenderCount")


class JobLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    job_type: str = Field(..., alias="jobType")
    status: JobStatus
    items_processed: int = Field(..., alias="itemsProcessed")
    error_message: Optional[str] = Field(None, alias="errorMessage")
    started_at: datetime = Field(..., alias="startedAt")
    completed_at: Optional[datetime] = Field(None, alias="completedAt")
