from __future__ import annotations

import secrets
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy.orm import Session

from ingestion.db.models import JobType
from ingestion.repositories.content import list_job_logs
from ingestion.settings import get_settings
from ingestion.tasks import daily
from ingestion.utils.logging import get_logger

from .database import session_dependency
from .models import JobLogOut, TriggerFetchResponse

router = APIRouter(prefix="/api")

SessionDep = Annotated[Session, Depends(session_dependency)]

logger = get_logger(__name__)


async def require_admin(x_admin_token: Annotated[Optional[str], Header()] = None) -> None:
    expected = get_settings().admin_api_token
    if not x_admin_token:
        raise HTTPException(status_code=401, detail="admin token required")
    if expected is None or not secrets.compare_digest(
        x_admin_token.encode("utf-8"), expected.get_secret_value().encode("utf-8")
    ):
        raise HTTPException(status_code=403, detail="admin token rejected")


AdminDep = Depends(require_admin)


@router.post(
    "/admin/data-fetch/trigger",
    response_model=TriggerFetchResponse,
    response_model_by_alias=True,
    dependencies=[AdminDep],
)
async def trigger_data_fetch_route() -> TriggerFetchResponse:
    try:
        result = await daily.run_ingestion(JobType.MANUAL_FETCH, raise_on_failure=True)
    except Exception as exc:
        logger.warning("api.trigger_fetch.failed", extra={"error": str(exc)})
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return TriggerFetchResponse(
        success=result.success,
        news_count=result.news_count,
        tender_count=result.tender_count,
    )


@router.get(
    "/admin/job-logs",
    response_model=list[JobLogOut],
    response_model_by_alias=True,
    dependencies=[AdminDep],
)
async def list_job_logs_route(
    session: SessionDep,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> list[JobLogOut]:
    return [JobLogOut.model_validate(row) for row in list_job_logs(session, limit)]
