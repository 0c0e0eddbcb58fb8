from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from dotenv import load_dotenv

# Explicitly load the .env file at the project root
project_root = Path(__file__).parent.parent
env_path = project_root / ".env"

if env_path.exists():
    load_dotenv(env_path)

from fastapi import FastAPI

from ingestion.db.models import JobType
from ingestion.scheduler import DailyScheduler
from ingestion.settings import get_settings
from ingestion.tasks import daily
from ingestion.utils.logging import configure_logging

from .database import init_db
from .routes import router


async def _scheduled_fetch() -> None:
    await daily.run_ingestion(JobType.SCHEDULED_FETCH)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    configure_logging(settings.structlog_level, json_enabled=settings.log_json)
    init_db()
    scheduler = DailyScheduler(_scheduled_fetch)
    if settings.scheduler_enabled:
        scheduler.start()
    app.state.scheduler = scheduler
    try:
        yield
    finally:
        scheduler.stop()


app = FastAPI(title="Perovskite Content Ingestion API", version="0.1.0", lifespan=lifespan)

app.include_router(router)


@app.get("/healthz", tags=["system"])
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}
