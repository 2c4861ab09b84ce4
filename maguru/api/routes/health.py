from __future__ import annotations

import time
from datetime import UTC, datetime

import structlog
from fastapi import APIRouter, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from maguru.api.schemas.health import DatastoreStatus, HealthReport
from maguru.infrastructure.db.session import get_session_factory

router = APIRouter(tags=["Observability"])
logger = structlog.get_logger()


async def check_database() -> DatastoreStatus:
    """Round-trip ``SELECT 1`` and time it."""
    started = time.perf_counter()
    try:
        async with get_session_factory()() as session:
            await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("health_database_unreachable", error=str(exc)[:200])
        return DatastoreStatus(status="error", message=str(exc)[:100])
    return DatastoreStatus(
        status="ok", latency_ms=round((time.perf_counter() - started) * 1000, 2)
    )


@router.get(
    "/health",
    summary="Service health check",
    response_model=HealthReport,
    response_model_exclude_none=True,
)
async def health_check(request: Request) -> HealthReport:
    """Service identity plus database reachability; degraded instead of failing."""
    settings = request.app.state.settings
    database = await check_database()

    report = HealthReport(
        service=settings.app_name,
        version=settings.version,
        environment=settings.environment,
        status="ok" if database.status == "ok" else "degraded",
        timestamp=datetime.now(UTC),
        datastores={"database": database},
    )
    logger.info("health_checked", status=report.status, database=database.status)
    return report
