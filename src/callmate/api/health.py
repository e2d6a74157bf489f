"""Health check endpoints."""

from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from callmate import __version__
from callmate.api.rate_limits import RateLimits, limiter
from callmate.config import get_settings
from callmate.core.log import get_logger
from callmate.db.session import get_db

log = get_logger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: str
    version: str
    environment: str
    checks: dict[str, str]


@router.get("/health", response_model=HealthResponse)
@limiter.limit(RateLimits.HEALTH)
async def health_check(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_db)],
) -> HealthResponse:
    """Liveness plus a database round trip (SELECT 1)."""
    checks = {
        "api": "ok",
        "database": await _check_database(session),
    }
    status = "healthy" if all(v == "ok" for v in checks.values()) else "degraded"

    return HealthResponse(
        status=status,
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=__version__,
        environment=get_settings().environment,
        checks=checks,
    )


async def _check_database(session: AsyncSession) -> str:
    try:
        await session.execute(text("SELECT 1"))
        return "ok"
    except SQLAlchemyError as e:
        log.warning("Database health check failed", error=str(e))
        return "error"
