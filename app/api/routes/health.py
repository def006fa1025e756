"""Health check endpoints for monitoring."""

import logging

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.api.deps import DB
from app.core.config import settings
from app.utils.envelopes import api_success

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _database_ok(db) -> bool:
    try:
        await db.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError):
        logger.warning("Database health check failed", exc_info=True)
        return False
    return True


@router.get("/health")
async def health_check(db: DB):
    """Health check endpoint for load balancers and monitoring."""
    db_ok = await _database_ok(db)
    return api_success(
        status="ok" if db_ok else "degraded",
        service=settings.APP_NAME,
        database="healthy" if db_ok else "unhealthy",
    )


@router.get("/health/ready")
async def readiness_check(db: DB):
    """Readiness probe: the database must answer."""
    return api_success(ready=await _database_ok(db))


@router.get("/health/live")
async def liveness_check():
    """Liveness probe."""
    return api_success(alive=True)
