"""Health check endpoints."""

import asyncio
import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.config import get_settings
from infrastructure.database import get_db
from services.api_cache import api_cache

logger = logging.getLogger(__name__)

router = APIRouter()
settings = get_settings()


@router.get("/health")
async def health_check():
    """Basic health check."""
    return {
        "status": "ok",
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "cached_responses": len(api_cache),
        "timestamp": datetime.now(UTC).isoformat(),
    }


@router.get("/health/db")
async def health_check_db(db: AsyncSession = Depends(get_db)):
    """Health check with database connectivity."""
    try:
        result = await asyncio.wait_for(db.execute(text("SELECT 1")), timeout=5.0)
        result.scalar()
        db_status = "connected"
    except TimeoutError:
        logger.error("Health check DB timeout")
        db_status = "error: database timeout"
    except SQLAlchemyError as e:
        logger.error("Health check DB error: %s", str(e))
        db_status = "error: database check failed"

    return {
        "status": "ok" if db_status == "connected" else "degraded",
        "database": db_status,
        "timestamp": datetime.now(UTC).isoformat(),
    }
