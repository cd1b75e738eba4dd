"""
Liveness and dependency checks.
"""
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from gallery_api.config import settings
from gallery_api.database import get_db
from gallery_api.services.image_storage import ImageStorage, get_image_storage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/")
async def root():
    return {"message": settings.API_TITLE, "status": "healthy", "version": settings.API_VERSION}


@router.get("/health")
async def health_check():
    return {"status": "healthy"}


@router.get("/health/db")
async def database_health(db: AsyncSession = Depends(get_db)):
    """Run ``SELECT 1``; reports unhealthy instead of failing."""
    try:
        await db.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Database health check failed: {str(e)}", exc_info=True)
        return {"database": "error", "status": "unhealthy", "error": "Database connection failed"}
    return {"database": "connected", "status": "healthy"}


@router.get("/health/storage")
async def storage_health(storage: ImageStorage = Depends(get_image_storage)):
    """Report which image storage backend is active and whether it is usable."""
    report = storage.status()
    usable = report.get("writable", report.get("configured", True))
    return {"status": "healthy" if usable else "degraded", **report}
