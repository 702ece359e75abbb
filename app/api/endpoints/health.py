import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.db.async_session import check_async_database_health, get_async_db

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=Dict[str, Any])
async def health_check(db: AsyncSession = Depends(get_async_db)):
    """
    Basic health check endpoint.

    Returns:
        dict: Service and database status; 503 when the database is unreachable
    """
    database = await check_async_database_health(db)
    healthy = database["status"] == "healthy"
    body = {
        "success": healthy,
        "data": {
            "status": "healthy" if healthy else "unhealthy",
            "service": settings.PROJECT_NAME,
            "environment": settings.ENVIRONMENT,
            "database": database,
        },
    }
    if not healthy:
        logger.error("Health check failed: database unreachable")
        body["error"] = "Service unavailable"
        return JSONResponse(status_code=503, content=body)
    return body
