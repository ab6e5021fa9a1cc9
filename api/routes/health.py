"""
Health check endpoints.

Used for monitoring and load balancer health checks.
"""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
import logging
import platform

from api.dependencies import get_event_bus, get_session_factory
from core.domain.clock import utc_now


logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/health")
async def health_check():
    """
    Health check endpoint.

    Returns system health status.
    """
    return {
        "status": "healthy",
        "timestamp": utc_now().isoformat(),
        "service": "marketplace-orders",
        "version": "1.0.0",
        "python_version": platform.python_version(),
    }


@router.get("/health/ready")
async def readiness_check(
    session_factory=Depends(get_session_factory),
    event_bus=Depends(get_event_bus),
):
    """
    Readiness check endpoint.

    Returns whether the database answers and the event bus is running.
    """
    checks = {"api": "ok"}
    try:
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except SQLAlchemyError as e:
        logger.error(f"❌ Database readiness check failed: {e}")
        checks["database"] = "unavailable"

    checks["event_bus"] = "running" if event_bus.is_running else "inline"
    ready = checks["database"] == "ok"
    return JSONResponse(
        status_code=200 if ready else 503,
        content={
            "status": "ready" if ready else "not_ready",
            "timestamp": utc_now().isoformat(),
            "checks": checks,
        },
    )
