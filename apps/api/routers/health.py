"""
Health check endpoints.
"""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse
from sqlalchemy import text

from services.audits import pending_audit_count

router = APIRouter()


@router.get("/_ping", response_class=PlainTextResponse)
async def ping():
    """Liveness probe."""
    return "OK"


@router.get("/health")
async def health_check():
    """
    Health check endpoint.
    Returns overall service health, including database reachability.
    """
    health_status = {
        "status": "healthy",
        "api": "up",
        "database": "unknown",
        "running_background_audits": pending_audit_count(),
    }

    try:
        from database import engine
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        health_status["database"] = "up"
    except Exception as e:
        health_status["database"] = f"down: {str(e)}"
        health_status["status"] = "degraded"

    return health_status
