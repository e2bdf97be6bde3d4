from __future__ import annotations

import asyncio

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from deltanotes.config import settings
from deltanotes.db.base import get_supabase_admin_client
from deltanotes.dependencies import get_language_detection_service
from deltanotes.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/")
async def health_check():
    """Liveness: the process is up."""
    return {"status": "healthy", "service": "deltanotes-api", "version": "0.1.0"}


@router.get("/ready")
async def readiness_check():
    """Readiness: the notes table is reachable and the language detector loaded."""
    checks: dict[str, str] = {}
    try:
        client = get_supabase_admin_client()
        await asyncio.to_thread(lambda: client.table("notes").select("id").limit(1).execute())
        checks["database"] = "connected"
    except Exception as e:
        logger.warning("Readiness check: database unavailable", exc_info=e)
        checks["database"] = f"error: {type(e).__name__}"

    init_result = get_language_detection_service().initialize()
    checks["language_detection"] = "ready" if init_result.is_success else "unavailable"

    ready = checks["database"] == "connected" and init_result.is_success
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if ready else "not_ready",
            **checks,
            "api_prefix": settings.api_prefix,
        },
    )
