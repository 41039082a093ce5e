"""
PlanGuard - Health Router
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from planguard import __version__
from planguard.database import ping_db
from planguard.schemas.jobs import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Liveness plus a database round trip."""
    try:
        await ping_db()
    except Exception as e:
        logger.error(f"Health check database ping failed: {e}")
        return JSONResponse(
            status_code=503,
            content=HealthResponse(status="degraded", database="unreachable", version=__version__).model_dump(),
        )
    return HealthResponse(status="ok", database="ok", version=__version__)
