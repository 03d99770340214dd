"""
Drama Quotes Backend — Health Check & Index Routes
==================================================

What:  GET /health for monitoring probes and GET / as a service banner
       listing the available endpoints.
How:   The health check runs `SELECT 1` through the shared engine.

Status levels:
    - healthy:   database reachable (HTTP 200)
    - unhealthy: database unreachable (HTTP 503, stop routing traffic)
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Response
from sqlalchemy import text

from dramaquotes import __version__
from dramaquotes.database import engine
from dramaquotes.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()

ENDPOINTS = {
    "auth": ["/api/auth/register", "/api/auth/login", "/api/auth/me"],
    "quotes": "/api/quotes",
    "dramas": "/api/dramas",
    "health": "/health",
}


async def check_database() -> bool:
    """True when a trivial query round-trips through the pool."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning("Database unreachable: %s", str(e))
        return False


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(response: Response) -> HealthResponse:
    db_ok = await check_database()
    if not db_ok:
        response.status_code = 503

    return HealthResponse(
        status="healthy" if db_ok else "unhealthy",
        version=__version__,
        database="connected" if db_ok else "disconnected",
        uptime_seconds=round(time.time() - _start_time, 2),
    )


@router.get("/", summary="Service banner", include_in_schema=False)
async def index() -> dict:
    return {
        "message": "K-Drama Quotes API is running",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "endpoints": ENDPOINTS,
    }
