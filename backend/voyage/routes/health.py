"""
Voyage Backend - Health Check Route
====================================

What:  GET /health on every service, for container health checks and load balancers.
How:   Runs SELECT 1 against the database. The only critical dependency of
       every service is its database, so the service is "healthy" (200) when
       the query succeeds and "unhealthy" (503) otherwise.

Provider availability is deliberately not part of the travel service's
health: a provider outage degrades search results but the service still
answers.
"""

import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from voyage import __version__
from voyage.database import engine
from voyage.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(request: Request):
    db_status = "connected"
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        logger.warning("Health check: database unreachable: %s", str(e))

    health = HealthResponse(
        status="healthy" if db_status == "connected" else "unhealthy",
        service=getattr(request.app.state, "service", "all"),
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if db_status != "connected":
        return JSONResponse(status_code=503, content=health.model_dump())
    return health
