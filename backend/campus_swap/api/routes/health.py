"""Health & Readiness Probes.

Invariants:
    - GET /api/v1/health/ answers 200 while the process is up, without touching the DB
    - GET /api/v1/health/ready answers 503 until the session manager exists and
      can run SELECT 1
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from campus_swap.infrastructure import database

router = APIRouter(prefix="/api/v1/health", tags=["health"])

SERVICE = {"service": "campus-swap-api", "version": "1.0.0"}


@router.get("/", status_code=status.HTTP_200_OK)
async def liveness():
    return {"status": "healthy", **SERVICE}


@router.get("/ready")
async def readiness():
    manager = database.db_manager
    if manager is None or not await manager.health_check():
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "database_unavailable"},
        )
    return {"status": "ready", "checks": {"database": "healthy"}, **SERVICE}
