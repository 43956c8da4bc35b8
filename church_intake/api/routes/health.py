"""Health Checks — liveness and database readiness.

Invariants:
    - /health/ answers 200 whenever the process can serve requests
    - /health/ready answers 503 while the database cannot be reached
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from church_intake.infrastructure.database import DatabaseSessionManager, get_db_manager

router = APIRouter(prefix="/api/v1/health", tags=["health"])

SERVICE_NAME = "church-intake-api"


@router.get("/")
async def liveness():
    return {"status": "healthy", "service": SERVICE_NAME, "version": "1.0.0"}


@router.get("/ready")
async def readiness(db: DatabaseSessionManager = Depends(get_db_manager)):
    if await db.health_check():
        return {"status": "ready", "checks": {"database": "healthy"}}
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "not_ready", "checks": {"database": "unreachable"}},
    )
