# careo/routers/health_routers.py
"""
System health HTTP endpoints.
"""

from typing import Any, Dict

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ..constants import APPLICATION_NAME, APPLICATION_VERSION
from ..dependencies import AsyncDatabaseDep
from ..utils.router_helpers import handle_exceptions

router = APIRouter(tags=["health"])


@router.get("/health", response_model=Dict[str, Any])
@handle_exceptions("basic health check")
async def health_check(db: AsyncDatabaseDep):
    """
    Quick health check endpoint for load balancers and monitoring.

    Returns 503 when the database is not reachable. Connection pool
    statistics are included for monitoring.
    """
    database = await db.health_check()
    pool = await db.get_pool_stats()
    healthy = database.get("status") == "healthy"
    body = {
        "status": "healthy" if healthy else "degraded",
        "service": APPLICATION_NAME,
        "version": APPLICATION_VERSION,
        "database": database,
        "pool": pool,
    }
    return JSONResponse(status_code=200 if healthy else 503, content=body)
