"""
Health check endpoints.

- /healthz: Liveness probe (always 200 if service alive)
- /readyz: Readiness probe (200 only if the database answers a ping)
"""

from datetime import datetime
from typing import Any, Dict

import structlog
from fastapi import APIRouter, Request, Response, status

from .. import __version__

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get(
    "/healthz",
    status_code=200,
    summary="Liveness probe",
    description="""
    Liveness probe endpoint.

    Always returns 200 OK if the service is running.
    """,
)
async def liveness_check() -> Dict[str, Any]:
    """
    Liveness probe - always returns 200 if service is alive.
    """
    return {
        "status": "alive",
        "timestamp": datetime.utcnow().isoformat(),
        "service": "wheely",
        "version": __version__,
    }


@router.get(
    "/readyz",
    summary="Readiness probe",
    description="""
    Readiness probe endpoint.

    Returns 200 when the relational store accepts a trivial query and
    503 Service Unavailable otherwise.
    """,
)
def readiness_check(request: Request, response: Response) -> Dict[str, Any]:
    database = getattr(request.app.state, "database", None)

    if database is None:
        logger.warning("Database not initialized")
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {
            "status": "not_ready",
            "reason": "database_not_initialized",
            "timestamp": datetime.utcnow().isoformat(),
        }

    error = database.ping()
    if error is None:
        return {
            "status": "ready",
            "timestamp": datetime.utcnow().isoformat(),
            "checks": {"database": "ok"},
        }

    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return {
        "status": "not_ready",
        "timestamp": datetime.utcnow().isoformat(),
        "checks": {"database": "unreachable"},
        "failed_checks": ["database"],
    }
