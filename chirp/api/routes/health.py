from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text

from chirp.core.container import ServiceContainer, get_container

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness check.

    Returns:
        dict: A dictionary with a single "status" key set to "ok".
    """

    return {"status": "ok"}


@router.get("/health/ready")
async def readiness_check(
    container: ServiceContainer = Depends(get_container),
) -> JSONResponse:
    """Readiness check: the database answers a trivial query."""

    try:
        async with container.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as exc:
        logger.warning(
            "health.database_unavailable",
            extra={"error_type": type(exc).__name__},
        )
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "database": "error"},
        )

    return JSONResponse(content={"status": "ok", "database": "ok"})
