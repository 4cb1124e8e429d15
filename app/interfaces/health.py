"""
Health check router.

Liveness and readiness check: reports the version and whether the database
answers a trivial query.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.interfaces.dependencies import get_db_engine
from app.interfaces.schemas import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns application health status, version and database reachability.",
)
def health_check(engine: Engine = Depends(get_db_engine)) -> HealthResponse:
    """Report service status and database reachability."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError:
        logger.exception("Health check could not reach the database")
        database = "unavailable"
    status = "ok" if database == "ok" else "degraded"
    return HealthResponse(status=status, version=settings.version, database=database)
