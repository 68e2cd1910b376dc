"""Health check endpoint."""
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .db import Database, get_database
from .logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(database: Database = Depends(get_database)) -> JSONResponse:
    """Report whether the relational store is reachable."""
    try:
        await database.ping()
    except (SQLAlchemyError, OSError) as e:
        logger.warning("health_check_failed", error=str(e))
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable"},
        )
    return JSONResponse(content={"status": "ok"})
