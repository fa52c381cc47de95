import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from clipbin.core.context import get_now
from clipbin.core.errors import error_body

router = APIRouter(tags=["Health"])
logger = logging.getLogger("clipbin.health")


@router.get("/health")
def health_check(request: Request, now: datetime = Depends(get_now)):
    """Report whether the database answers ``SELECT 1``."""
    try:
        request.app.state.db.check_health()
    except SQLAlchemyError as exc:
        logger.error("database health check failed: %s", exc)
        return JSONResponse(status_code=503, content=error_body("Database unavailable"))
    return {
        "status": "success",
        "data": {"status": "healthy", "database": "connected", "timestamp": now.isoformat()},
        "message": "Service is running and the database is reachable",
    }
