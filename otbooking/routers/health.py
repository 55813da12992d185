# otbooking/routers/health.py
import logging
from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .. import schemas
from ..database import ping_database

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/health",
    tags=["Health Checks"],
)


@router.get("", response_model=schemas.HealthResponse)
def health_check():
    """Reports whether the booking store answers."""
    checked_at = datetime.now(timezone.utc)
    try:
        ping_database()
    except SQLAlchemyError as e:
        logger.error(f"Health check failed: {e}")
        body = schemas.HealthResponse(status="degraded", database="unreachable", checked_at=checked_at)
        return JSONResponse(status_code=503, content=body.model_dump(mode="json"))
    return schemas.HealthResponse(status="ok", database="reachable", checked_at=checked_at)
