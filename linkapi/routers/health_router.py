import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from linkapi.config import settings
from linkapi.database.session import get_db
from linkapi.schemas.health import HealthCheckResponse
from linkapi.utils.timezone_utils import utc_now

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthCheckResponse)
def health_check(db: Session = Depends(get_db)) -> HealthCheckResponse:
    """Always 200; a failed `SELECT 1` reports status "degraded"."""
    checked_at = utc_now()
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check database query failed: {str(e)}")
        return HealthCheckResponse(
            status="degraded",
            database="error",
            environment=settings.ENVIRONMENT,
            checked_at=checked_at,
            error=str(e),
        )
    return HealthCheckResponse(environment=settings.ENVIRONMENT, checked_at=checked_at)
