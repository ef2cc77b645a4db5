"""Health check endpoints for monitoring."""

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from staffing_api.config.settings import settings
from staffing_api.config.database import get_db
from staffing_api.services.integrity import check_booking_integrity

logger = structlog.get_logger()
router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    timestamp: str
    database: str


class DetailedHealthResponse(HealthResponse):
    """Detailed health check with component info."""
    components: dict


def check_database(db: Session) -> tuple[str, str | None]:
    """Check database connectivity."""
    try:
        result = db.execute(text("SELECT 1"))
        result.fetchone()
        return "connected", None
    except SQLAlchemyError as e:
        logger.error("Database health check failed", error=str(e))
        return "disconnected", str(e)


def check_integrity(db: Session) -> tuple[str, dict | None]:
    """Run the read-only booking integrity check."""
    try:
        report = check_booking_integrity(db)
    except SQLAlchemyError as e:
        logger.error("Booking integrity check failed", error=str(e))
        return "error", {"error": str(e)}
    return ("clean" if report.is_clean else "violations"), report.to_dict()


@router.get("", response_model=HealthResponse)
@router.get("/", response_model=HealthResponse)
async def health_check(
    db: Session = Depends(get_db),
) -> HealthResponse:
    """
    Basic health check endpoint.

    Returns overall status and database connectivity.
    """
    db_status, _ = check_database(db)

    return HealthResponse(
        status="healthy" if db_status == "connected" else "unhealthy",
        version=settings.APP_VERSION,
        timestamp=datetime.now(timezone.utc).isoformat(),
        database=db_status,
    )


@router.get("/detailed", response_model=DetailedHealthResponse)
async def detailed_health_check(
    db: Session = Depends(get_db),
) -> DetailedHealthResponse:
    """
    Detailed health check with component diagnostics.

    Includes the booking integrity report. Violations degrade the status
    without making the service unhealthy.
    """
    db_status, db_error = check_database(db)

    if db_status == "connected":
        integrity_status, integrity = check_integrity(db)
        overall_status = "healthy" if integrity_status == "clean" else "degraded"
    else:
        integrity_status, integrity = "unknown", None
        overall_status = "unhealthy"

    components = {
        "database": {
            "status": db_status,
            "error": db_error,
            "url": settings.DATABASE_URL.split("@")[-1] if "@" in settings.DATABASE_URL else "configured",
        },
        "booking_integrity": {
            "status": integrity_status,
            "report": integrity,
        },
        "environment": settings.ENVIRONMENT,
        "matching": {
            "match_on_skills": settings.MATCH_ON_SKILLS,
            "notify_candidate_limit": settings.NOTIFY_CANDIDATE_LIMIT,
        },
    }

    return DetailedHealthResponse(
        status=overall_status,
        version=settings.APP_VERSION,
        timestamp=datetime.now(timezone.utc).isoformat(),
        database=db_status,
        components=components,
    )


@router.get("/ready")
async def readiness_check(
    db: Session = Depends(get_db),
) -> dict:
    """
    Kubernetes readiness probe.

    Returns 200 if service is ready to accept traffic.
    """
    db_status, _ = check_database(db)

    if db_status != "connected":
        return {"ready": False, "reason": "Database not connected"}

    return {"ready": True}


@router.get("/live")
async def liveness_check() -> dict:
    """
    Kubernetes liveness probe.

    Returns 200 if service process is alive.
    """
    return {"alive": True}
