"""Admin endpoints for booking maintenance."""

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from staffing_api.config.database import get_db
from staffing_api.schemas.integrity import IntegrityReportResponse
from staffing_api.services.integrity import check_booking_integrity
from staffing_api.services.rbac import require_role

logger = structlog.get_logger()
router = APIRouter()


@router.get("/booking-integrity", response_model=IntegrityReportResponse)
async def booking_integrity(
    repair: bool = Query(False),
    db: Session = Depends(get_db),
    user: dict = Depends(require_role(["admin"])),
):
    """
    Report booking invariant violations.

    With repair=true the violations are fixed in the same request; the
    report still lists what was found.
    """
    report = check_booking_integrity(db, repair=repair)
    if repair:
        logger.info("Booking integrity repair requested", user=user.get("sub"), repaired=report.repaired)
    return IntegrityReportResponse(**report.to_dict())
