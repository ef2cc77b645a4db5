"""Candidate self-service endpoints: profile, missions, notifications."""

from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy import exists
from sqlalchemy.orm import Session

from staffing_api.config.database import get_db
from staffing_api.middleware.error_handler import NotFoundError, ValidationAPIError
from staffing_api.models import (
    BookingStatus,
    CandidateNotification,
    CandidateProfile,
    NotificationStatus,
    NotificationType,
    ResourceAssignment,
)
from staffing_api.schemas.assignments import MissionItem
from staffing_api.schemas.candidates import (
    CandidateProfileResponse,
    CandidateProfileUpsert,
    NotificationResponse,
)
from staffing_api.services.access_policy import visible_assignments_query
from staffing_api.services.rbac import require_role

logger = structlog.get_logger()
router = APIRouter()


def get_own_profile(db: Session, user: dict) -> CandidateProfile:
    candidate = db.query(CandidateProfile).filter(CandidateProfile.id == user["sub"]).first()
    if not candidate:
        raise NotFoundError("Candidate", user["sub"])
    return candidate


def get_own_notification(db: Session, user: dict, notification_id: int) -> CandidateNotification:
    notification = (
        db.query(CandidateNotification)
        .filter(
            CandidateNotification.id == notification_id,
            CandidateNotification.candidate_id == user["sub"],
        )
        .first()
    )
    if not notification:
        raise NotFoundError("Notification", notification_id)
    return notification


def build_notification_response(notification: CandidateNotification) -> NotificationResponse:
    return NotificationResponse(
        id=notification.id,
        candidate_id=notification.candidate_id,
        project_id=notification.project_id,
        assignment_id=notification.assignment_id,
        type=notification.type,
        title=notification.title,
        message=notification.message,
        status=notification.status,
        archived_at=notification.archived_at,
        created_at=notification.created_at,
    )


@router.put("/me", response_model=CandidateProfileResponse)
async def upsert_my_profile(
    data: CandidateProfileUpsert,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role(["candidate"])),
):
    """Create or replace the caller's candidate profile."""
    if data.email:
        taken = (
            db.query(CandidateProfile.id)
            .filter(CandidateProfile.email == data.email, CandidateProfile.id != user["sub"])
            .first()
        )
        if taken:
            raise ValidationAPIError("Email is already used by another candidate", field="email")

    candidate = db.query(CandidateProfile).filter(CandidateProfile.id == user["sub"]).first()
    created = candidate is None
    if created:
        candidate = CandidateProfile(id=user["sub"])
        db.add(candidate)

    candidate.first_name = data.first_name
    candidate.last_name = data.last_name
    candidate.email = data.email
    candidate.profile_id = data.profile_id
    candidate.seniority = data.seniority.value
    candidate.status = data.status.value
    candidate.qualification_status = data.qualification_status
    candidate.set_skills(languages=data.languages, expertises=data.expertises)

    db.commit()
    db.refresh(candidate)

    logger.info(
        "Candidate profile saved",
        candidate_id=candidate.id,
        created=created,
        profile_id=candidate.profile_id,
        status=candidate.status,
    )
    return CandidateProfileResponse.from_model(candidate)


@router.get("/me", response_model=CandidateProfileResponse)
async def get_my_profile(
    db: Session = Depends(get_db),
    user: dict = Depends(require_role(["candidate"])),
):
    """Get the caller's candidate profile."""
    return CandidateProfileResponse.from_model(get_own_profile(db, user))


@router.get("/me/missions", response_model=list[MissionItem])
async def list_my_missions(
    booking_status: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user: dict = Depends(require_role(["candidate"])),
):
    """
    List the assignments visible to the caller.

    Open missions the caller declined are left out.
    """
    candidate = get_own_profile(db, user)

    declined = exists().where(
        CandidateNotification.assignment_id == ResourceAssignment.id,
        CandidateNotification.candidate_id == candidate.id,
        CandidateNotification.type == NotificationType.MISSION_REQUEST.value,
        CandidateNotification.status == NotificationStatus.DECLINED.value,
    )
    query = visible_assignments_query(db, candidate.id).filter(
        ~(ResourceAssignment.booking_status.in_(BookingStatus.RECHERCHE.stored_values) & declined)
    )
    if booking_status:
        try:
            status = BookingStatus.parse(booking_status)
        except ValueError:
            raise ValidationAPIError(f"Unknown booking status '{booking_status}'", field="bookingStatus")
        query = query.filter(ResourceAssignment.booking_status.in_(status.stored_values))

    assignments = query.order_by(ResourceAssignment.created_at.desc(), ResourceAssignment.id.desc()).all()

    return [
        MissionItem.from_model(
            a,
            project_title=a.project.title,
            project_status=a.project.status,
        )
        for a in assignments
    ]


@router.get("/me/notifications", response_model=list[NotificationResponse])
async def list_my_notifications(
    status: Optional[str] = Query(None),
    archived: bool = Query(False),
    db: Session = Depends(get_db),
    user: dict = Depends(require_role(["candidate"])),
):
    """List the caller's notifications, newest first. Archived ones only on request."""
    query = db.query(CandidateNotification).filter(CandidateNotification.candidate_id == user["sub"])
    if status:
        query = query.filter(CandidateNotification.status == status)
    if archived:
        query = query.filter(CandidateNotification.archived_at.is_not(None))
    else:
        query = query.filter(CandidateNotification.archived_at.is_(None))

    notifications = query.order_by(CandidateNotification.id.desc()).all()
    return [build_notification_response(n) for n in notifications]


@router.post("/me/notifications/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role(["candidate"])),
):
    """Mark an unread notification as read."""
    notification = get_own_notification(db, user, notification_id)
    if notification.status == NotificationStatus.UNREAD.value:
        notification.status = NotificationStatus.READ.value
        db.commit()
        db.refresh(notification)
    return build_notification_response(notification)


@router.post("/me/notifications/{notification_id}/archive", response_model=NotificationResponse)
async def archive_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role(["candidate"])),
):
    """
    Archive a notification.

    The status is kept, so an archived decline still hides the mission and
    still counts as an answer when candidates are notified again.
    """
    notification = get_own_notification(db, user, notification_id)
    if notification.archived_at is None:
        notification.archived_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(notification)
    return build_notification_response(notification)
