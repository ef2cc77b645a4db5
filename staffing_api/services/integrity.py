"""Booking integrity checks and repairs.

Finds rows that break the booking invariants, typically written by older
clients or by hand before the database constraint existed, and optionally
repairs them.
"""

from dataclasses import asdict, dataclass, field

import structlog
from sqlalchemy import and_, exists, or_, update
from sqlalchemy.orm import Session, aliased

from staffing_api.models import (
    BookingEvent,
    BookingStatus,
    CandidateNotification,
    NotificationStatus,
    NotificationType,
    Project,
    ProjectStatus,
    ResourceAssignment,
    LEGACY_BOOKING_STATUS_ALIASES,
    LIVE_NOTIFICATION_STATUSES,
)
from .booking import SYSTEM_ACTOR
from .notifications import NotificationService
from .projects import is_team_complete

logger = structlog.get_logger()


@dataclass
class IntegrityReport:
    """Ids of the rows found in each violation category."""

    accepted_without_candidate: list[int] = field(default_factory=list)
    legacy_status_aliases: list[int] = field(default_factory=list)
    stale_notifications: list[int] = field(default_factory=list)
    incomplete_play_projects: list[int] = field(default_factory=list)
    repaired: bool = False

    @property
    def is_clean(self) -> bool:
        return not (
            self.accepted_without_candidate
            or self.legacy_status_aliases
            or self.stale_notifications
            or self.incomplete_play_projects
        )

    def to_dict(self) -> dict:
        return {**asdict(self), "is_clean": self.is_clean}


def _stale_notification_filter():
    """Live mission requests on slots that are no longer open to their recipient."""
    slot = aliased(ResourceAssignment)
    closed_for_recipient = exists().where(
        slot.id == CandidateNotification.assignment_id,
        or_(
            slot.booking_status.not_in(BookingStatus.RECHERCHE.stored_values),
            slot.candidate_id.is_not(None),
        ),
        # The winner's own request is left alone
        or_(
            slot.candidate_id.is_(None),
            slot.candidate_id != CandidateNotification.candidate_id,
        ),
    )
    return and_(
        CandidateNotification.type == NotificationType.MISSION_REQUEST.value,
        CandidateNotification.status.in_(LIVE_NOTIFICATION_STATUSES),
        closed_for_recipient,
    )


def check_booking_integrity(db: Session, repair: bool = False) -> IntegrityReport:
    """Report booking invariant violations, repairing them when asked.

    Repairs reopen candidate-less accepted rows to recherche and send
    mission requests for them, rewrite legacy status spellings, expire
    stale notifications and move running projects with an incomplete team
    back to attente-team. Each assignment repair is recorded in the
    booking audit trail.

    Args:
        db: Database session
        repair: Apply the repairs and commit

    Returns:
        Report of what was found (before repair)
    """
    accepted_spellings = BookingStatus.ACCEPTED.stored_values
    report = IntegrityReport()

    report.accepted_without_candidate = [
        row.id
        for row in db.query(ResourceAssignment.id)
        .filter(
            ResourceAssignment.booking_status.in_(accepted_spellings),
            ResourceAssignment.candidate_id.is_(None),
        )
        .order_by(ResourceAssignment.id)
    ]
    report.legacy_status_aliases = [
        row.id
        for row in db.query(ResourceAssignment.id)
        .filter(ResourceAssignment.booking_status.in_(list(LEGACY_BOOKING_STATUS_ALIASES)))
        .order_by(ResourceAssignment.id)
    ]
    report.stale_notifications = [
        row.id
        for row in db.query(CandidateNotification.id)
        .filter(_stale_notification_filter())
        .order_by(CandidateNotification.id)
    ]
    running = (
        db.query(Project)
        .filter(Project.status == ProjectStatus.PLAY.value)
        .order_by(Project.id)
        .all()
    )
    report.incomplete_play_projects = [p.id for p in running if not is_team_complete(p)]

    if report.is_clean:
        logger.info("Booking integrity check passed")
        return report

    logger.warning(
        "Booking integrity violations found",
        accepted_without_candidate=len(report.accepted_without_candidate),
        legacy_status_aliases=len(report.legacy_status_aliases),
        stale_notifications=len(report.stale_notifications),
        incomplete_play_projects=len(report.incomplete_play_projects),
    )

    if repair:
        _repair(db, report)
        report.repaired = True

    return report


def _repair(db: Session, report: IntegrityReport) -> None:
    for assignment_id in report.accepted_without_candidate:
        db.execute(
            update(ResourceAssignment)
            .where(ResourceAssignment.id == assignment_id, ResourceAssignment.candidate_id.is_(None))
            .values(booking_status=BookingStatus.RECHERCHE.value, booked_at=None)
            .execution_options(synchronize_session=False)
        )
        db.add(
            _repair_event(
                assignment_id,
                BookingStatus.ACCEPTED,
                BookingStatus.RECHERCHE,
                "Accepted without candidate, search reopened",
            )
        )

    for alias, canonical in LEGACY_BOOKING_STATUS_ALIASES.items():
        result = db.execute(
            update(ResourceAssignment)
            .where(ResourceAssignment.booking_status == alias)
            .values(booking_status=canonical)
            .execution_options(synchronize_session=False)
        )
        logger.info("Legacy booking status normalized", alias=alias, canonical=canonical, rows=result.rowcount)

    for assignment_id in report.legacy_status_aliases:
        if assignment_id not in report.accepted_without_candidate:
            status = BookingStatus.ACCEPTED
            db.add(_repair_event(assignment_id, status, status, "Legacy status spelling normalized"))

    if report.stale_notifications:
        db.execute(
            update(CandidateNotification)
            .where(CandidateNotification.id.in_(report.stale_notifications))
            .values(status=NotificationStatus.EXPIRED.value)
            .execution_options(synchronize_session=False)
        )

    if report.incomplete_play_projects:
        db.execute(
            update(Project)
            .where(
                Project.id.in_(report.incomplete_play_projects),
                Project.status == ProjectStatus.PLAY.value,
            )
            .values(status=ProjectStatus.WAITING_TEAM.value)
            .execution_options(synchronize_session=False)
        )

    if report.accepted_without_candidate:
        notifications = NotificationService(db)
        reopened = (
            db.query(ResourceAssignment)
            .filter(
                ResourceAssignment.id.in_(report.accepted_without_candidate),
                ResourceAssignment.booking_status == BookingStatus.RECHERCHE.value,
            )
            .order_by(ResourceAssignment.id)
            .all()
        )
        for assignment in reopened:
            notifications.notify_eligible_candidates(assignment)

    db.commit()
    db.expire_all()
    logger.info("Booking integrity repaired", **report.to_dict())


def _repair_event(
    assignment_id: int,
    from_status: BookingStatus,
    to_status: BookingStatus,
    comment: str,
) -> BookingEvent:
    return BookingEvent(
        assignment_id=assignment_id,
        action="repair",
        from_status=from_status.value,
        to_status=to_status.value,
        comment=comment,
        actor_id=SYSTEM_ACTOR,
    )
