"""Candidate notifications for open and closed missions.

A mission_request is the invitation sent to an eligible candidate when a
slot opens. It is also the record of the candidate's answer: declined
requests stay declined and hide the slot from that candidate, requests of
candidates who lost a booking are expired.
"""

from typing import Optional

import structlog
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from staffing_api.config.settings import settings
from staffing_api.models import (
    CandidateNotification,
    CandidateProfile,
    NotificationStatus,
    NotificationType,
    ResourceAssignment,
    LIVE_NOTIFICATION_STATUSES,
)
from .access_policy import eligible_candidates_clause, eligible_candidates_query

logger = structlog.get_logger()


class NotificationService:
    """Creates and closes candidate notifications. Callers commit."""

    def __init__(self, db: Session):
        self.db = db

    def notify_eligible_candidates(self, assignment: ResourceAssignment) -> int:
        """Send a mission request to every candidate eligible for the slot.

        Candidates who already hold a request for the slot (live or
        declined, archived or not) are skipped.

        Returns:
            Number of notifications created
        """
        # Eligibility is evaluated by the database, pending changes must be visible
        self.db.flush()

        already_asked = select(CandidateNotification.candidate_id).where(
            CandidateNotification.assignment_id == assignment.id,
            CandidateNotification.type == NotificationType.MISSION_REQUEST.value,
            CandidateNotification.status.in_(
                LIVE_NOTIFICATION_STATUSES + (NotificationStatus.DECLINED.value,)
            ),
        )
        candidates = (
            eligible_candidates_query(self.db, assignment.id)
            .filter(~CandidateProfile.id.in_(already_asked))
            .order_by(CandidateProfile.id)
            .limit(settings.NOTIFY_CANDIDATE_LIMIT)
            .all()
        )

        project = assignment.project
        for candidate in candidates:
            self.db.add(
                CandidateNotification(
                    candidate_id=candidate.id,
                    project_id=assignment.project_id,
                    assignment_id=assignment.id,
                    type=NotificationType.MISSION_REQUEST.value,
                    title=f"New mission: {project.title if project else assignment.profile_id}",
                    message=(
                        f"A {assignment.seniority} {assignment.profile_id} is needed. "
                        "Accept the mission to join the team."
                    ),
                )
            )

        logger.info(
            "Mission requests sent",
            assignment_id=assignment.id,
            candidates=len(candidates),
        )
        return len(candidates)

    def close_requests_on_booking(self, assignment_id: int, winner_id: str) -> None:
        """Mark the winner's request read and expire everybody else's."""
        base = (
            CandidateNotification.assignment_id == assignment_id,
            CandidateNotification.type == NotificationType.MISSION_REQUEST.value,
            CandidateNotification.status.in_(LIVE_NOTIFICATION_STATUSES),
        )
        self.db.execute(
            update(CandidateNotification)
            .where(*base, CandidateNotification.candidate_id == winner_id)
            .values(status=NotificationStatus.READ.value)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(
            update(CandidateNotification)
            .where(*base, CandidateNotification.candidate_id != winner_id)
            .values(status=NotificationStatus.EXPIRED.value)
            .execution_options(synchronize_session=False)
        )
        logger.info(
            "Mission requests closed",
            assignment_id=assignment_id,
            winner_id=winner_id,
            expired=result.rowcount,
        )

    def expire_requests(self, assignment_id: int) -> int:
        """Expire every live request for a slot that is no longer open."""
        result = self.db.execute(
            update(CandidateNotification)
            .where(
                CandidateNotification.assignment_id == assignment_id,
                CandidateNotification.type == NotificationType.MISSION_REQUEST.value,
                CandidateNotification.status.in_(LIVE_NOTIFICATION_STATUSES),
            )
            .values(status=NotificationStatus.EXPIRED.value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def expire_ineligible_requests(self, assignment_id: int) -> int:
        """Expire live requests of candidates the slot no longer matches."""
        self.db.flush()
        eligible = select(CandidateProfile.id).where(eligible_candidates_clause(assignment_id))
        result = self.db.execute(
            update(CandidateNotification)
            .where(
                CandidateNotification.assignment_id == assignment_id,
                CandidateNotification.type == NotificationType.MISSION_REQUEST.value,
                CandidateNotification.status.in_(LIVE_NOTIFICATION_STATUSES),
                CandidateNotification.candidate_id.not_in(eligible),
            )
            .values(status=NotificationStatus.EXPIRED.value)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            logger.info(
                "Requests of ineligible candidates expired",
                assignment_id=assignment_id,
                expired=result.rowcount,
            )
        return result.rowcount

    def record_decline(self, assignment: ResourceAssignment, candidate_id: str) -> CandidateNotification:
        """Mark the candidate's request declined, creating it if it was never sent."""
        notification = (
            self.db.query(CandidateNotification)
            .filter(
                CandidateNotification.assignment_id == assignment.id,
                CandidateNotification.candidate_id == candidate_id,
                CandidateNotification.type == NotificationType.MISSION_REQUEST.value,
            )
            .order_by(CandidateNotification.id.desc())
            .first()
        )
        if not notification:
            notification = CandidateNotification(
                candidate_id=candidate_id,
                project_id=assignment.project_id,
                assignment_id=assignment.id,
                type=NotificationType.MISSION_REQUEST.value,
                title=f"Mission declined: {assignment.profile_id}",
            )
            self.db.add(notification)

        notification.status = NotificationStatus.DECLINED.value
        return notification

    def notify_mission_completed(
        self,
        assignment: ResourceAssignment,
        candidate_id: str,
        reason: Optional[str] = None,
    ) -> CandidateNotification:
        """Tell a booked candidate their mission ended."""
        notification = CandidateNotification(
            candidate_id=candidate_id,
            project_id=assignment.project_id,
            assignment_id=assignment.id,
            type=NotificationType.MISSION_COMPLETED.value,
            title=f"Mission completed: {assignment.profile_id}",
            message=reason,
        )
        self.db.add(notification)
        return notification

