"""Booking state machine for resource assignments.

Every status change is one conditional UPDATE on the expected from-state.
Acceptance additionally requires the slot to be unbound (or bound to the
accepting candidate) and sets candidate_id in the same statement, so when
several candidates accept the same slot exactly one UPDATE matches a row
and the others fail with BookingConflictError.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Iterable, Optional

import structlog
from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from staffing_api.middleware.error_handler import (
    AssignmentNotAvailableError,
    BookingConflictError,
    CandidateMismatchError,
    InvalidTransitionError,
    NotFoundError,
)
from staffing_api.models import (
    BookingEvent,
    BookingStatus,
    CandidateProfile,
    Project,
    ProjectStatus,
    ResourceAssignment,
    TERMINAL_BOOKING_STATUSES,
    normalize_skills,
)
from .matching import SKILL_CRITERIA, evaluate_match, is_visible
from .notifications import NotificationService

logger = structlog.get_logger()

SYSTEM_ACTOR = "system"

ASSIGNMENT_TRANSITIONS: dict[BookingStatus, tuple[BookingStatus, ...]] = {
    BookingStatus.DRAFT: (BookingStatus.RECHERCHE, BookingStatus.CANCELLED),
    BookingStatus.RECHERCHE: (BookingStatus.ACCEPTED, BookingStatus.CANCELLED),
    BookingStatus.ACCEPTED: (BookingStatus.COMPLETED, BookingStatus.CANCELLED),
    BookingStatus.COMPLETED: (),
    BookingStatus.CANCELLED: (),
}

# Fields a client may change on an existing assignment
REQUIREMENT_FIELDS = ("profile_id", "seniority", "languages", "expertises", "calculated_price")
SKILL_FIELDS = ("languages", "expertises")


def can_transition(from_status: str, to_status: str) -> bool:
    """Check the transition table, resolving legacy spellings."""
    try:
        source = BookingStatus.parse(from_status)
        target = BookingStatus.parse(to_status)
    except ValueError:
        return False
    return target in ASSIGNMENT_TRANSITIONS[source]


@dataclass
class RebookingResult:
    """Outcome of a requirement change."""

    assignment: ResourceAssignment  # Slot carrying the new requirements
    action: str  # unchanged, updated, rebooked
    previous: Optional[ResourceAssignment] = None  # Closed slot when rebooked
    outgoing_candidate_id: Optional[str] = None
    candidates_notified: int = 0


class BookingService:
    """Booking transitions of resource assignments.

    Methods that act on one request (accept, decline, cancel,
    change_requirements) commit. The building blocks used by the project
    lifecycle (open_search, complete_assignment, cancel_assignment) leave
    the commit to the caller.
    """

    def __init__(self, db: Session, actor_id: str = SYSTEM_ACTOR):
        self.db = db
        self.actor_id = actor_id
        self.notifications = NotificationService(db)

    def get_assignment(self, assignment_id: int) -> ResourceAssignment:
        assignment = (
            self.db.query(ResourceAssignment)
            .filter(ResourceAssignment.id == assignment_id)
            .first()
        )
        if not assignment:
            raise NotFoundError("Assignment", assignment_id)
        return assignment

    def get_candidate(self, candidate_id: str) -> CandidateProfile:
        candidate = (
            self.db.query(CandidateProfile)
            .filter(CandidateProfile.id == candidate_id)
            .first()
        )
        if not candidate:
            raise NotFoundError("Candidate", candidate_id)
        return candidate

    def transition(
        self,
        assignment: ResourceAssignment,
        to_status: BookingStatus,
        action: str,
        candidate_id: Optional[str] = None,
        comment: Optional[str] = None,
        values: Optional[dict[str, Any]] = None,
        conditions: Iterable[Any] = (),
    ) -> BookingStatus:
        """Move an assignment to a new status with a conditional update.

        Args:
            assignment: Assignment as currently known to the caller
            to_status: Target status
            action: Audit action name
            candidate_id: Candidate concerned, recorded in the audit trail
            comment: Free-text audit comment
            values: Extra columns written in the same statement
            conditions: Extra WHERE conditions of the update

        Returns:
            The status the assignment was moved from

        Raises:
            InvalidTransitionError: Transition not in the table
            BookingConflictError: The row no longer matched the expected state
        """
        assignment_id = assignment.id
        try:
            from_status = BookingStatus.parse(assignment.booking_status)
        except ValueError:
            raise InvalidTransitionError(
                "assignment",
                assignment.id,
                assignment.booking_status,
                to_status.value,
                reason="unknown booking status",
            )
        if to_status not in ASSIGNMENT_TRANSITIONS[from_status]:
            raise InvalidTransitionError("assignment", assignment.id, from_status.value, to_status.value)

        self.db.flush()
        statement = (
            update(ResourceAssignment)
            .where(
                ResourceAssignment.id == assignment.id,
                ResourceAssignment.booking_status.in_(from_status.stored_values),
                *conditions,
            )
            .values(booking_status=to_status.value, **(values or {}))
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(statement)

        if result.rowcount != 1:
            self.db.rollback()
            logger.warning(
                "Booking update matched no row",
                assignment_id=assignment_id,
                expected_status=from_status.value,
                to_status=to_status.value,
                candidate_id=candidate_id,
            )
            raise BookingConflictError(assignment_id, from_status.value)

        self.db.expire(assignment)
        self.db.add(
            BookingEvent(
                assignment_id=assignment_id,
                action=action,
                from_status=from_status.value,
                to_status=to_status.value,
                candidate_id=candidate_id,
                comment=comment,
                actor_id=self.actor_id,
            )
        )

        logger.info(
            "Booking status changed",
            assignment_id=assignment_id,
            action=action,
            from_status=from_status.value,
            to_status=to_status.value,
            candidate_id=candidate_id,
            actor_id=self.actor_id,
        )
        return from_status

    def open_search(self, assignment: ResourceAssignment) -> int:
        """Open the search on a draft assignment and notify eligible candidates.

        Returns:
            Number of candidates notified
        """
        self.transition(assignment, BookingStatus.RECHERCHE, "open_search")
        return self.notifications.notify_eligible_candidates(assignment)

    def accept(self, assignment_id: int, candidate_id: str) -> ResourceAssignment:
        """Book an open assignment for a candidate.

        Re-accepting a slot the candidate already holds returns it unchanged.

        Raises:
            NotFoundError: Unknown assignment or candidate
            AssignmentNotAvailableError: Slot not open for this candidate
            CandidateMismatchError: Candidate does not meet the requirements
            BookingConflictError: Another candidate booked the slot first
        """
        assignment = self.get_assignment(assignment_id)
        candidate = self.get_candidate(candidate_id)

        if (
            assignment.booking_status in BookingStatus.ACCEPTED.stored_values
            and assignment.candidate_id == candidate.id
        ):
            return assignment

        if (
            assignment.booking_status not in BookingStatus.RECHERCHE.stored_values
            or assignment.candidate_id not in (None, candidate.id)
        ):
            raise AssignmentNotAvailableError(assignment.id, assignment.booking_status)

        result = evaluate_match(assignment, candidate)
        if not result.matched:
            logger.info(
                "Candidate does not match assignment",
                assignment_id=assignment.id,
                candidate_id=candidate.id,
                failed_criteria=result.failed,
            )
            raise CandidateMismatchError(assignment.id, candidate.id, result.failed)

        self.transition(
            assignment,
            BookingStatus.ACCEPTED,
            "accept",
            candidate_id=candidate.id,
            values={"candidate_id": candidate.id, "booked_at": datetime.now(timezone.utc)},
            conditions=[
                or_(
                    ResourceAssignment.candidate_id.is_(None),
                    ResourceAssignment.candidate_id == candidate.id,
                )
            ],
        )
        self.notifications.close_requests_on_booking(assignment.id, candidate.id)

        self.db.commit()
        self.db.refresh(assignment)
        return assignment

    def decline(self, assignment_id: int, candidate_id: str) -> ResourceAssignment:
        """Record a candidate's refusal; the slot stays open for others."""
        assignment = self.get_assignment(assignment_id)
        candidate = self.get_candidate(candidate_id)

        if (
            assignment.booking_status not in BookingStatus.RECHERCHE.stored_values
            or not is_visible(assignment, candidate)
        ):
            raise AssignmentNotAvailableError(assignment.id, assignment.booking_status)

        self.notifications.record_decline(assignment, candidate.id)
        self.db.add(
            BookingEvent(
                assignment_id=assignment.id,
                action="decline",
                from_status=BookingStatus.RECHERCHE.value,
                to_status=BookingStatus.RECHERCHE.value,
                candidate_id=candidate.id,
                actor_id=self.actor_id,
            )
        )
        self.db.commit()

        logger.info("Mission declined", assignment_id=assignment.id, candidate_id=candidate.id)
        return assignment

    def complete_assignment(self, assignment: ResourceAssignment, comment: Optional[str] = None) -> None:
        candidate_id = assignment.candidate_id
        self.transition(
            assignment,
            BookingStatus.COMPLETED,
            "complete",
            candidate_id=candidate_id,
            comment=comment,
        )
        self.notifications.expire_requests(assignment.id)

    def cancel_assignment(self, assignment: ResourceAssignment, comment: Optional[str] = None) -> None:
        candidate_id = assignment.candidate_id
        self.transition(
            assignment,
            BookingStatus.CANCELLED,
            "cancel",
            candidate_id=candidate_id,
            comment=comment,
        )
        self.notifications.expire_requests(assignment.id)

    def cancel(self, assignment_id: int, comment: Optional[str] = None) -> ResourceAssignment:
        assignment = self.get_assignment(assignment_id)
        self.cancel_assignment(assignment, comment)
        self.db.commit()
        self.db.refresh(assignment)
        return assignment

    def change_requirements(self, assignment_id: int, changes: dict[str, Any]) -> RebookingResult:
        """Apply new requirements to an assignment, rebooking when needed.

        A booked slot whose profile or seniority changes, or whose candidate
        no longer covers the required skills, is completed and replaced by
        a new open slot. Any other change is applied in place.

        Args:
            assignment_id: Assignment to change
            changes: Subset of REQUIREMENT_FIELDS with their new values
        """
        assignment = self.get_assignment(assignment_id)
        status = BookingStatus.parse(assignment.booking_status)
        if status in TERMINAL_BOOKING_STATUSES:
            raise AssignmentNotAvailableError(
                assignment.id,
                assignment.booking_status,
                message="Closed assignments cannot be changed",
            )

        changed = self._diff_requirements(assignment, changes)
        if not changed:
            return RebookingResult(assignment=assignment, action="unchanged")

        proposed = SimpleNamespace(
            **{field: getattr(assignment, field) for field in REQUIREMENT_FIELDS},
        )
        for field, value in changed.items():
            setattr(proposed, field, value)

        booked = status is BookingStatus.ACCEPTED and assignment.candidate_id is not None
        if booked:
            rebook = (
                "profile_id" in changed
                or "seniority" in changed
                or not evaluate_match(proposed, assignment.candidate, SKILL_CRITERIA).matched
            )
            if rebook:
                return self._rebook(assignment, proposed, sorted(changed))

        self._apply_requirements(assignment, changed)
        self.db.add(
            BookingEvent(
                assignment_id=assignment.id,
                action="update",
                from_status=status.value,
                to_status=status.value,
                candidate_id=assignment.candidate_id,
                comment=f"Changed: {', '.join(sorted(changed))}",
                actor_id=self.actor_id,
            )
        )

        notified = 0
        if status is BookingStatus.RECHERCHE:
            self.notifications.expire_ineligible_requests(assignment.id)
            notified = self.notifications.notify_eligible_candidates(assignment)

        self.db.commit()
        self.db.refresh(assignment)

        logger.info(
            "Assignment requirements updated",
            assignment_id=assignment.id,
            changed=sorted(changed),
            candidates_notified=notified,
        )
        return RebookingResult(assignment=assignment, action="updated", candidates_notified=notified)

    def _diff_requirements(self, assignment: ResourceAssignment, changes: dict[str, Any]) -> dict[str, Any]:
        changed = {}
        for field, value in changes.items():
            if field not in REQUIREMENT_FIELDS:
                continue
            if value is None and field != "calculated_price":
                continue
            if field in SKILL_FIELDS:
                value = set(normalize_skills(value))
            elif hasattr(value, "value"):
                value = value.value
            if value != getattr(assignment, field):
                changed[field] = value
        return changed

    def _apply_requirements(self, assignment: ResourceAssignment, changed: dict[str, Any]) -> None:
        for field in ("profile_id", "seniority", "calculated_price"):
            if field in changed:
                setattr(assignment, field, changed[field])
        if any(field in changed for field in SKILL_FIELDS):
            assignment.set_requirements(
                languages=changed.get("languages"),
                expertises=changed.get("expertises"),
            )

    def _rebook(
        self,
        assignment: ResourceAssignment,
        proposed: SimpleNamespace,
        changed_fields: list[str],
    ) -> RebookingResult:
        """Close a booked slot and reopen the search with new requirements."""
        outgoing_candidate_id = assignment.candidate_id
        project = assignment.project

        replacement = ResourceAssignment(
            project_id=assignment.project_id,
            profile_id=proposed.profile_id,
            seniority=proposed.seniority,
            calculated_price=proposed.calculated_price,
            booking_status=BookingStatus.DRAFT.value,
        )
        replacement.set_requirements(
            languages=proposed.languages,
            expertises=proposed.expertises,
        )
        self.db.add(replacement)
        self.db.flush()

        reason = f"Requirements changed ({', '.join(changed_fields)})"
        self.transition(
            assignment,
            BookingStatus.COMPLETED,
            "rebook",
            candidate_id=outgoing_candidate_id,
            comment=f"{reason}, replaced by assignment {replacement.id}",
            values={"replaced_by_id": replacement.id},
        )
        self.notifications.expire_requests(assignment.id)
        self.notifications.notify_mission_completed(assignment, outgoing_candidate_id, reason)

        if project.status == ProjectStatus.PLAY.value:
            self._reopen_project(project)

        notified = self.open_search(replacement)

        self.db.commit()
        self.db.refresh(assignment)
        self.db.refresh(replacement)

        logger.info(
            "Assignment rebooked",
            assignment_id=assignment.id,
            replacement_id=replacement.id,
            outgoing_candidate_id=outgoing_candidate_id,
            changed=changed_fields,
            candidates_notified=notified,
        )
        return RebookingResult(
            assignment=replacement,
            action="rebooked",
            previous=assignment,
            outgoing_candidate_id=outgoing_candidate_id,
            candidates_notified=notified,
        )

    def _reopen_project(self, project: Project) -> None:
        """Move a running project back to attente-team. Does not commit."""
        self.db.flush()
        result = self.db.execute(
            update(Project)
            .where(Project.id == project.id, Project.status == ProjectStatus.PLAY.value)
            .values(status=ProjectStatus.WAITING_TEAM.value)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            raise InvalidTransitionError(
                "project",
                project.id,
                ProjectStatus.PLAY.value,
                ProjectStatus.WAITING_TEAM.value,
                reason="project was modified concurrently",
            )
        self.db.expire(project, ["status", "updated_at"])

        logger.info(
            "Project status changed",
            project_id=project.id,
            from_status=ProjectStatus.PLAY.value,
            to_status=ProjectStatus.WAITING_TEAM.value,
            actor_id=self.actor_id,
        )
