"""Project lifecycle: launch the search, start, complete, cancel.

Project transitions drive the booking transitions of their assignments in
the same database transaction.
"""

from datetime import date
from typing import Iterable, Optional

import structlog
from sqlalchemy import update
from sqlalchemy.orm import Session

from staffing_api.middleware.error_handler import (
    InvalidTransitionError,
    NotFoundError,
    ValidationAPIError,
)
from staffing_api.models import (
    BookingStatus,
    Project,
    ProjectStatus,
    ResourceAssignment,
    TERMINAL_BOOKING_STATUSES,
)
from .booking import SYSTEM_ACTOR, BookingService

logger = structlog.get_logger()

PROJECT_TRANSITIONS: dict[ProjectStatus, tuple[ProjectStatus, ...]] = {
    ProjectStatus.DRAFT: (ProjectStatus.WAITING_TEAM, ProjectStatus.CANCELLED),
    ProjectStatus.WAITING_TEAM: (ProjectStatus.PLAY, ProjectStatus.CANCELLED),
    # Back to attente-team when a slot is reopened while running
    ProjectStatus.PLAY: (ProjectStatus.COMPLETED, ProjectStatus.CANCELLED, ProjectStatus.WAITING_TEAM),
    ProjectStatus.COMPLETED: (),
    ProjectStatus.CANCELLED: (),
}

CLOSED_PROJECT_STATUSES = (ProjectStatus.COMPLETED.value, ProjectStatus.CANCELLED.value)

_TERMINAL_SPELLINGS = {s for status in TERMINAL_BOOKING_STATUSES for s in status.stored_values}


def active_assignments(assignments: Iterable[ResourceAssignment]) -> list[ResourceAssignment]:
    """Assignments still part of the team (not cancelled, not completed)."""
    return [a for a in assignments if a.booking_status not in _TERMINAL_SPELLINGS]


def is_team_complete(project: Project) -> bool:
    """Every active assignment is booked, and there is at least one."""
    active = active_assignments(project.assignments)
    return bool(active) and all(
        a.booking_status in BookingStatus.ACCEPTED.stored_values and a.candidate_id is not None
        for a in active
    )


class ProjectService:
    """Project lifecycle operations. Every public method commits."""

    def __init__(self, db: Session, actor_id: str = SYSTEM_ACTOR):
        self.db = db
        self.actor_id = actor_id
        self.booking = BookingService(db, actor_id)

    def get_project(self, project_id: int) -> Project:
        project = self.db.query(Project).filter(Project.id == project_id).first()
        if not project:
            raise NotFoundError("Project", project_id)
        return project

    def create_project(
        self,
        owner_id: str,
        title: str,
        description: Optional[str] = None,
        start_date: Optional[date] = None,
        due_date: Optional[date] = None,
    ) -> Project:
        project = Project(
            owner_id=owner_id,
            title=title,
            description=description,
            start_date=start_date,
            due_date=due_date,
            status=ProjectStatus.DRAFT.value,
        )
        self.db.add(project)
        self.db.commit()
        self.db.refresh(project)

        logger.info("Project created", project_id=project.id, owner_id=owner_id)
        return project

    def add_assignment(
        self,
        project: Project,
        profile_id: str,
        seniority: str,
        languages: Optional[Iterable[str]] = None,
        expertises: Optional[Iterable[str]] = None,
        calculated_price: Optional[float] = None,
    ) -> ResourceAssignment:
        """Add a slot to a project.

        On a project whose search is already launched the slot opens
        immediately, and a running project goes back to attente-team.
        """
        if project.status in CLOSED_PROJECT_STATUSES:
            raise ValidationAPIError("Cannot add assignments to a closed project", field="status")

        assignment = ResourceAssignment(
            project_id=project.id,
            profile_id=profile_id,
            seniority=seniority,
            calculated_price=calculated_price,
            booking_status=BookingStatus.DRAFT.value,
        )
        assignment.set_requirements(languages=languages or [], expertises=expertises or [])
        self.db.add(assignment)
        self.db.flush()

        if project.status in (ProjectStatus.WAITING_TEAM.value, ProjectStatus.PLAY.value):
            if project.status == ProjectStatus.PLAY.value:
                self._set_status(project, ProjectStatus.WAITING_TEAM)
            self.booking.open_search(assignment)

        self.db.commit()
        self.db.refresh(assignment)

        logger.info(
            "Assignment added",
            project_id=project.id,
            assignment_id=assignment.id,
            booking_status=assignment.booking_status,
        )
        return assignment

    def launch_search(self, project_id: int) -> tuple[ProjectStatus, int]:
        """Open the search on every draft assignment of a draft project.

        Returns:
            Previous project status and number of candidates notified
        """
        project = self.get_project(project_id)
        from_status = self._set_status(project, ProjectStatus.WAITING_TEAM)

        notified = 0
        for assignment in project.assignments:
            if assignment.booking_status == BookingStatus.DRAFT.value:
                notified += self.booking.open_search(assignment)

        self.db.commit()
        logger.info("Project search launched", project_id=project_id, candidates_notified=notified)
        return from_status, notified

    def start(self, project_id: int) -> ProjectStatus:
        project = self.get_project(project_id)
        if not is_team_complete(project):
            raise InvalidTransitionError(
                "project",
                project.id,
                project.status,
                ProjectStatus.PLAY.value,
                reason="team is not complete",
            )
        from_status = self._set_status(project, ProjectStatus.PLAY)
        self.db.commit()
        return from_status

    def complete(self, project_id: int) -> ProjectStatus:
        """Complete a running project and every booked assignment.

        Slots still open or in draft are cancelled.
        """
        project = self.get_project(project_id)
        from_status = self._set_status(project, ProjectStatus.COMPLETED)

        for assignment in active_assignments(project.assignments):
            if assignment.booking_status in BookingStatus.ACCEPTED.stored_values:
                self.booking.complete_assignment(assignment, comment="Project completed")
            else:
                self.booking.cancel_assignment(assignment, comment="Project completed")

        self.db.commit()
        return from_status

    def cancel(self, project_id: int) -> ProjectStatus:
        project = self.get_project(project_id)
        from_status = self._set_status(project, ProjectStatus.CANCELLED)

        for assignment in active_assignments(project.assignments):
            self.booking.cancel_assignment(assignment, comment="Project cancelled")

        self.db.commit()
        return from_status

    def _set_status(self, project: Project, to_status: ProjectStatus) -> ProjectStatus:
        """Conditional project status update. Does not commit."""
        from_status = ProjectStatus(project.status)
        if to_status not in PROJECT_TRANSITIONS[from_status]:
            raise InvalidTransitionError("project", project.id, from_status.value, to_status.value)

        self.db.flush()
        result = self.db.execute(
            update(Project)
            .where(Project.id == project.id, Project.status == from_status.value)
            .values(status=to_status.value)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            raise InvalidTransitionError(
                "project",
                project.id,
                from_status.value,
                to_status.value,
                reason="project was modified concurrently",
            )
        self.db.expire(project, ["status", "updated_at"])

        logger.info(
            "Project status changed",
            project_id=project.id,
            from_status=from_status.value,
            to_status=to_status.value,
            actor_id=self.actor_id,
        )
        return from_status
