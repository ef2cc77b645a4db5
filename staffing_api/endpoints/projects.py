"""Project endpoints: CRUD, lifecycle actions and assignment creation."""

import structlog
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from staffing_api.config.database import get_db
from staffing_api.middleware.error_handler import ForbiddenError
from staffing_api.models import BookingStatus, Project, ProjectStatus, ResourceAssignment
from staffing_api.schemas.assignments import AssignmentCreate, AssignmentResponse
from staffing_api.schemas.base import PaginatedResponse, PaginationMeta
from staffing_api.schemas.projects import (
    ProjectActionResponse,
    ProjectCreate,
    ProjectListItem,
    ProjectResponse,
)
from staffing_api.services.projects import ProjectService, is_team_complete
from staffing_api.services.rbac import is_admin, require_role

logger = structlog.get_logger()
router = APIRouter()


def get_owned_project(service: ProjectService, project_id: int, user: dict) -> Project:
    """Load a project the caller owns (admins may act on any project)."""
    project = service.get_project(project_id)
    if project.owner_id != user.get("sub") and not is_admin(user):
        raise ForbiddenError("You can only manage your own projects")
    return project


def build_project_response(project: Project) -> ProjectResponse:
    return ProjectResponse(
        id=project.id,
        owner_id=project.owner_id,
        title=project.title,
        description=project.description,
        status=project.status,
        start_date=project.start_date,
        due_date=project.due_date,
        team_complete=is_team_complete(project),
        assignments=[AssignmentResponse.from_model(a) for a in project.assignments],
        created_at=project.created_at,
        updated_at=project.updated_at,
    )


@router.post("", response_model=ProjectResponse, status_code=201)
async def create_project(
    data: ProjectCreate,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role(["client"])),
):
    """Create a draft project owned by the caller."""
    project = ProjectService(db, user["sub"]).create_project(
        owner_id=user["sub"],
        title=data.title,
        description=data.description,
        start_date=data.start_date,
        due_date=data.due_date,
    )
    return build_project_response(project)


@router.get("", response_model=PaginatedResponse[ProjectListItem])
async def list_projects(
    db: Session = Depends(get_db),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None),
    user: dict = Depends(require_role(["client"])),
):
    """List the caller's projects (all projects for admins)."""
    query = db.query(Project)
    if not is_admin(user):
        query = query.filter(Project.owner_id == user["sub"])
    if status:
        query = query.filter(Project.status == status)

    total = query.count()
    projects = (
        query.order_by(Project.created_at.desc(), Project.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )

    # Slot counts per project
    project_ids = [p.id for p in projects]
    assignment_counts = dict(
        db.query(ResourceAssignment.project_id, func.count(ResourceAssignment.id))
        .filter(ResourceAssignment.project_id.in_(project_ids))
        .group_by(ResourceAssignment.project_id)
        .all()
    )
    booked_counts = dict(
        db.query(ResourceAssignment.project_id, func.count(ResourceAssignment.id))
        .filter(
            ResourceAssignment.project_id.in_(project_ids),
            ResourceAssignment.booking_status.in_(BookingStatus.ACCEPTED.stored_values),
        )
        .group_by(ResourceAssignment.project_id)
        .all()
    )

    items = [
        ProjectListItem(
            id=p.id,
            owner_id=p.owner_id,
            title=p.title,
            status=p.status,
            assignment_count=assignment_counts.get(p.id, 0),
            booked_count=booked_counts.get(p.id, 0),
            start_date=p.start_date,
            due_date=p.due_date,
            created_at=p.created_at,
        )
        for p in projects
    ]

    return PaginatedResponse(
        data=items,
        meta=PaginationMeta(
            page=page,
            per_page=per_page,
            total=total,
            total_pages=(total + per_page - 1) // per_page,
        ),
    )


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role(["client"])),
):
    """Get a project with its assignments."""
    project = get_owned_project(ProjectService(db), project_id, user)
    return build_project_response(project)


@router.post("/{project_id}/assignments", response_model=AssignmentResponse, status_code=201)
async def add_assignment(
    project_id: int,
    data: AssignmentCreate,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role(["client"])),
):
    """Add a resource slot to a project."""
    service = ProjectService(db, user["sub"])
    project = get_owned_project(service, project_id, user)
    assignment = service.add_assignment(
        project,
        profile_id=data.profile_id,
        seniority=data.seniority.value,
        languages=data.languages,
        expertises=data.expertises,
        calculated_price=data.calculated_price,
    )
    return AssignmentResponse.from_model(assignment)


@router.post("/{project_id}/launch", response_model=ProjectActionResponse)
async def launch_project(
    project_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role(["client"])),
):
    """
    Launch the search for a draft project.

    Every draft assignment opens (recherche) and eligible candidates
    receive a mission request.
    """
    service = ProjectService(db, user["sub"])
    get_owned_project(service, project_id, user)
    from_status, notified = service.launch_search(project_id)

    return ProjectActionResponse(
        success=True,
        project_id=project_id,
        action="launch",
        from_status=from_status.value,
        to_status=ProjectStatus.WAITING_TEAM.value,
        message=f"Search launched, {notified} candidate(s) notified",
        candidates_notified=notified,
    )


@router.post("/{project_id}/start", response_model=ProjectActionResponse)
async def start_project(
    project_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role(["client"])),
):
    """Start a project once every open slot is booked."""
    service = ProjectService(db, user["sub"])
    get_owned_project(service, project_id, user)
    from_status = service.start(project_id)

    return ProjectActionResponse(
        success=True,
        project_id=project_id,
        action="start",
        from_status=from_status.value,
        to_status=ProjectStatus.PLAY.value,
        message="Project started",
    )


@router.post("/{project_id}/complete", response_model=ProjectActionResponse)
async def complete_project(
    project_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role(["client"])),
):
    """Complete a running project and its booked assignments."""
    service = ProjectService(db, user["sub"])
    get_owned_project(service, project_id, user)
    from_status = service.complete(project_id)

    return ProjectActionResponse(
        success=True,
        project_id=project_id,
        action="complete",
        from_status=from_status.value,
        to_status=ProjectStatus.COMPLETED.value,
        message="Project completed",
    )


@router.post("/{project_id}/cancel", response_model=ProjectActionResponse)
async def cancel_project(
    project_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role(["client"])),
):
    """Cancel a project and every assignment still open."""
    service = ProjectService(db, user["sub"])
    get_owned_project(service, project_id, user)
    from_status = service.cancel(project_id)

    return ProjectActionResponse(
        success=True,
        project_id=project_id,
        action="cancel",
        from_status=from_status.value,
        to_status=ProjectStatus.CANCELLED.value,
        message="Project cancelled",
    )
