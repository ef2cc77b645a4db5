"""Assignment endpoints: booking actions, requirement changes, audit trail."""

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from staffing_api.config.database import get_db
from staffing_api.middleware.error_handler import ForbiddenError, NotFoundError
from staffing_api.models import BookingEvent, BookingStatus, ResourceAssignment
from staffing_api.schemas.assignments import (
    AssignmentResponse,
    AssignmentUpdate,
    BookingEventItem,
    BookingResponse,
    CancelRequest,
    MatchCriterionItem,
    MatchResponse,
    RebookingResponse,
    display_status,
)
from staffing_api.services.access_policy import can_view_assignment
from staffing_api.services.booking import BookingService
from staffing_api.services.matching import evaluate_match, is_visible
from staffing_api.services.rbac import has_role, is_admin, require_role

logger = structlog.get_logger()
router = APIRouter()


def get_managed_assignment(service: BookingService, assignment_id: int, user: dict) -> ResourceAssignment:
    """Load an assignment of a project the caller owns (admins: any)."""
    assignment = service.get_assignment(assignment_id)
    if assignment.project.owner_id != user.get("sub") and not is_admin(user):
        raise ForbiddenError("You can only manage assignments of your own projects")
    return assignment


@router.get("/{assignment_id}", response_model=AssignmentResponse)
async def get_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role(["client", "candidate"])),
):
    """
    Get an assignment.

    Project owners and admins see every assignment of their projects.
    Candidates only see assignments the visibility policy grants them.
    """
    service = BookingService(db, user["sub"])
    assignment = service.get_assignment(assignment_id)

    owner = assignment.project.owner_id == user["sub"] and has_role(user.get("role"), "client")
    if not (owner or is_admin(user)):
        if not can_view_assignment(db, assignment_id, user["sub"]):
            # Same answer as a missing row, existence is not disclosed
            raise NotFoundError("Assignment", assignment_id)

    return AssignmentResponse.from_model(assignment)


@router.patch("/{assignment_id}", response_model=RebookingResponse)
async def update_assignment(
    assignment_id: int,
    data: AssignmentUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role(["client"])),
):
    """
    Change the requirements of an assignment.

    A booked slot whose candidate no longer qualifies is completed and
    replaced by a new open slot; other changes apply in place.
    """
    service = BookingService(db, user["sub"])
    get_managed_assignment(service, assignment_id, user)

    result = service.change_requirements(assignment_id, data.model_dump(exclude_unset=True))

    return RebookingResponse(
        action=result.action,
        assignment=AssignmentResponse.from_model(result.assignment),
        previous_assignment_id=result.previous.id if result.previous else None,
        outgoing_candidate_id=result.outgoing_candidate_id,
        candidates_notified=result.candidates_notified,
    )


@router.post("/{assignment_id}/accept", response_model=BookingResponse)
async def accept_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role(["candidate"])),
):
    """
    Accept an open assignment as the calling candidate.

    When several candidates accept the same slot, exactly one succeeds and
    the others receive 409 NOT_AVAILABLE (UPDATE_FAILED when the race was
    lost between read and write).
    """
    assignment = BookingService(db, user["sub"]).accept(assignment_id, user["sub"])

    return BookingResponse(
        success=True,
        assignment_id=assignment.id,
        action="accept",
        from_status=BookingStatus.RECHERCHE.value,
        to_status=display_status(assignment.booking_status),
        candidate_id=assignment.candidate_id,
        message="Mission accepted",
    )


@router.post("/{assignment_id}/decline", response_model=BookingResponse)
async def decline_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role(["candidate"])),
):
    """Decline an open assignment; it stays open for other candidates."""
    assignment = BookingService(db, user["sub"]).decline(assignment_id, user["sub"])

    return BookingResponse(
        success=True,
        assignment_id=assignment.id,
        action="decline",
        from_status=BookingStatus.RECHERCHE.value,
        to_status=display_status(assignment.booking_status),
        candidate_id=user["sub"],
        message="Mission declined",
    )


@router.post("/{assignment_id}/cancel", response_model=BookingResponse)
async def cancel_assignment(
    assignment_id: int,
    data: CancelRequest = CancelRequest(),
    db: Session = Depends(get_db),
    user: dict = Depends(require_role(["client"])),
):
    """Cancel an assignment that is not completed yet."""
    service = BookingService(db, user["sub"])
    assignment = get_managed_assignment(service, assignment_id, user)
    from_status = display_status(assignment.booking_status)

    assignment = service.cancel(assignment_id, comment=data.comment)

    return BookingResponse(
        success=True,
        assignment_id=assignment.id,
        action="cancel",
        from_status=from_status,
        to_status=assignment.booking_status,
        candidate_id=assignment.candidate_id,
        message="Assignment cancelled",
    )


@router.get("/{assignment_id}/events", response_model=list[BookingEventItem])
async def get_assignment_events(
    assignment_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role(["client"])),
):
    """Get the booking audit trail of an assignment."""
    get_managed_assignment(BookingService(db), assignment_id, user)

    events = (
        db.query(BookingEvent)
        .filter(BookingEvent.assignment_id == assignment_id)
        .order_by(BookingEvent.id)
        .all()
    )

    return [
        BookingEventItem(
            id=e.id,
            assignment_id=e.assignment_id,
            action=e.action,
            from_status=e.from_status,
            to_status=e.to_status,
            candidate_id=e.candidate_id,
            comment=e.comment,
            actor_id=e.actor_id,
            created_at=e.created_at,
        )
        for e in events
    ]


@router.get("/{assignment_id}/match", response_model=MatchResponse)
async def get_assignment_match(
    assignment_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role(["candidate"])),
):
    """Evaluate the calling candidate against an assignment, criterion by criterion."""
    service = BookingService(db, user["sub"])
    assignment = service.get_assignment(assignment_id)
    candidate = service.get_candidate(user["sub"])

    open_or_own = (
        assignment.booking_status in BookingStatus.RECHERCHE.stored_values
        or assignment.candidate_id == candidate.id
    )
    if not open_or_own:
        raise NotFoundError("Assignment", assignment_id)

    result = evaluate_match(assignment, candidate)

    return MatchResponse(
        assignment_id=assignment.id,
        candidate_id=candidate.id,
        matched=result.matched,
        visible=is_visible(assignment, candidate),
        failed_criteria=result.failed,
        criteria=(
            [MatchCriterionItem(name=name, passed=True) for name in result.passed]
            + [MatchCriterionItem(name=name, passed=False) for name in result.failed]
        ),
    )
