"""Pydantic schemas for ResourceAssignment endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import field_validator

from staffing_api.models import BookingStatus, Seniority, normalize_skills
from .base import CamelModel


def display_status(booking_status: str) -> str:
    """Canonical spelling of a stored booking status."""
    try:
        return BookingStatus.parse(booking_status).value
    except ValueError:
        return booking_status


class AssignmentCreate(CamelModel):
    """Schema for adding an assignment to a project."""

    profile_id: str
    seniority: Seniority
    languages: list[str] = []
    expertises: list[str] = []
    calculated_price: Optional[float] = None

    @field_validator("profile_id")
    @classmethod
    def profile_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("profileId must not be empty")
        return v.strip()

    @field_validator("languages", "expertises")
    @classmethod
    def normalize(cls, v: list[str]) -> list[str]:
        return normalize_skills(v)


class AssignmentUpdate(CamelModel):
    """Schema for changing assignment requirements (all fields optional)."""

    profile_id: Optional[str] = None
    seniority: Optional[Seniority] = None
    languages: Optional[list[str]] = None
    expertises: Optional[list[str]] = None
    calculated_price: Optional[float] = None

    @field_validator("profile_id")
    @classmethod
    def profile_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if not v.strip():
            raise ValueError("profileId must not be empty")
        return v.strip()


class AssignmentResponse(CamelModel):
    """Schema for assignment response."""

    id: int
    project_id: int
    profile_id: str
    seniority: str
    languages: list[str] = []
    expertises: list[str] = []
    calculated_price: Optional[float] = None
    booking_status: str
    candidate_id: Optional[str] = None
    booked_at: Optional[datetime] = None
    replaced_by_id: Optional[int] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, assignment, **extra) -> "AssignmentResponse":
        return cls(
            id=assignment.id,
            project_id=assignment.project_id,
            profile_id=assignment.profile_id,
            seniority=assignment.seniority,
            languages=sorted(assignment.languages),
            expertises=sorted(assignment.expertises),
            calculated_price=assignment.calculated_price,
            booking_status=display_status(assignment.booking_status),
            candidate_id=assignment.candidate_id,
            booked_at=assignment.booked_at,
            replaced_by_id=assignment.replaced_by_id,
            created_at=assignment.created_at,
            updated_at=assignment.updated_at,
            **extra,
        )


class MissionItem(AssignmentResponse):
    """Assignment as listed to a candidate, with its project."""

    project_title: str
    project_status: str


class BookingResponse(CamelModel):
    """Response for booking actions (accept/decline/cancel)."""

    success: bool
    assignment_id: int
    action: str  # accept, decline, cancel
    from_status: str
    to_status: str
    candidate_id: Optional[str] = None
    message: str


class CancelRequest(CamelModel):
    """Request to cancel an assignment."""

    comment: Optional[str] = None


class RebookingResponse(CamelModel):
    """Response for a requirement change."""

    action: str  # unchanged, updated, rebooked
    assignment: AssignmentResponse
    previous_assignment_id: Optional[int] = None
    outgoing_candidate_id: Optional[str] = None
    candidates_notified: int = 0


class BookingEventItem(CamelModel):
    """Schema for booking audit trail item."""

    id: int
    assignment_id: int
    action: str
    from_status: str
    to_status: str
    candidate_id: Optional[str] = None
    comment: Optional[str] = None
    actor_id: str
    created_at: datetime


class MatchCriterionItem(CamelModel):
    name: str
    passed: bool


class MatchResponse(CamelModel):
    """Criterion-by-criterion evaluation for one candidate."""

    assignment_id: int
    candidate_id: str
    matched: bool
    visible: bool
    failed_criteria: list[str] = []
    criteria: list[MatchCriterionItem] = []
