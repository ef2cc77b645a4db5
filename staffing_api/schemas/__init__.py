"""Pydantic schemas for API request/response validation.

All schemas use CamelCase for JSON field names (via alias_generator).
"""

from .base import CamelModel, PaginatedResponse, PaginationMeta

# Re-export all schemas
from .assignments import (
    AssignmentCreate,
    AssignmentUpdate,
    AssignmentResponse,
    MissionItem,
    BookingResponse,
    CancelRequest,
    RebookingResponse,
    BookingEventItem,
    MatchCriterionItem,
    MatchResponse,
)
from .projects import (
    ProjectCreate,
    ProjectListItem,
    ProjectResponse,
    ProjectActionResponse,
)
from .candidates import (
    CandidateProfileUpsert,
    CandidateProfileResponse,
    NotificationResponse,
)
from .integrity import IntegrityReportResponse

__all__ = [
    # Base
    "CamelModel",
    "PaginatedResponse",
    "PaginationMeta",
    # Assignments
    "AssignmentCreate",
    "AssignmentUpdate",
    "AssignmentResponse",
    "MissionItem",
    "BookingResponse",
    "CancelRequest",
    "RebookingResponse",
    "BookingEventItem",
    "MatchCriterionItem",
    "MatchResponse",
    # Projects
    "ProjectCreate",
    "ProjectListItem",
    "ProjectResponse",
    "ProjectActionResponse",
    # Candidates
    "CandidateProfileUpsert",
    "CandidateProfileResponse",
    "NotificationResponse",
    # Integrity
    "IntegrityReportResponse",
]
