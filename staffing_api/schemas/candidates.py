"""Pydantic schemas for candidate profile and notification endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import field_validator

from staffing_api.models import CandidateStatus, Seniority, normalize_skills
from .base import CamelModel


class CandidateProfileUpsert(CamelModel):
    """Schema for creating or replacing the caller's candidate profile."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    profile_id: str
    seniority: Seniority
    status: CandidateStatus = CandidateStatus.QUALIFICATION
    qualification_status: Optional[str] = None
    languages: list[str] = []
    expertises: list[str] = []

    @field_validator("languages", "expertises")
    @classmethod
    def normalize(cls, v: list[str]) -> list[str]:
        return normalize_skills(v)


class CandidateProfileResponse(CamelModel):
    """Schema for candidate profile response."""

    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    profile_id: str
    seniority: str
    status: str
    qualification_status: Optional[str] = None
    languages: list[str] = []
    expertises: list[str] = []
    created_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, candidate) -> "CandidateProfileResponse":
        return cls(
            id=candidate.id,
            first_name=candidate.first_name,
            last_name=candidate.last_name,
            email=candidate.email,
            profile_id=candidate.profile_id,
            seniority=candidate.seniority,
            status=candidate.status,
            qualification_status=candidate.qualification_status,
            languages=sorted(candidate.languages),
            expertises=sorted(candidate.expertises),
            created_at=candidate.created_at,
            updated_at=candidate.updated_at,
        )


class NotificationResponse(CamelModel):
    """Schema for candidate notification."""

    id: int
    candidate_id: str
    project_id: int
    assignment_id: int
    type: str
    title: str
    message: Optional[str] = None
    status: str
    archived_at: Optional[datetime] = None
    created_at: datetime
