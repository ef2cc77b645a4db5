"""Pydantic schemas for Project endpoints."""

from datetime import date, datetime
from typing import Optional

from pydantic import field_validator

from .assignments import AssignmentResponse
from .base import CamelModel


class ProjectCreate(CamelModel):
    """Schema for creating a project."""

    title: str
    description: Optional[str] = None
    start_date: Optional[date] = None
    due_date: Optional[date] = None

    @field_validator("title")
    @classmethod
    def title_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("title must not be empty")
        return v.strip()


class ProjectListItem(CamelModel):
    """Schema for project in list response."""

    id: int
    owner_id: str
    title: str
    status: str
    assignment_count: int = 0
    booked_count: int = 0
    start_date: Optional[date] = None
    due_date: Optional[date] = None
    created_at: datetime


class ProjectResponse(CamelModel):
    """Schema for full project response."""

    id: int
    owner_id: str
    title: str
    description: Optional[str] = None
    status: str
    start_date: Optional[date] = None
    due_date: Optional[date] = None
    team_complete: bool = False
    assignments: list[AssignmentResponse] = []
    created_at: datetime
    updated_at: Optional[datetime] = None


class ProjectActionResponse(CamelModel):
    """Response for lifecycle actions (launch/start/complete/cancel)."""

    success: bool
    project_id: int
    action: str
    from_status: str
    to_status: str
    message: str
    candidates_notified: Optional[int] = None
