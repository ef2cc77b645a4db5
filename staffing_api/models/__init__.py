"""SQLAlchemy ORM models for the staffing booking API.

All models are imported here to ensure they're registered with Base.metadata
before any database operations.
"""

# Import base first
from staffing_api.config.database import Base

# Core models
from .projects import Project
from .resource_assignments import ResourceAssignment
from .candidate_profiles import CandidateProfile
from .skills import AssignmentRequirement, CandidateSkill, SkillKind, normalize_skill, normalize_skills

# Notification models
from .candidate_notifications import CandidateNotification

# Audit models
from .booking_events import BookingEvent

# Enums
from .enums import (
    BookingStatus,
    ProjectStatus,
    Seniority,
    CandidateStatus,
    NotificationType,
    NotificationStatus,
    LEGACY_BOOKING_STATUS_ALIASES,
    BOUND_BOOKING_STATUSES,
    TERMINAL_BOOKING_STATUSES,
    LIVE_NOTIFICATION_STATUSES,
)

__all__ = [
    "Base",
    # Core
    "Project",
    "ResourceAssignment",
    "CandidateProfile",
    "AssignmentRequirement",
    "CandidateSkill",
    "SkillKind",
    "normalize_skill",
    "normalize_skills",
    # Notifications
    "CandidateNotification",
    # Audit
    "BookingEvent",
    # Enums
    "BookingStatus",
    "ProjectStatus",
    "Seniority",
    "CandidateStatus",
    "NotificationType",
    "NotificationStatus",
    "LEGACY_BOOKING_STATUS_ALIASES",
    "BOUND_BOOKING_STATUSES",
    "TERMINAL_BOOKING_STATUSES",
    "LIVE_NOTIFICATION_STATUSES",
]
