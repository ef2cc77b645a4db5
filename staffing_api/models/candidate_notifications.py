"""CandidateNotification model for mission requests sent to candidates."""

from sqlalchemy import Column, DateTime, Integer, String, Text, ForeignKey, Index
from sqlalchemy.orm import relationship

from staffing_api.config.database import Base
from .base import TimestampMixin
from .enums import NotificationStatus


class CandidateNotification(Base, TimestampMixin):
    """
    A notification addressed to one candidate about one assignment.

    mission_request notifications double as the candidate's answer record:
    declined requests stay declined (archived or not), losers of a booking
    are expired.
    """

    __tablename__ = "candidate_notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    candidate_id = Column(
        String(36),
        ForeignKey("candidate_profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    project_id = Column(
        Integer,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    assignment_id = Column(
        Integer,
        ForeignKey("resource_assignments.id", ondelete="CASCADE"),
        nullable=False,
    )

    # mission_request, mission_completed
    type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=True)

    # unread, read, declined, expired
    status = Column(String(20), nullable=False, default=NotificationStatus.UNREAD.value)
    # Hidden from the candidate's list, status is kept
    archived_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_candidate_notifications_candidate", "candidate_id", "status"),
        Index("ix_candidate_notifications_assignment", "assignment_id", "status"),
    )

    # Relationships
    assignment = relationship("ResourceAssignment")
    project = relationship("Project")

    def __repr__(self) -> str:
        return f"<CandidateNotification(id={self.id}, type={self.type}, status={self.status})>"
