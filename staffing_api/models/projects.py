"""Project model for client projects."""

from sqlalchemy import Column, Integer, String, Text, Date, Index
from sqlalchemy.orm import relationship

from staffing_api.config.database import Base
from .base import TimestampMixin
from .enums import ProjectStatus


class Project(Base, TimestampMixin):
    """
    A client project staffed through resource assignments.

    Status flow: draft -> attente-team -> play -> completed (or cancelled).
    """

    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(String(36), nullable=False)  # Client identity (token sub)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    start_date = Column(Date, nullable=True)
    due_date = Column(Date, nullable=True)

    status = Column(String(20), nullable=False, default=ProjectStatus.DRAFT.value)

    __table_args__ = (
        Index("ix_projects_owner", "owner_id"),
        Index("ix_projects_status", "status"),
    )

    # Relationships
    assignments = relationship(
        "ResourceAssignment",
        back_populates="project",
        order_by="ResourceAssignment.id",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Project(id={self.id}, title={self.title}, status={self.status})>"
