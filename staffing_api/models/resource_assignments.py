"""ResourceAssignment model: one staffing slot of a project."""

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship

from staffing_api.config.database import Base
from .base import TimestampMixin
from .enums import BookingStatus
from .skills import AssignmentRequirement, SkillKind, merge_skill_rows


_ACCEPTED_SPELLINGS = ", ".join(f"'{value}'" for value in BookingStatus.ACCEPTED.stored_values)


class ResourceAssignment(Base, TimestampMixin):
    """
    A resource slot of a project and its booking state.

    The slot requires a profile (métier), a seniority level and a set of
    languages and expertises. It is booked by at most one candidate.
    """

    __tablename__ = "resource_assignments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(
        Integer,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Requirements
    profile_id = Column(String(100), nullable=False)
    seniority = Column(String(20), nullable=False)
    calculated_price = Column(Float, nullable=True)

    # Booking
    # draft, recherche, accepted, completed, cancelled
    booking_status = Column(String(20), nullable=False, default=BookingStatus.DRAFT.value)
    candidate_id = Column(
        String(36),
        ForeignKey("candidate_profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    booked_at = Column(DateTime, nullable=True)

    # Set when a requirement change closed this slot and reopened a new one
    replaced_by_id = Column(
        Integer,
        ForeignKey("resource_assignments.id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        CheckConstraint(
            f"booking_status NOT IN ({_ACCEPTED_SPELLINGS}) OR candidate_id IS NOT NULL",
            name="ck_resource_assignments_accepted_has_candidate",
        ),
        Index("ix_resource_assignments_project", "project_id"),
        Index("ix_resource_assignments_status", "booking_status"),
        Index("ix_resource_assignments_candidate", "candidate_id"),
    )

    # Relationships
    project = relationship("Project", back_populates="assignments")
    candidate = relationship("CandidateProfile", back_populates="assignments")
    requirements = relationship(
        AssignmentRequirement,
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    events = relationship(
        "BookingEvent",
        back_populates="assignment",
        order_by="BookingEvent.id",
        cascade="all, delete-orphan",
    )

    @property
    def languages(self) -> set[str]:
        return {r.value for r in self.requirements if r.kind == SkillKind.LANGUAGE}

    @property
    def expertises(self) -> set[str]:
        return {r.value for r in self.requirements if r.kind == SkillKind.EXPERTISE}

    def set_requirements(self, languages=None, expertises=None) -> None:
        """Replace required languages and/or expertises (None keeps the current set)."""
        self.requirements = merge_skill_rows(
            self.requirements, AssignmentRequirement, languages, expertises
        )

    def __repr__(self) -> str:
        return (
            f"<ResourceAssignment(id={self.id}, profile={self.profile_id}, "
            f"status={self.booking_status}, candidate={self.candidate_id})>"
        )
