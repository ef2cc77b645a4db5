"""CandidateProfile model for bookable candidates (human or AI).

The profile id is the candidate's identity (token subject), so the same
value is used for authorization and for assignment.candidate_id.
"""

import uuid

from sqlalchemy import Column, String, Index
from sqlalchemy.orm import relationship

from staffing_api.config.database import Base
from .base import TimestampMixin
from .enums import CandidateStatus
from .skills import CandidateSkill, SkillKind, merge_skill_rows


class CandidateProfile(Base, TimestampMixin):
    """Candidate profile matched against open assignments."""

    __tablename__ = "candidate_profiles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    email = Column(String(255), unique=True, nullable=True)

    # Matching attributes
    profile_id = Column(String(100), nullable=False)  # Métier
    seniority = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default=CandidateStatus.QUALIFICATION.value)
    qualification_status = Column(String(20), nullable=True)  # pending, passed, failed

    __table_args__ = (
        Index("ix_candidate_profiles_match", "profile_id", "seniority"),
    )

    # Relationships
    skills = relationship(
        CandidateSkill,
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    assignments = relationship("ResourceAssignment", back_populates="candidate")

    @property
    def languages(self) -> set[str]:
        return {s.value for s in self.skills if s.kind == SkillKind.LANGUAGE}

    @property
    def expertises(self) -> set[str]:
        return {s.value for s in self.skills if s.kind == SkillKind.EXPERTISE}

    @property
    def display_name(self) -> str:
        name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return name or self.email or self.id

    def set_skills(self, languages=None, expertises=None) -> None:
        """Replace declared languages and/or expertises (None keeps the current set)."""
        self.skills = merge_skill_rows(self.skills, CandidateSkill, languages, expertises)

    def __repr__(self) -> str:
        return f"<CandidateProfile(id={self.id}, profile={self.profile_id}, status={self.status})>"
