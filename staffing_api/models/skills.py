"""Language and expertise rows attached to assignments and candidates.

Required skills of an assignment and declared skills of a candidate are
stored as one row per (kind, value) so that "required ⊆ declared" can be
expressed as a portable NOT EXISTS query by the access policy.
"""

from typing import Iterable

from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint

from staffing_api.config.database import Base


class SkillKind:
    LANGUAGE = "language"
    EXPERTISE = "expertise"

    ALL = (LANGUAGE, EXPERTISE)


def normalize_skill(value: str) -> str:
    """Canonical form used on both sides of a comparison."""
    return value.strip().lower()


def normalize_skills(values: Iterable[str] | None) -> list[str]:
    """Normalize, drop blanks and duplicates, keep first-seen order."""
    seen: dict[str, None] = {}
    for value in values or []:
        normalized = normalize_skill(value)
        if normalized:
            seen.setdefault(normalized, None)
    return list(seen)


class AssignmentRequirement(Base):
    """A language or expertise required by a resource assignment."""

    __tablename__ = "assignment_requirements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    assignment_id = Column(
        Integer,
        ForeignKey("resource_assignments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    kind = Column(String(20), nullable=False)  # language, expertise
    value = Column(String(100), nullable=False)

    __table_args__ = (
        UniqueConstraint("assignment_id", "kind", "value", name="uq_assignment_requirements"),
    )

    def __repr__(self) -> str:
        return f"<AssignmentRequirement(assignment={self.assignment_id}, {self.kind}={self.value})>"


class CandidateSkill(Base):
    """A language or expertise declared by a candidate."""

    __tablename__ = "candidate_skills"

    id = Column(Integer, primary_key=True, autoincrement=True)
    candidate_id = Column(
        String(36),
        ForeignKey("candidate_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    kind = Column(String(20), nullable=False)
    value = Column(String(100), nullable=False)

    __table_args__ = (
        UniqueConstraint("candidate_id", "kind", "value", name="uq_candidate_skills"),
    )

    def __repr__(self) -> str:
        return f"<CandidateSkill(candidate={self.candidate_id}, {self.kind}={self.value})>"


def merge_skill_rows(rows, factory, languages=None, expertises=None) -> list:
    """Return rows with the given kinds replaced by the wanted values.

    Rows whose value is still wanted are kept as-is so the unique
    constraint never sees a delete and an insert of the same value in one
    flush. A kind passed as None is left untouched.
    """
    wanted = {SkillKind.LANGUAGE: languages, SkillKind.EXPERTISE: expertises}
    merged = []
    for kind in SkillKind.ALL:
        current = [r for r in rows if r.kind == kind]
        if wanted[kind] is None:
            merged.extend(current)
            continue
        values = normalize_skills(wanted[kind])
        kept = [r for r in current if r.value in values]
        have = {r.value for r in kept}
        merged.extend(kept)
        merged.extend(factory(kind=kind, value=v) for v in values if v not in have)
    return merged
