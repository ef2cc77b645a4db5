"""Matching predicate between resource assignments and candidates.

The criteria defined here are the only definition of "this candidate
qualifies for this slot". Each criterion evaluates in Python on loaded
objects and renders as a SQL expression over an (assignment, candidate)
pair of table entities. The access policy module builds its query filters
and the database policy function from the same list, so application reads
and database-enforced reads cannot drift apart.

The predicate is a filter, not a ranking: there is no scoring and no
tie-break between candidates.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from sqlalchemy import and_, exists, or_
from sqlalchemy.orm import aliased

from staffing_api.config.settings import settings
from staffing_api.models import (
    AssignmentRequirement,
    BookingStatus,
    BOUND_BOOKING_STATUSES,
    CandidateSkill,
    CandidateStatus,
    SkillKind,
)


class Criterion:
    """One requirement a candidate must meet for an open slot."""

    name: str = ""

    def check(self, assignment: Any, candidate: Any) -> bool:
        raise NotImplementedError

    def clause(self, assignment: Any, candidate: Any):
        """SQL expression over assignment and candidate entities (or aliases)."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}({self.name})>"


class SameValue(Criterion):
    """Assignment and candidate carry the same value for an attribute."""

    def __init__(self, name: str, attribute: str):
        self.name = name
        self.attribute = attribute

    def check(self, assignment, candidate) -> bool:
        return getattr(assignment, self.attribute) == getattr(candidate, self.attribute)

    def clause(self, assignment, candidate):
        return getattr(assignment, self.attribute) == getattr(candidate, self.attribute)


class CandidateStatusIsNot(Criterion):
    """Candidate is not in the excluded status."""

    def __init__(self, name: str, excluded: str):
        self.name = name
        self.excluded = excluded

    def check(self, assignment, candidate) -> bool:
        return candidate.status != self.excluded

    def clause(self, assignment, candidate):
        return candidate.status != self.excluded


class CoversSkills(Criterion):
    """Every required skill of a kind is declared by the candidate."""

    # Attribute exposing the normalized value set on both models
    _ATTRIBUTES = {
        SkillKind.LANGUAGE: "languages",
        SkillKind.EXPERTISE: "expertises",
    }

    def __init__(self, name: str, kind: str):
        self.name = name
        self.kind = kind
        self.attribute = self._ATTRIBUTES[kind]

    def check(self, assignment, candidate) -> bool:
        required = set(getattr(assignment, self.attribute) or ())
        declared = set(getattr(candidate, self.attribute) or ())
        return required <= declared

    def clause(self, assignment, candidate):
        required = aliased(AssignmentRequirement)
        declared = aliased(CandidateSkill)
        missing = and_(
            required.assignment_id == assignment.id,
            required.kind == self.kind,
            ~exists().where(
                declared.candidate_id == candidate.id,
                declared.kind == required.kind,
                declared.value == required.value,
            ),
        )
        return ~exists().where(missing)


BASE_CRITERIA: tuple[Criterion, ...] = (
    SameValue("profile", "profile_id"),
    SameValue("seniority", "seniority"),
    CandidateStatusIsNot("availability", CandidateStatus.QUALIFICATION.value),
)

SKILL_CRITERIA: tuple[Criterion, ...] = (
    CoversSkills("languages", SkillKind.LANGUAGE),
    CoversSkills("expertises", SkillKind.EXPERTISE),
)


def match_criteria(match_on_skills: Optional[bool] = None) -> tuple[Criterion, ...]:
    """Active criteria; skill coverage follows MATCH_ON_SKILLS unless overridden."""
    if match_on_skills is None:
        match_on_skills = settings.MATCH_ON_SKILLS
    return BASE_CRITERIA + SKILL_CRITERIA if match_on_skills else BASE_CRITERIA


@dataclass
class MatchResult:
    """Outcome of the predicate with the per-criterion breakdown."""

    matched: bool
    passed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


def evaluate_match(
    assignment: Any,
    candidate: Any,
    criteria: Optional[Sequence[Criterion]] = None,
) -> MatchResult:
    """Evaluate every criterion and report which ones failed."""
    passed, failed = [], []
    for criterion in criteria if criteria is not None else match_criteria():
        (passed if criterion.check(assignment, candidate) else failed).append(criterion.name)
    return MatchResult(matched=not failed, passed=passed, failed=failed)


def is_match(assignment: Any, candidate: Any, criteria: Optional[Sequence[Criterion]] = None) -> bool:
    return evaluate_match(assignment, candidate, criteria).matched


def is_visible(
    assignment: Any,
    candidate: Any,
    criteria: Optional[Sequence[Criterion]] = None,
) -> bool:
    """Whether a candidate may see an assignment.

    Booked and completed slots are visible to their candidate only. Open
    slots are visible to every matching candidate unless bound to someone
    else. Draft, cancelled and unknown statuses are never visible.
    """
    try:
        status = BookingStatus.parse(assignment.booking_status)
    except ValueError:
        return False

    if status in BOUND_BOOKING_STATUSES:
        return assignment.candidate_id == candidate.id

    if status is BookingStatus.RECHERCHE:
        if assignment.candidate_id is not None and assignment.candidate_id != candidate.id:
            return False
        return is_match(assignment, candidate, criteria)

    return False


def visibility_clause(assignment: Any, candidate: Any, criteria: Optional[Sequence[Criterion]] = None):
    """SQL rendering of is_visible over assignment and candidate entities."""
    if criteria is None:
        criteria = match_criteria()

    bound_spellings = [s for status in BOUND_BOOKING_STATUSES for s in status.stored_values]

    return or_(
        and_(
            assignment.booking_status.in_(bound_spellings),
            assignment.candidate_id == candidate.id,
        ),
        and_(
            assignment.booking_status.in_(BookingStatus.RECHERCHE.stored_values),
            or_(assignment.candidate_id.is_(None), assignment.candidate_id == candidate.id),
            *[criterion.clause(assignment, candidate) for criterion in criteria],
        ),
    )
