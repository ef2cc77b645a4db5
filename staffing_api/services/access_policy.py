"""Candidate visibility policy for resource assignments.

Application reads and the database row-level policy are both derived from
matching.visibility_clause, so "which assignments can candidate X see" and
"which candidates qualify for assignment Y" are the same relation read
from either side.

The database policy is rendered as a SECURITY DEFINER function returning
the visible assignment ids. The function reads the tables it filters with
the owner's rights, so the policy on resource_assignments never has to
query resource_assignments under its own policy.
"""

from typing import Optional, Sequence

from sqlalchemy import exists, literal_column, select
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import Query, Session, aliased

from staffing_api.config.settings import settings
from staffing_api.models import CandidateProfile, ResourceAssignment
from .matching import Criterion, visibility_clause

POLICY_FUNCTION_NAME = "candidate_visible_assignment_ids"
POLICY_NAME = "candidate_assignment_visibility"


def visible_assignments_clause(candidate_id, criteria: Optional[Sequence[Criterion]] = None):
    """Filter on ResourceAssignment: rows the candidate may see."""
    viewer = aliased(CandidateProfile, name="viewer")
    return exists().where(
        viewer.id == candidate_id,
        visibility_clause(ResourceAssignment, viewer, criteria),
    )


def eligible_candidates_clause(assignment_id, criteria: Optional[Sequence[Criterion]] = None):
    """Filter on CandidateProfile: candidates who may see the assignment."""
    slot = aliased(ResourceAssignment, name="slot")
    return exists().where(
        slot.id == assignment_id,
        visibility_clause(slot, CandidateProfile, criteria),
    )


def visible_assignments_query(db: Session, candidate_id: str) -> Query:
    return db.query(ResourceAssignment).filter(visible_assignments_clause(candidate_id))


def eligible_candidates_query(db: Session, assignment_id: int) -> Query:
    return db.query(CandidateProfile).filter(eligible_candidates_clause(assignment_id))


def can_view_assignment(db: Session, assignment_id: int, candidate_id: str) -> bool:
    """Single-row visibility check evaluated by the database."""
    query = select(ResourceAssignment.id).where(
        ResourceAssignment.id == assignment_id,
        visible_assignments_clause(candidate_id),
    )
    return db.execute(query).first() is not None


def render_policy_function_sql(criteria: Optional[Sequence[Criterion]] = None) -> str:
    """CREATE FUNCTION statement returning the ids visible to p_candidate_id."""
    param = literal_column("p_candidate_id")
    query = select(ResourceAssignment.id).where(visible_assignments_clause(param, criteria))
    body = query.compile(
        dialect=postgresql.dialect(),
        compile_kwargs={"literal_binds": True},
    )
    return (
        f"CREATE OR REPLACE FUNCTION {POLICY_FUNCTION_NAME}(p_candidate_id TEXT)\n"
        "RETURNS SETOF INTEGER\n"
        "LANGUAGE sql STABLE SECURITY DEFINER\n"
        "SET search_path = public\n"
        f"AS $$\n{body}\n$$"
    )


def render_policy_sql(criteria: Optional[Sequence[Criterion]] = None) -> list[str]:
    """Statements installing the row-level SELECT policy on resource_assignments.

    The current candidate is read from a session setting, which the
    connection sets with set_config() before querying as that candidate.
    """
    candidate = f"current_setting('{settings.POLICY_CANDIDATE_SETTING}', true)"
    return [
        render_policy_function_sql(criteria),
        "ALTER TABLE resource_assignments ENABLE ROW LEVEL SECURITY",
        f"DROP POLICY IF EXISTS {POLICY_NAME} ON resource_assignments",
        (
            f"CREATE POLICY {POLICY_NAME} ON resource_assignments\n"
            f"FOR SELECT TO {settings.POLICY_DB_ROLE}\n"
            f"USING (id IN (SELECT {POLICY_FUNCTION_NAME}({candidate})))"
        ),
    ]


def drop_policy_sql() -> list[str]:
    return [
        f"DROP POLICY IF EXISTS {POLICY_NAME} ON resource_assignments",
        "ALTER TABLE resource_assignments DISABLE ROW LEVEL SECURITY",
        f"DROP FUNCTION IF EXISTS {POLICY_FUNCTION_NAME}(TEXT)",
    ]
