#!/usr/bin/env python3
"""Explain why a candidate does or does not see an assignment.

Usage:
    python scripts/inspect_matching.py ASSIGNMENT_ID [CANDIDATE_ID]

Without a candidate id, lists every candidate the database considers
eligible for the assignment. With one, prints each criterion and compares
the in-process decision with the SQL policy.

Examples:
    python scripts/inspect_matching.py 12
    python scripts/inspect_matching.py 12 demo-alice
"""

import sys
from pathlib import Path

# Add parent directory to path so we can import from staffing_api
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

load_dotenv()

from staffing_api.config.database import SessionLocal
from staffing_api.middleware.error_handler import NotFoundError
from staffing_api.services.access_policy import can_view_assignment, eligible_candidates_query
from staffing_api.services.booking import BookingService
from staffing_api.services.matching import evaluate_match, is_visible


def show_assignment(assignment):
    print(f"Assignment {assignment.id} (project {assignment.project_id})")
    print(f"  status:     {assignment.booking_status}")
    print(f"  candidate:  {assignment.candidate_id or '-'}")
    print(f"  profile:    {assignment.seniority} {assignment.profile_id}")
    print(f"  languages:  {', '.join(sorted(assignment.languages)) or '-'}")
    print(f"  expertises: {', '.join(sorted(assignment.expertises)) or '-'}")


def show_candidate(db, assignment, candidate):
    print(f"\nCandidate {candidate.id} ({candidate.display_name})")
    result = evaluate_match(assignment, candidate)
    for name in result.passed:
        print(f"  [ok]   {name}")
    for name in result.failed:
        print(f"  [FAIL] {name}")

    in_process = is_visible(assignment, candidate)
    in_database = can_view_assignment(db, assignment.id, candidate.id)
    print(f"\n  visible (api):      {in_process}")
    print(f"  visible (database): {in_database}")
    if in_process != in_database:
        print("  WARNING: the API and the database policy disagree")


def main():
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    assignment_id = int(sys.argv[1])
    candidate_id = sys.argv[2] if len(sys.argv) > 2 else None

    db = SessionLocal()
    try:
        service = BookingService(db)
        try:
            assignment = service.get_assignment(assignment_id)
            candidate = service.get_candidate(candidate_id) if candidate_id else None
        except NotFoundError as e:
            print(f"ERROR: {e.message}")
            sys.exit(1)

        show_assignment(assignment)
        if candidate:
            show_candidate(db, assignment, candidate)
            return

        eligible = eligible_candidates_query(db, assignment.id).all()
        print(f"\nEligible candidates ({len(eligible)}):")
        for c in eligible:
            print(f"  {c.id}  {c.display_name}  ({c.status})")
    finally:
        db.close()


if __name__ == "__main__":
    main()
