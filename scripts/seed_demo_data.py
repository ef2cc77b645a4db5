#!/usr/bin/env python3
"""Seed a demo project with open slots and a pool of candidates.

Usage:
    python scripts/seed_demo_data.py [--owner CLIENT_ID] [--launch]

Creates one draft project with three slots and six candidates, some of
which match. With --launch the search is opened and mission requests are
sent, so the candidate endpoints have something to show.

Examples:
    python scripts/seed_demo_data.py
    python scripts/seed_demo_data.py --owner client-1 --launch
"""

import sys
from argparse import ArgumentParser
from pathlib import Path

# Add parent directory to path so we can import from staffing_api
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

load_dotenv()

from staffing_api.config.database import SessionLocal, init_db
from staffing_api.models import CandidateProfile, CandidateStatus
from staffing_api.services.projects import ProjectService

SLOTS = [
    {"profile_id": "developer", "seniority": "senior", "languages": ["french", "english"], "expertises": ["python"]},
    {"profile_id": "developer", "seniority": "intermediate", "languages": ["english"], "expertises": ["react"]},
    {"profile_id": "designer", "seniority": "intermediate", "languages": ["french"], "expertises": []},
]

CANDIDATES = [
    ("demo-alice", "developer", "senior", CandidateStatus.DISPONIBLE, ["french", "english"], ["python", "django"]),
    ("demo-bruno", "developer", "senior", CandidateStatus.QUALIFICATION, ["french"], ["python"]),
    ("demo-chloe", "developer", "intermediate", CandidateStatus.DISPONIBLE, ["english", "spanish"], ["react"]),
    ("demo-david", "developer", "intermediate", CandidateStatus.DISPONIBLE, ["english"], ["vue"]),
    ("demo-emma", "designer", "intermediate", CandidateStatus.DISPONIBLE, ["french"], ["figma"]),
    ("demo-farid", "designer", "junior", CandidateStatus.DISPONIBLE, ["french"], []),
]


def create_candidates(db) -> int:
    """Create demo candidates that do not exist yet."""
    created = 0
    for candidate_id, profile_id, seniority, status, languages, expertises in CANDIDATES:
        if db.get(CandidateProfile, candidate_id):
            print(f"  Candidate {candidate_id} already exists")
            continue
        first_name = candidate_id.split("-", 1)[1].capitalize()
        candidate = CandidateProfile(
            id=candidate_id,
            first_name=first_name,
            last_name="Demo",
            email=f"{candidate_id}@example.com",
            profile_id=profile_id,
            seniority=seniority,
            status=status.value,
        )
        candidate.set_skills(languages=languages, expertises=expertises)
        db.add(candidate)
        created += 1
        print(f"  Created candidate: {candidate_id} ({seniority} {profile_id}, {status.value})")
    db.commit()
    return created


def main():
    parser = ArgumentParser(description="Seed demo staffing data")
    parser.add_argument("--owner", default="demo-client", help="Client id owning the project")
    parser.add_argument("--launch", action="store_true", help="Launch the search after seeding")
    args = parser.parse_args()

    print("=" * 60)
    print("Seeding demo data")
    print("=" * 60)

    init_db()
    db = SessionLocal()
    try:
        print("\n[1/3] Candidates")
        create_candidates(db)

        print("\n[2/3] Project")
        service = ProjectService(db, args.owner)
        project = service.create_project(args.owner, "Demo project", description="Seeded demo data")
        print(f"  Created project: {project.title} (id={project.id})")
        for slot in SLOTS:
            assignment = service.add_assignment(project, **slot)
            print(f"  Added slot {assignment.id}: {slot['seniority']} {slot['profile_id']}")

        print("\n[3/3] Search")
        if args.launch:
            _, notified = service.launch_search(project.id)
            print(f"  Search launched, {notified} candidate(s) notified")
        else:
            print("  Skipped (use --launch)")
    finally:
        db.close()

    print("\nDone.")


if __name__ == "__main__":
    main()
