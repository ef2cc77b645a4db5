#!/usr/bin/env python3
"""Report (and optionally repair) booking invariant violations.

Usage:
    python scripts/check_booking_integrity.py [--repair]

Exits with status 1 when violations were found and not repaired, so the
script can gate a deployment.
"""

import json
import sys
from argparse import ArgumentParser
from pathlib import Path

# Add parent directory to path so we can import from staffing_api
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

load_dotenv()

from staffing_api.config.database import SessionLocal
from staffing_api.middleware.logging import configure_logging
from staffing_api.services.integrity import check_booking_integrity


def main():
    parser = ArgumentParser(description="Check booking integrity")
    parser.add_argument("--repair", action="store_true", help="Repair the violations found")
    args = parser.parse_args()

    configure_logging()

    db = SessionLocal()
    try:
        report = check_booking_integrity(db, repair=args.repair)
    finally:
        db.close()

    print(json.dumps(report.to_dict(), indent=2))

    if not report.is_clean and not report.repaired:
        sys.exit(1)


if __name__ == "__main__":
    main()
