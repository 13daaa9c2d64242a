#!/usr/bin/env python3
"""
Apply due challenge transitions for every principal in one sweep.

Usage:
    python3 scripts/reconcile_challenges.py

Reads already reconcile lazily, so this is never required for correctness;
it only brings stored statuses up to date, e.g. before exporting data. Unlocked
quit requests cancel their challenge first; remaining expired challenges are
then completed.
"""

import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app import app
from services.challenge_service import ChallengeService


def main():
    with app.app_context():
        result = ChallengeService().reconcile()

    print(f"Cancelled by unlocked quit requests: {len(result.cancelled_ids)}")
    for challenge_id in result.cancelled_ids:
        print(f"  - challenge {challenge_id}")
    print(f"Completed: {result.completed_count}")


if __name__ == '__main__':
    main()
