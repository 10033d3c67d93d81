"""
CLI helper to load the default challenge catalogue into the configured store.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from flourish.catalog import DEFAULT_CHALLENGES, seed_challenges
from flourish.dependencies import get_db_client
from flourish.records import utc_now


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed the challenge catalogue")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List the challenges without writing them",
    )
    args = parser.parse_args()

    if args.dry_run:
        for challenge in DEFAULT_CHALLENGES:
            premium = " (premium)" if challenge.is_premium else ""
            print(f"{challenge.sort_order}. {challenge.id}: {challenge.title}{premium}")
        return 0

    count = seed_challenges(get_db_client(), utc_now())
    print(f"Seeded {count} challenges")
    return 0


if __name__ == "__main__":
    sys.exit(main())
