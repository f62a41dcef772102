"""Create the schema (and optionally the demo data).

Usage:
  python scripts/init_db.py          # tables only
  python scripts/init_db.py --seed   # tables + demo students/courses/fees/events
"""

import argparse
import sys
from pathlib import Path

# Ensure project root is on sys.path when running as a script
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from student_portal.config import load_config
from student_portal.db import connect, init_db
from student_portal.seed import insert_demo_data


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--seed", action="store_true", help="insert demo data when the DB is empty")
    args = ap.parse_args()

    cfg = load_config()
    init_db(cfg.DB_DSN)
    if args.seed or cfg.SEED_DEMO_DATA:
        with connect(cfg.DB_DSN) as conn:
            insert_demo_data(conn)

    print("DB initialized")


if __name__ == "__main__":
    main()
