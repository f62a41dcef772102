"""Create a student account.

Usage:
  python scripts/create_student.py --student-id STU100 --name "Ada" --email ada@uni.edu --password '...'

NOTE: This is intended for local/dev.
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from student_portal.auth.crud import register_student
from student_portal.config import load_config
from student_portal.db import connect, init_db
from student_portal.errors import Conflict


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--student-id", required=True)
    ap.add_argument("--name", required=True)
    ap.add_argument("--email", required=True)
    ap.add_argument("--password", required=True)
    ap.add_argument("--roll-number")
    ap.add_argument("--department")
    ap.add_argument("--year", type=int)
    ap.add_argument("--semester", type=int)
    args = ap.parse_args()

    cfg = load_config()
    init_db(cfg.DB_DSN)

    try:
        with connect(cfg.DB_DSN) as conn:
            s = register_student(
                conn,
                student_id=args.student_id,
                name=args.name,
                email=args.email,
                password=args.password,
                roll_number=args.roll_number,
                department=args.department,
                year=args.year,
                semester=args.semester,
            )
    except Conflict as e:
        raise SystemExit(str(e))

    print("Created student:")
    print(s)


if __name__ == "__main__":
    main()
