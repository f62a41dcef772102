from __future__ import annotations

from typing import Any, Dict, List, Optional

from student_portal.auth.guards import ensure_assignment_access
from student_portal.db import row_to_dict, rows_to_dicts
from student_portal.errors import Conflict, Expired
from student_portal.util.time import parse_iso, utcnow_iso


_ASSIGNMENT_COLUMNS = """
    a.id,
    a.course_id,
    a.title,
    a.description,
    a.due_date,
    a.max_marks,
    c.course_name,
    c.course_code,
    s.marks_obtained,
    s.feedback,
    s.status AS submission_status,
    s.submission_date
"""


def list_assignments(conn: Any, *, student_id: int) -> List[Dict[str, Any]]:
    rows = conn.execute(
        f"""
        SELECT {_ASSIGNMENT_COLUMNS}
        FROM assignments a
        JOIN courses c ON a.course_id = c.id
        LEFT JOIN submissions s ON s.assignment_id = a.id AND s.student_id=?
        WHERE EXISTS (SELECT 1 FROM enrollments e WHERE e.course_id = a.course_id AND e.student_id=?)
        ORDER BY a.due_date ASC, a.id ASC
        """,
        (student_id, student_id),
    ).fetchall()
    return rows_to_dicts(rows)


def assignment_details(conn: Any, *, student_id: int, assignment_id: int) -> Dict[str, Any]:
    ensure_assignment_access(conn, student_id=student_id, assignment_id=assignment_id)
    row = conn.execute(
        f"""
        SELECT {_ASSIGNMENT_COLUMNS}, a.file_path, s.file_path AS submission_file
        FROM assignments a
        JOIN courses c ON a.course_id = c.id
        LEFT JOIN submissions s ON s.assignment_id = a.id AND s.student_id=?
        WHERE a.id=?
        """,
        (student_id, assignment_id),
    ).fetchone()
    return dict(row)


def upcoming_assignments(
    conn: Any,
    *,
    student_id: int,
    now: Optional[str] = None,
    limit: int = 10,
) -> List[Dict[str, Any]]:
    now_iso = now or utcnow_iso()
    rows = conn.execute(
        """
        SELECT a.id, a.title, a.due_date, c.course_name, c.course_code
        FROM assignments a
        JOIN courses c ON a.course_id = c.id
        WHERE a.due_date > ?
          AND EXISTS (SELECT 1 FROM enrollments e WHERE e.course_id = a.course_id AND e.student_id=?)
        ORDER BY a.due_date ASC
        LIMIT ?
        """,
        (now_iso, student_id, int(limit)),
    ).fetchall()

    now_dt = parse_iso(now_iso)
    out = rows_to_dicts(rows)
    for r in out:
        r["days_remaining"] = round((parse_iso(r["due_date"]) - now_dt).total_seconds() / 86400, 2)
    return out


def submit_assignment(
    conn: Any,
    *,
    student_id: int,
    assignment_id: int,
    file_path: Optional[str] = None,
    submission_text: Optional[str] = None,
    now: Optional[str] = None,
) -> Dict[str, Any]:
    """Record a submission.

    One conditional insert: the row is written only if the student is enrolled in the
    assignment's course, the due date has not passed, and no submission exists yet
    (UNIQUE(assignment_id, student_id)). When nothing is inserted, the reason is
    classified afterwards: not enrolled -> Forbidden, deadline -> Expired, else Conflict.
    """
    now_iso = now or utcnow_iso()

    row = conn.execute(
        """
        INSERT INTO submissions (assignment_id, student_id, file_path, submission_text, submission_date, status)
        SELECT a.id, ?, ?, ?, ?, 'submitted'
        FROM assignments a
        WHERE a.id=?
          AND (a.due_date IS NULL OR a.due_date >= ?)
          AND EXISTS (SELECT 1 FROM enrollments e WHERE e.course_id = a.course_id AND e.student_id=?)
        ON CONFLICT (assignment_id, student_id) DO NOTHING
        RETURNING id, assignment_id, submission_date, status
        """,
        (student_id, file_path, submission_text, now_iso, assignment_id, now_iso, student_id),
    ).fetchone()
    if row is not None:
        return dict(row)

    assignment = ensure_assignment_access(conn, student_id=student_id, assignment_id=assignment_id)
    due = assignment["due_date"]
    if due is not None and str(due) < now_iso:
        raise Expired("Assignment submission deadline has passed")
    raise Conflict("Assignment already submitted")


def get_submission(conn: Any, *, student_id: int, assignment_id: int) -> Optional[Dict[str, Any]]:
    row = conn.execute(
        "SELECT * FROM submissions WHERE assignment_id=? AND student_id=?",
        (assignment_id, student_id),
    ).fetchone()
    return row_to_dict(row)
