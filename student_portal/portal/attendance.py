from __future__ import annotations

from typing import Any, Dict, List

from student_portal.auth.guards import ensure_enrolled
from student_portal.db import rows_to_dicts
from student_portal.errors import ValidationError
from student_portal.util.time import month_bounds


def attendance_by_course(conn: Any, *, student_id: int) -> List[Dict[str, Any]]:
    """Per-course attendance counts and percentage (present / total * 100, 2dp)."""
    rows = conn.execute(
        """
        SELECT
            c.id AS course_id,
            c.course_name,
            c.course_code,
            COUNT(*) AS total_classes,
            SUM(CASE WHEN a.status='present' THEN 1 ELSE 0 END) AS present_classes,
            SUM(CASE WHEN a.status='absent' THEN 1 ELSE 0 END) AS absent_classes,
            SUM(CASE WHEN a.status='late' THEN 1 ELSE 0 END) AS late_classes,
            ROUND(SUM(CASE WHEN a.status='present' THEN 1 ELSE 0 END) * 100.0 / COUNT(*), 2)
                AS attendance_percentage
        FROM attendance a
        JOIN courses c ON a.course_id = c.id
        WHERE a.student_id=?
        GROUP BY c.id, c.course_name, c.course_code
        ORDER BY c.course_name
        """,
        (student_id,),
    ).fetchall()
    return rows_to_dicts(rows)


def course_attendance(conn: Any, *, student_id: int, course_id: int) -> List[Dict[str, Any]]:
    ensure_enrolled(conn, student_id=student_id, course_id=course_id)
    rows = conn.execute(
        """
        SELECT a.date, a.status, a.remarks, c.course_name
        FROM attendance a
        JOIN courses c ON a.course_id = c.id
        WHERE a.student_id=? AND a.course_id=?
        ORDER BY a.date DESC
        """,
        (student_id, course_id),
    ).fetchall()
    return rows_to_dicts(rows)


def monthly_attendance(conn: Any, *, student_id: int, year: int, month: int) -> List[Dict[str, Any]]:
    try:
        start, end = month_bounds(int(year), int(month))
    except ValueError:
        raise ValidationError("Invalid year or month")

    rows = conn.execute(
        """
        SELECT a.date, a.status, c.course_name, c.course_code
        FROM attendance a
        JOIN courses c ON a.course_id = c.id
        WHERE a.student_id=? AND a.date >= ? AND a.date < ?
        ORDER BY a.date DESC
        """,
        (student_id, start, end),
    ).fetchall()
    return rows_to_dicts(rows)
