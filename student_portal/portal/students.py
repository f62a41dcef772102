from __future__ import annotations

from typing import Any, Dict, Optional

from student_portal.db import row_to_dict, rows_to_dicts
from student_portal.util.time import utcnow_iso

from .attendance import attendance_by_course
from .fees import fee_summary
from .notifications import normalize_notification


# Grade -> points used for SGPA. Ungraded / unknown grades count as 0.
GRADE_POINTS_SQL = """
CASE e.grade
    WHEN 'A+' THEN 10
    WHEN 'A' THEN 9
    WHEN 'B+' THEN 8
    WHEN 'B' THEN 7
    WHEN 'C+' THEN 6
    WHEN 'C' THEN 5
    WHEN 'D' THEN 4
    ELSE 0
END
"""


def dashboard(conn: Any, *, student_id: int, now: Optional[str] = None) -> Dict[str, Any]:
    now_iso = now or utcnow_iso()

    student = conn.execute(
        """
        SELECT id, student_id, name, email, department, year, semester, roll_number, profile_image
        FROM students WHERE id=?
        """,
        (student_id,),
    ).fetchone()

    courses = conn.execute(
        """
        SELECT c.id, c.course_code, c.course_name, c.credits, c.faculty_name, e.grade
        FROM enrollments e
        JOIN courses c ON e.course_id = c.id
        WHERE e.student_id=? AND e.status='active'
        ORDER BY c.course_name
        """,
        (student_id,),
    ).fetchall()

    notifications = conn.execute(
        """
        SELECT id, title, message, type, is_read, created_at
        FROM notifications
        WHERE student_id=?
        ORDER BY created_at DESC, id DESC
        LIMIT 5
        """,
        (student_id,),
    ).fetchall()

    upcoming = conn.execute(
        """
        SELECT a.id, a.title, a.due_date, c.course_name
        FROM assignments a
        JOIN courses c ON a.course_id = c.id
        WHERE a.due_date > ?
          AND EXISTS (SELECT 1 FROM enrollments e WHERE e.course_id = a.course_id AND e.student_id=?)
        ORDER BY a.due_date ASC
        LIMIT 5
        """,
        (now_iso, student_id),
    ).fetchall()

    return {
        "student": row_to_dict(student),
        "courses": rows_to_dicts(courses),
        "attendance": attendance_by_course(conn, student_id=student_id),
        "notifications": [normalize_notification(r) for r in notifications],
        "upcomingAssignments": rows_to_dicts(upcoming),
        "feeSummary": fee_summary(conn, student_id=student_id),
    }


def academic_performance(conn: Any, *, student_id: int) -> Dict[str, Any]:
    semesters = conn.execute(
        f"""
        SELECT
            e.semester,
            e.year,
            COUNT(*) AS total_courses,
            ROUND(AVG({GRADE_POINTS_SQL}), 2) AS sgpa
        FROM enrollments e
        WHERE e.student_id=? AND e.grade IS NOT NULL
        GROUP BY e.semester, e.year
        ORDER BY e.year, e.semester
        """,
        (student_id,),
    ).fetchall()

    grades = conn.execute(
        """
        SELECT c.course_name, c.course_code, c.credits, e.grade, e.semester, e.year
        FROM enrollments e
        JOIN courses c ON e.course_id = c.id
        WHERE e.student_id=? AND e.grade IS NOT NULL
        ORDER BY e.year DESC, e.semester DESC, c.course_code
        """,
        (student_id,),
    ).fetchall()

    return {
        "semesterPerformance": rows_to_dicts(semesters),
        "courseGrades": rows_to_dicts(grades),
    }
