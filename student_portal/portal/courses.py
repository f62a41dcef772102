from __future__ import annotations

from typing import Any, Dict, List

from student_portal.auth.guards import ensure_enrolled
from student_portal.db import row_to_dict, rows_to_dicts


WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday")

# Teaching slots handed out round-robin to the active courses.
_SLOTS = ("09:00-10:00", "10:00-11:00", "11:00-12:00", "14:00-15:00", "15:00-16:00")


def list_courses(conn: Any, *, student_id: int) -> List[Dict[str, Any]]:
    rows = conn.execute(
        """
        SELECT
            c.id, c.course_code, c.course_name, c.credits, c.faculty_name, c.faculty_email,
            c.description, e.semester, e.year, e.grade, e.status
        FROM enrollments e
        JOIN courses c ON e.course_id = c.id
        WHERE e.student_id=?
        ORDER BY e.year DESC, e.semester DESC, c.course_code
        """,
        (student_id,),
    ).fetchall()
    return rows_to_dicts(rows)


def course_details(conn: Any, *, student_id: int, course_id: int) -> Dict[str, Any]:
    ensure_enrolled(conn, student_id=student_id, course_id=course_id)

    course = conn.execute("SELECT * FROM courses WHERE id=?", (course_id,)).fetchone()
    assignments = conn.execute(
        "SELECT * FROM assignments WHERE course_id=? ORDER BY due_date ASC",
        (course_id,),
    ).fetchall()
    attendance = conn.execute(
        """
        SELECT date, status, remarks
        FROM attendance
        WHERE student_id=? AND course_id=?
        ORDER BY date DESC
        """,
        (student_id, course_id),
    ).fetchall()

    return {
        "course": row_to_dict(course),
        "assignments": rows_to_dicts(assignments),
        "attendance": rows_to_dicts(attendance),
    }


def build_timetable(courses: List[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    """Spread active courses over the week: one class per course per day, rotating slots.

    There is no timetable table; this is a deterministic layout of the enrolled courses.
    """
    table: Dict[str, List[Dict[str, Any]]] = {day: [] for day in WEEKDAYS}
    for i, course in enumerate(courses):
        for d, day in enumerate(WEEKDAYS):
            table[day].append(
                {
                    "time": _SLOTS[(i + d) % len(_SLOTS)],
                    "course": course["course_name"],
                    "course_code": course["course_code"],
                    "faculty": course.get("faculty_name"),
                }
            )
    for day in WEEKDAYS:
        table[day].sort(key=lambda slot: slot["time"])
    return table


def timetable(conn: Any, *, student_id: int) -> Dict[str, Any]:
    rows = conn.execute(
        """
        SELECT c.course_code, c.course_name, c.faculty_name, c.credits
        FROM enrollments e
        JOIN courses c ON e.course_id = c.id
        WHERE e.student_id=? AND e.status='active'
        ORDER BY c.course_name
        """,
        (student_id,),
    ).fetchall()
    courses = rows_to_dicts(rows)
    return {"courses": courses, "timetable": build_timetable(courses)}
