"""Ownership checks for per-student resources.

Every guard is a single lookup filtered by the authenticated student's id. A missing
row means "absent or not yours"; the two cases are reported identically (Forbidden) so
one student can never learn whether another student's record exists.
"""

from __future__ import annotations

from typing import Any

from student_portal.errors import Forbidden
from student_portal.models import OwnedResource


FEES = OwnedResource("fees", "Fee")
NOTIFICATIONS = OwnedResource("notifications", "Notification")
SUBMISSIONS = OwnedResource("submissions", "Submission")
EVENT_REGISTRATIONS = OwnedResource("event_registrations", "Registration", id_column="event_id")

NOT_ENROLLED = "You are not enrolled in this course"


def ensure_owner(conn: Any, resource: OwnedResource, *, student_id: int, resource_id: int) -> Any:
    row = conn.execute(
        f"SELECT * FROM {resource.table} WHERE {resource.id_column}=? AND {resource.owner_column}=?",
        (int(resource_id), int(student_id)),
    ).fetchone()
    if row is None:
        raise Forbidden(f"{resource.label} not found")
    return row


def is_enrolled(conn: Any, *, student_id: int, course_id: int) -> bool:
    row = conn.execute(
        "SELECT 1 FROM enrollments WHERE student_id=? AND course_id=? LIMIT 1",
        (int(student_id), int(course_id)),
    ).fetchone()
    return row is not None


def ensure_enrolled(conn: Any, *, student_id: int, course_id: int) -> None:
    if not is_enrolled(conn, student_id=student_id, course_id=course_id):
        raise Forbidden(NOT_ENROLLED)


def ensure_assignment_access(conn: Any, *, student_id: int, assignment_id: int) -> Any:
    """Return the assignment row if the student is enrolled in its course."""
    row = conn.execute(
        """
        SELECT a.*
        FROM assignments a
        WHERE a.id=?
          AND EXISTS (
            SELECT 1 FROM enrollments e
            WHERE e.course_id = a.course_id AND e.student_id=?
          )
        """,
        (int(assignment_id), int(student_id)),
    ).fetchone()
    if row is None:
        raise Forbidden("Assignment not found or you are not enrolled in this course")
    return row
