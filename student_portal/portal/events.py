from __future__ import annotations

from typing import Any, Dict, List, Optional

from student_portal.auth.guards import EVENT_REGISTRATIONS, ensure_owner
from student_portal.db import conn_dialect, rows_to_dicts
from student_portal.errors import Conflict, Expired, Full, NotFound
from student_portal.util.time import utcnow_iso


_EVENT_COLUMNS = """
    e.*,
    (SELECT COUNT(*) FROM event_registrations r WHERE r.event_id = e.id) AS registered_count,
    CASE WHEN EXISTS (
        SELECT 1 FROM event_registrations r WHERE r.event_id = e.id AND r.student_id=?
    ) THEN 1 ELSE 0 END AS is_registered
"""


def _normalize(row: Any) -> Dict[str, Any]:
    d = dict(row)
    d["is_registered"] = bool(d.get("is_registered"))
    d["registered_count"] = int(d.get("registered_count") or 0)
    return d


def list_events(
    conn: Any,
    *,
    student_id: int,
    event_type: Optional[str] = None,
    upcoming: bool = False,
    now: Optional[str] = None,
) -> List[Dict[str, Any]]:
    where: List[str] = []
    params: List[Any] = [student_id]

    if event_type:
        where.append("e.event_type=?")
        params.append(event_type)
    if upcoming:
        where.append("e.event_date > ?")
        params.append(now or utcnow_iso())

    sql = f"SELECT {_EVENT_COLUMNS} FROM events e"
    if where:
        sql += " WHERE " + " AND ".join(where)
    sql += " ORDER BY e.event_date ASC, e.id ASC"

    return [_normalize(r) for r in conn.execute(sql, tuple(params)).fetchall()]


def event_details(conn: Any, *, student_id: int, event_id: int) -> Dict[str, Any]:
    row = conn.execute(
        f"SELECT {_EVENT_COLUMNS} FROM events e WHERE e.id=?",
        (student_id, event_id),
    ).fetchone()
    if row is None:
        raise NotFound("Event not found")
    return _normalize(row)


def register_for_event(
    conn: Any,
    *,
    student_id: int,
    event_id: int,
    now: Optional[str] = None,
) -> Dict[str, Any]:
    """Register the student for an event.

    One conditional insert: written only while the registration deadline has not passed,
    the event is below capacity, and the student has no registration yet
    (UNIQUE(event_id, student_id)). On Postgres the event row is locked first so two
    concurrent registrations cannot both see the last free seat.
    """
    now_iso = now or utcnow_iso()

    lock = " FOR UPDATE" if conn_dialect(conn) == "postgres" else ""
    event = conn.execute(f"SELECT * FROM events WHERE id=?{lock}", (event_id,)).fetchone()
    if event is None:
        raise NotFound("Event not found")

    row = conn.execute(
        """
        INSERT INTO event_registrations (event_id, student_id, registration_date, status)
        SELECT e.id, ?, ?, 'registered'
        FROM events e
        WHERE e.id=?
          AND (e.registration_deadline IS NULL OR e.registration_deadline >= ?)
          AND (
            e.max_participants IS NULL
            OR (SELECT COUNT(*) FROM event_registrations r WHERE r.event_id = e.id) < e.max_participants
          )
        ON CONFLICT (event_id, student_id) DO NOTHING
        RETURNING id, event_id, registration_date, status
        """,
        (student_id, now_iso, event_id, now_iso),
    ).fetchone()
    if row is not None:
        return dict(row)

    deadline = event["registration_deadline"]
    if deadline is not None and str(deadline) < now_iso:
        raise Expired("Registration deadline has passed")
    already = conn.execute(
        "SELECT 1 FROM event_registrations WHERE event_id=? AND student_id=?",
        (event_id, student_id),
    ).fetchone()
    if already is not None:
        raise Conflict("Already registered for this event")
    raise Full("Event is full")


def unregister_from_event(conn: Any, *, student_id: int, event_id: int) -> None:
    ensure_owner(conn, EVENT_REGISTRATIONS, student_id=student_id, resource_id=event_id)
    conn.execute(
        "DELETE FROM event_registrations WHERE event_id=? AND student_id=?",
        (event_id, student_id),
    )


def my_registrations(conn: Any, *, student_id: int) -> List[Dict[str, Any]]:
    rows = conn.execute(
        """
        SELECT
            e.id, e.title, e.description, e.event_date, e.location, e.event_type,
            r.registration_date, r.status
        FROM event_registrations r
        JOIN events e ON r.event_id = e.id
        WHERE r.student_id=?
        ORDER BY e.event_date ASC, e.id ASC
        """,
        (student_id,),
    ).fetchall()
    return rows_to_dicts(rows)
