from __future__ import annotations

from typing import Any, Dict, List

from student_portal.auth.guards import NOTIFICATIONS, ensure_owner


def normalize_notification(row: Any) -> Dict[str, Any]:
    d = dict(row)
    if "is_read" in d:
        d["is_read"] = bool(d["is_read"])
    return d


def list_notifications(conn: Any, *, student_id: int, unread_only: bool = False) -> List[Dict[str, Any]]:
    sql = """
        SELECT id, title, message, type, is_read, created_at
        FROM notifications
        WHERE student_id=?
    """
    if unread_only:
        sql += " AND is_read=0"
    sql += " ORDER BY created_at DESC, id DESC"
    return [normalize_notification(r) for r in conn.execute(sql, (student_id,)).fetchall()]


def mark_read(conn: Any, *, student_id: int, notification_id: int) -> Dict[str, Any]:
    ensure_owner(conn, NOTIFICATIONS, student_id=student_id, resource_id=notification_id)
    row = conn.execute(
        "UPDATE notifications SET is_read=1 WHERE id=? AND student_id=? RETURNING id, title, is_read",
        (notification_id, student_id),
    ).fetchone()
    return normalize_notification(row)


def mark_all_read(conn: Any, *, student_id: int) -> int:
    """Mark every unread notification read; returns the exact number of rows changed."""
    rows = conn.execute(
        "UPDATE notifications SET is_read=1 WHERE student_id=? AND is_read=0 RETURNING id",
        (student_id,),
    ).fetchall()
    return len(rows)


def unread_count(conn: Any, *, student_id: int) -> int:
    row = conn.execute(
        "SELECT COUNT(*) AS n FROM notifications WHERE student_id=? AND is_read=0",
        (student_id,),
    ).fetchone()
    return int(row["n"])


def delete_notification(conn: Any, *, student_id: int, notification_id: int) -> None:
    ensure_owner(conn, NOTIFICATIONS, student_id=student_id, resource_id=notification_id)
    conn.execute(
        "DELETE FROM notifications WHERE id=? AND student_id=?",
        (notification_id, student_id),
    )


def create_notification(
    conn: Any,
    *,
    student_id: int,
    title: str,
    message: str | None = None,
    type: str | None = None,
    created_at: str,
) -> int:
    row = conn.execute(
        """
        INSERT INTO notifications (student_id, title, message, type, is_read, created_at)
        VALUES (?,?,?,?,0,?)
        RETURNING id
        """,
        (student_id, title, message, type, created_at),
    ).fetchone()
    return int(row["id"])
