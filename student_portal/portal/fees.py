from __future__ import annotations

from typing import Any, Dict, List, Optional

from student_portal.auth.guards import FEES, ensure_owner
from student_portal.db import rows_to_dicts
from student_portal.errors import Conflict
from student_portal.util.time import utcnow_iso


def fee_summary(conn: Any, *, student_id: int) -> Dict[str, Any]:
    row = conn.execute(
        """
        SELECT
            COUNT(*) AS total_fees,
            COALESCE(SUM(CASE WHEN status='paid' THEN 1 ELSE 0 END), 0) AS paid_fees,
            COALESCE(SUM(CASE WHEN status='pending' THEN 1 ELSE 0 END), 0) AS pending_fees,
            COALESCE(SUM(CASE WHEN status='overdue' THEN 1 ELSE 0 END), 0) AS overdue_fees,
            COALESCE(SUM(CASE WHEN status='paid' THEN amount ELSE 0 END), 0) AS total_paid,
            COALESCE(SUM(CASE WHEN status='pending' THEN amount ELSE 0 END), 0) AS total_pending,
            COALESCE(SUM(CASE WHEN status='overdue' THEN amount ELSE 0 END), 0) AS total_overdue,
            COALESCE(SUM(amount), 0) AS total_amount
        FROM fees
        WHERE student_id=?
        """,
        (student_id,),
    ).fetchone()
    return dict(row)


def list_fees(conn: Any, *, student_id: int) -> List[Dict[str, Any]]:
    rows = conn.execute(
        """
        SELECT id, fee_type, amount, due_date, paid_date, status, payment_method, transaction_id, created_at
        FROM fees
        WHERE student_id=?
        ORDER BY due_date ASC, id ASC
        """,
        (student_id,),
    ).fetchall()
    return rows_to_dicts(rows)


def fee_details(conn: Any, *, student_id: int, fee_id: int) -> Dict[str, Any]:
    return dict(ensure_owner(conn, FEES, student_id=student_id, resource_id=fee_id))


def pay_fee(
    conn: Any,
    *,
    student_id: int,
    fee_id: int,
    payment_method: Optional[str] = None,
    transaction_id: Optional[str] = None,
    now: Optional[str] = None,
) -> Dict[str, Any]:
    """Mark a fee paid (simulated payment).

    The update only matches an unpaid fee owned by the student, so a fee can never be
    paid twice even under concurrent requests.
    """
    row = conn.execute(
        """
        UPDATE fees
        SET status='paid', paid_date=?, payment_method=?, transaction_id=?
        WHERE id=? AND student_id=? AND status<>'paid'
        RETURNING *
        """,
        (now or utcnow_iso(), payment_method, transaction_id, fee_id, student_id),
    ).fetchone()
    if row is not None:
        return dict(row)

    ensure_owner(conn, FEES, student_id=student_id, resource_id=fee_id)
    raise Conflict("Fee already paid")


def payment_history(conn: Any, *, student_id: int) -> List[Dict[str, Any]]:
    rows = conn.execute(
        """
        SELECT id, fee_type, amount, paid_date, payment_method, transaction_id
        FROM fees
        WHERE student_id=? AND status='paid'
        ORDER BY paid_date DESC, id DESC
        """,
        (student_id,),
    ).fetchall()
    return rows_to_dicts(rows)
