from __future__ import annotations

from typing import Any, Dict, Optional

from student_portal.errors import Conflict, Unauthorized
from student_portal.util.time import utcnow_iso

from .security import dummy_verify, hash_password, verify_password


CREDENTIALS_INVALID = "Invalid email or password"
REGISTRATION_CONFLICT = "Student with this email, student ID, or roll number already exists"

# Profile fields accepted at registration besides the required ones.
PROFILE_FIELDS = (
    "phone",
    "department",
    "year",
    "semester",
    "roll_number",
    "address",
    "date_of_birth",
    "parent_name",
    "parent_phone",
)

# Fields a student may change on their own profile.
EDITABLE_FIELDS = ("name", "phone", "address", "parent_name", "parent_phone")


def _debug(msg: str) -> None:
    print(f"[auth] {msg}")


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _blank_to_none(v: Any) -> Any:
    if isinstance(v, str) and not v.strip():
        return None
    return v


def public_student(row: Any | Dict[str, Any]) -> Dict[str, Any]:
    d = dict(row)
    d.pop("password_hash", None)
    return d


def get_student_by_email(conn: Any, email: str) -> Optional[Any]:
    e = normalize_email(email)
    if not e:
        return None
    return conn.execute("SELECT * FROM students WHERE email=?", (e,)).fetchone()


def get_student_by_id(conn: Any, student_pk: int) -> Optional[Any]:
    return conn.execute("SELECT * FROM students WHERE id=?", (int(student_pk),)).fetchone()


def register_student(
    conn: Any,
    *,
    student_id: str,
    name: str,
    email: str,
    password: str,
    **profile: Any,
) -> Dict[str, Any]:
    """Create a student; fails with Conflict if email, student_id or roll_number is taken.

    A single `INSERT ... ON CONFLICT DO NOTHING` against the UNIQUE constraints, so two
    concurrent registrations with the same email can never both succeed. The error message
    does not say which field collided.
    """
    unknown = set(profile) - set(PROFILE_FIELDS)
    if unknown:
        raise TypeError(f"unexpected profile fields: {sorted(unknown)}")

    e = normalize_email(email)
    sid = (student_id or "").strip()
    if not e or not sid or not (name or "").strip():
        raise ValueError("required_field_blank")

    values = {k: _blank_to_none(profile.get(k)) for k in PROFILE_FIELDS}
    if isinstance(values["roll_number"], str):
        values["roll_number"] = values["roll_number"].strip()

    now = utcnow_iso()
    cols = ["student_id", "name", "email", "password_hash", *PROFILE_FIELDS, "created_at", "updated_at"]
    params = [sid, name.strip(), e, hash_password(password), *[values[k] for k in PROFILE_FIELDS], now, now]
    placeholders = ",".join("?" for _ in cols)

    row = conn.execute(
        f"""
        INSERT INTO students ({", ".join(cols)})
        VALUES ({placeholders})
        ON CONFLICT DO NOTHING
        RETURNING id
        """,
        params,
    ).fetchone()
    if row is None:
        raise Conflict(REGISTRATION_CONFLICT)

    created = get_student_by_id(conn, int(row["id"]))
    assert created is not None
    _debug(f"Registered student id={created['id']} student_id={created['student_id']}")
    return public_student(created)


def verify_student_credentials(conn: Any, email: str, password: str) -> Any:
    """Return the student row for valid credentials.

    Unknown email and wrong password raise the same Unauthorized error, and both paths
    run one password verification so they take the same time.
    """
    row = get_student_by_email(conn, email)
    if row is None:
        dummy_verify()
        raise Unauthorized(CREDENTIALS_INVALID)
    if not verify_password(password, str(row["password_hash"])):
        raise Unauthorized(CREDENTIALS_INVALID)
    return row


def update_profile(conn: Any, *, student_pk: int, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Update editable profile fields; fields that are None keep their current value."""
    fields = [(k, changes.get(k)) for k in EDITABLE_FIELDS]
    sets = ", ".join(f"{k}=COALESCE(?, {k})" for k, _ in fields)
    params = [v for _, v in fields] + [utcnow_iso(), int(student_pk)]
    conn.execute(f"UPDATE students SET {sets}, updated_at=? WHERE id=?", params)

    row = get_student_by_id(conn, student_pk)
    return public_student(row) if row is not None else None
