"""Shared fixtures: a fresh SQLite DB per test, an app built from a test Config,
and a small factory for rows the API has no endpoints to create (courses, events, ...)."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import pytest
from fastapi.testclient import TestClient

from student_portal.api.server import create_app
from student_portal.config import Config
from student_portal.db import connect, init_db
from student_portal.util.time import to_iso, utcnow_iso


TEST_JWT_SECRET = "test-jwt-secret-for-testing-only"
DEFAULT_PASSWORD = "s3cret-pass"

# Marker for "deadline one week out"; pass None for an event with no deadline.
DEFAULT_DEADLINE = object()


def iso_in(**delta: float) -> str:
    """ISO timestamp relative to now, e.g. iso_in(days=3) or iso_in(hours=-1)."""
    return to_iso(datetime.now(timezone.utc) + timedelta(**delta))


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class PortalFactory:
    def __init__(self, client: TestClient, dsn: str):
        self.client = client
        self.dsn = dsn
        self._n = 0

    def _next(self) -> int:
        self._n += 1
        return self._n

    def student(self, **overrides: Any) -> Dict[str, Any]:
        """Register through the API; returns {"token", "student", "headers", "id"}."""
        n = self._next()
        body = {
            "student_id": f"STU{n:03d}",
            "name": f"Student {n}",
            "email": f"student{n}@university.edu",
            "password": DEFAULT_PASSWORD,
            "roll_number": f"CS2024{n:03d}",
            "department": "Computer Science",
            "year": 2,
            "semester": 3,
        }
        body.update(overrides)
        r = self.client.post("/api/auth/register", json=body)
        assert r.status_code == 201, r.json()
        data = r.json()["data"]
        return {
            "token": data["token"],
            "student": data["student"],
            "headers": bearer(data["token"]),
            "id": int(data["student"]["id"]),
        }

    def _insert(self, sql: str, params: tuple) -> int:
        with connect(self.dsn) as conn:
            row = conn.execute(sql + " RETURNING id", params).fetchone()
            return int(row["id"])

    def course(self, code: Optional[str] = None, name: Optional[str] = None, credits: int = 4) -> int:
        n = self._next()
        return self._insert(
            """
            INSERT INTO courses (course_code, course_name, department, semester, credits, faculty_name, created_at)
            VALUES (?,?,?,?,?,?,?)
            """,
            (code or f"CS{n:03d}", name or f"Course {n}", "Computer Science", 3, credits, "Dr. Test", utcnow_iso()),
        )

    def enroll(
        self,
        student_pk: int,
        course_pk: int,
        *,
        grade: Optional[str] = None,
        semester: int = 3,
        year: int = 2024,
        status: str = "active",
    ) -> int:
        return self._insert(
            """
            INSERT INTO enrollments (student_id, course_id, semester, year, grade, status, created_at)
            VALUES (?,?,?,?,?,?,?)
            """,
            (student_pk, course_pk, semester, year, grade, status, utcnow_iso()),
        )

    def assignment(self, course_pk: int, *, due_date: Optional[str], title: str = "Homework") -> int:
        return self._insert(
            """
            INSERT INTO assignments (course_id, title, description, due_date, max_marks, created_at)
            VALUES (?,?,?,?,?,?)
            """,
            (course_pk, title, "Solve the problems", due_date, 100, utcnow_iso()),
        )

    def attendance(self, student_pk: int, course_pk: int, date: str, status: str = "present") -> int:
        return self._insert(
            "INSERT INTO attendance (student_id, course_id, date, status, created_at) VALUES (?,?,?,?,?)",
            (student_pk, course_pk, date, status, utcnow_iso()),
        )

    def fee(self, student_pk: int, *, amount: float = 1000.0, status: str = "pending", fee_type: str = "Exam Fee") -> int:
        return self._insert(
            "INSERT INTO fees (student_id, fee_type, amount, due_date, status, created_at) VALUES (?,?,?,?,?,?)",
            (student_pk, fee_type, amount, "2030-01-01", status, utcnow_iso()),
        )

    def event(
        self,
        *,
        max_participants: Optional[int] = 10,
        registration_deadline: Any = DEFAULT_DEADLINE,
        event_date: Optional[str] = None,
        event_type: str = "Workshop",
        title: str = "Career Workshop",
    ) -> int:
        return self._insert(
            """
            INSERT INTO events (title, description, event_date, location, event_type, max_participants, registration_deadline, created_at)
            VALUES (?,?,?,?,?,?,?,?)
            """,
            (
                title,
                "An event",
                event_date or iso_in(days=14),
                "Main Auditorium",
                event_type,
                max_participants,
                iso_in(days=7) if registration_deadline is DEFAULT_DEADLINE else registration_deadline,
                utcnow_iso(),
            ),
        )

    def notification(self, student_pk: int, *, title: str = "Reminder", is_read: bool = False) -> int:
        return self._insert(
            "INSERT INTO notifications (student_id, title, message, type, is_read, created_at) VALUES (?,?,?,?,?,?)",
            (student_pk, title, "Something happened", "academic", 1 if is_read else 0, utcnow_iso()),
        )

    def scalar(self, sql: str, params: tuple = ()) -> Any:
        with connect(self.dsn) as conn:
            row = conn.execute(sql, params).fetchone()
            return row[0] if row is not None else None


@pytest.fixture
def cfg(tmp_path) -> Config:
    return Config(
        DB_DSN=str(tmp_path / "portal.sqlite"),
        AUTH_JWT_SECRET=TEST_JWT_SECRET,
        AUTH_TOKEN_EXPIRE_MINUTES=60,
        APP_ENV="test",
        SEED_DEMO_DATA=False,
        CORS_ALLOW_ORIGINS="",
    )


@pytest.fixture
def dsn(cfg: Config) -> str:
    init_db(cfg.DB_DSN)
    return cfg.DB_DSN


@pytest.fixture
def app(cfg: Config, dsn: str):
    return create_app(cfg)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make(client: TestClient, dsn: str) -> PortalFactory:
    return PortalFactory(client, dsn)
