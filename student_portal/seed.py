"""Demo data for local development.

Inserted only when the students table is empty. Both demo students log in with
the password `password`.
"""

from __future__ import annotations

from typing import Any, Dict, List

from student_portal.auth.crud import register_student
from student_portal.portal.notifications import create_notification
from student_portal.util.time import utcnow_iso


DEMO_PASSWORD = "password"

DEMO_STUDENTS: List[Dict[str, Any]] = [
    {
        "student_id": "STU001",
        "name": "John Doe",
        "email": "john.doe@university.edu",
        "phone": "+1234567890",
        "department": "Computer Science",
        "year": 3,
        "semester": 6,
        "roll_number": "CS2021001",
        "address": "123 University Ave, City, State",
        "date_of_birth": "2002-05-15",
        "parent_name": "Robert Doe",
        "parent_phone": "+1234567891",
    },
    {
        "student_id": "STU002",
        "name": "Jane Smith",
        "email": "jane.smith@university.edu",
        "phone": "+1234567892",
        "department": "Electronics",
        "year": 2,
        "semester": 4,
        "roll_number": "EC2022001",
        "address": "456 College St, City, State",
        "date_of_birth": "2003-08-20",
        "parent_name": "Mary Smith",
        "parent_phone": "+1234567893",
    },
]

DEMO_COURSES: List[Dict[str, Any]] = [
    {
        "course_code": "CS301",
        "course_name": "Data Structures and Algorithms",
        "department": "Computer Science",
        "semester": 5,
        "credits": 4,
        "faculty_name": "Dr. Alice Johnson",
        "faculty_email": "alice.johnson@university.edu",
        "description": "Advanced data structures and algorithm analysis",
    },
    {
        "course_code": "CS302",
        "course_name": "Database Management Systems",
        "department": "Computer Science",
        "semester": 5,
        "credits": 3,
        "faculty_name": "Dr. Bob Wilson",
        "faculty_email": "bob.wilson@university.edu",
        "description": "Database design and management principles",
    },
    {
        "course_code": "EC201",
        "course_name": "Digital Electronics",
        "department": "Electronics",
        "semester": 3,
        "credits": 4,
        "faculty_name": "Dr. Carol Davis",
        "faculty_email": "carol.davis@university.edu",
        "description": "Digital circuit design and analysis",
    },
]

# (student index, course index, semester, year, grade)
DEMO_ENROLLMENTS = [
    (0, 0, 5, 2024, "A"),
    (0, 1, 5, 2024, "B+"),
    (1, 2, 3, 2024, "A-"),
]

# (student index, fee_type, amount, due_date, status, paid_date)
DEMO_FEES = [
    (0, "Tuition Fee", 50000.00, "2024-01-15", "paid", "2024-01-10T00:00:00Z"),
    (0, "Library Fee", 2000.00, "2024-02-01", "paid", "2024-01-25T00:00:00Z"),
    (0, "Exam Fee", 3000.00, "2024-03-01", "pending", None),
    (1, "Tuition Fee", 50000.00, "2024-01-15", "paid", "2024-01-12T00:00:00Z"),
    (1, "Library Fee", 2000.00, "2024-02-01", "pending", None),
]

DEMO_EVENTS: List[Dict[str, Any]] = [
    {
        "title": "Tech Fest 2024",
        "description": "Annual technology festival with coding competitions and workshops",
        "event_date": "2024-04-15T09:00:00Z",
        "location": "Main Auditorium",
        "event_type": "Festival",
        "max_participants": 500,
        "registration_deadline": "2024-04-10T23:59:59Z",
    },
    {
        "title": "Career Guidance Workshop",
        "description": "Workshop on resume building and interview preparation",
        "event_date": "2024-03-20T14:00:00Z",
        "location": "Conference Room A",
        "event_type": "Workshop",
        "max_participants": 50,
        "registration_deadline": "2024-03-18T23:59:59Z",
    },
]

# (student index, title, message, type)
DEMO_NOTIFICATIONS = [
    (0, "Fee Payment Reminder", "Your exam fee is due on March 1, 2024", "fee"),
    (0, "Assignment Due", "Data Structures assignment is due tomorrow", "academic"),
    (1, "Library Fee Due", "Your library fee is due on February 1, 2024", "fee"),
]


def _debug(msg: str) -> None:
    print(f"[seed] {msg}")


def insert_demo_data(conn: Any) -> bool:
    """Insert demo rows if the DB has no students. Returns True when data was inserted."""
    n = conn.execute("SELECT COUNT(*) AS n FROM students").fetchone()["n"]
    if int(n) > 0:
        _debug("Demo data already present, skipping")
        return False

    now = utcnow_iso()

    student_pks: List[int] = []
    for s in DEMO_STUDENTS:
        fields = dict(s)
        created = register_student(
            conn,
            student_id=fields.pop("student_id"),
            name=fields.pop("name"),
            email=fields.pop("email"),
            password=DEMO_PASSWORD,
            **fields,
        )
        student_pks.append(int(created["id"]))

    course_pks: List[int] = []
    for c in DEMO_COURSES:
        row = conn.execute(
            """
            INSERT INTO courses (course_code, course_name, department, semester, credits, faculty_name, faculty_email, description, created_at)
            VALUES (?,?,?,?,?,?,?,?,?)
            RETURNING id
            """,
            (
                c["course_code"],
                c["course_name"],
                c["department"],
                c["semester"],
                c["credits"],
                c["faculty_name"],
                c["faculty_email"],
                c["description"],
                now,
            ),
        ).fetchone()
        course_pks.append(int(row["id"]))

    conn.executemany(
        """
        INSERT INTO enrollments (student_id, course_id, semester, year, grade, status, created_at)
        VALUES (?,?,?,?,?,'active',?)
        """,
        [(student_pks[s], course_pks[c], sem, year, grade, now) for s, c, sem, year, grade in DEMO_ENROLLMENTS],
    )

    conn.executemany(
        """
        INSERT INTO fees (student_id, fee_type, amount, due_date, status, paid_date, created_at)
        VALUES (?,?,?,?,?,?,?)
        """,
        [(student_pks[s], t, amt, due, status, paid, now) for s, t, amt, due, status, paid in DEMO_FEES],
    )

    conn.executemany(
        """
        INSERT INTO events (title, description, event_date, location, event_type, max_participants, registration_deadline, created_at)
        VALUES (?,?,?,?,?,?,?,?)
        """,
        [
            (
                e["title"],
                e["description"],
                e["event_date"],
                e["location"],
                e["event_type"],
                e["max_participants"],
                e["registration_deadline"],
                now,
            )
            for e in DEMO_EVENTS
        ],
    )

    for s, title, message, kind in DEMO_NOTIFICATIONS:
        create_notification(conn, student_id=student_pks[s], title=title, message=message, type=kind, created_at=now)

    _debug(
        f"Inserted {len(student_pks)} students, {len(course_pks)} courses, "
        f"{len(DEMO_FEES)} fees, {len(DEMO_EVENTS)} events"
    )
    return True
