import pytest

from student_portal.auth.guards import (
    EVENT_REGISTRATIONS,
    FEES,
    NOT_ENROLLED,
    NOTIFICATIONS,
    ensure_assignment_access,
    ensure_enrolled,
    ensure_owner,
    is_enrolled,
)
from student_portal.db import connect
from student_portal.errors import Forbidden


def test_owner_gets_their_row(make):
    alice = make.student()
    fee_id = make.fee(alice["id"], amount=250.0)

    with connect(make.dsn) as conn:
        row = ensure_owner(conn, FEES, student_id=alice["id"], resource_id=fee_id)
    assert row["id"] == fee_id
    assert row["amount"] == 250.0


def test_other_students_row_and_missing_row_look_the_same(make):
    alice, bob = make.student(), make.student()
    note_id = make.notification(alice["id"])

    with connect(make.dsn) as conn:
        with pytest.raises(Forbidden) as not_mine:
            ensure_owner(conn, NOTIFICATIONS, student_id=bob["id"], resource_id=note_id)
        with pytest.raises(Forbidden) as missing:
            ensure_owner(conn, NOTIFICATIONS, student_id=bob["id"], resource_id=note_id + 1000)

    assert not_mine.value.message == missing.value.message == "Notification not found"


def test_registration_guard_keys_on_event(make):
    alice = make.student()
    event_id = make.event()
    make.client.post(f"/api/events/{event_id}/register", headers=alice["headers"])

    with connect(make.dsn) as conn:
        row = ensure_owner(conn, EVENT_REGISTRATIONS, student_id=alice["id"], resource_id=event_id)
        assert row["event_id"] == event_id


def test_enrollment_guard(make):
    alice, bob = make.student(), make.student()
    course = make.course()
    make.enroll(alice["id"], course)

    with connect(make.dsn) as conn:
        assert is_enrolled(conn, student_id=alice["id"], course_id=course)
        assert not is_enrolled(conn, student_id=bob["id"], course_id=course)
        ensure_enrolled(conn, student_id=alice["id"], course_id=course)
        with pytest.raises(Forbidden) as ei:
            ensure_enrolled(conn, student_id=bob["id"], course_id=course)
    assert ei.value.message == NOT_ENROLLED


def test_assignment_access_requires_enrollment(make):
    alice, bob = make.student(), make.student()
    course = make.course()
    make.enroll(alice["id"], course)
    assignment = make.assignment(course, due_date=None)

    with connect(make.dsn) as conn:
        row = ensure_assignment_access(conn, student_id=alice["id"], assignment_id=assignment)
        assert row["course_id"] == course
        with pytest.raises(Forbidden):
            ensure_assignment_access(conn, student_id=bob["id"], assignment_id=assignment)
        with pytest.raises(Forbidden):
            ensure_assignment_access(conn, student_id=alice["id"], assignment_id=assignment + 1000)
