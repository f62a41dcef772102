from .conftest import iso_in


def _register(make, student, event_id):
    return make.client.post(f"/api/events/{event_id}/register", headers=student["headers"])


def test_capacity_is_enforced(make):
    event_id = make.event(max_participants=2)
    a, b, c = make.student(), make.student(), make.student()

    r = _register(make, a, event_id)
    assert r.status_code == 201
    assert r.json()["message"] == "Successfully registered for event"
    assert r.json()["data"]["registration"]["event_id"] == event_id
    assert _register(make, b, event_id).status_code == 201

    r = _register(make, c, event_id)
    assert r.status_code == 400
    assert r.json()["message"] == "Event is full"
    assert make.scalar("SELECT COUNT(*) FROM event_registrations WHERE event_id=?", (event_id,)) == 2


def test_unlimited_event(make):
    event_id = make.event(max_participants=None)
    for _ in range(3):
        assert _register(make, make.student(), event_id).status_code == 201


def test_duplicate_registration(make):
    event_id = make.event(max_participants=5)
    alice = make.student()

    assert _register(make, alice, event_id).status_code == 201
    r = _register(make, alice, event_id)
    assert r.status_code == 400
    assert r.json()["message"] == "Already registered for this event"


def test_duplicate_registration_on_full_event_reports_duplicate(make):
    event_id = make.event(max_participants=1)
    alice = make.student()

    assert _register(make, alice, event_id).status_code == 201
    assert _register(make, alice, event_id).json()["message"] == "Already registered for this event"


def test_registration_deadline(make):
    closed = make.event(registration_deadline=iso_in(hours=-1))
    open_ended = make.event(registration_deadline=None)
    alice = make.student()

    r = _register(make, alice, closed)
    assert r.status_code == 400
    assert r.json()["message"] == "Registration deadline has passed"
    assert _register(make, alice, open_ended).status_code == 201


def test_unknown_event(make):
    alice = make.student()
    r = _register(make, alice, 999)
    assert r.status_code == 404
    assert r.json() == {"status": "error", "message": "Event not found"}

    assert make.client.get("/api/events/999", headers=alice["headers"]).status_code == 404


def test_unregister_frees_the_seat(make):
    event_id = make.event(max_participants=1)
    alice, bob = make.student(), make.student()

    assert _register(make, alice, event_id).status_code == 201
    assert _register(make, bob, event_id).json()["message"] == "Event is full"

    r = make.client.delete(f"/api/events/{event_id}/unregister", headers=alice["headers"])
    assert r.status_code == 200
    assert r.json() == {"status": "success", "message": "Successfully unregistered from event"}

    assert _register(make, bob, event_id).status_code == 201


def test_cannot_unregister_without_registration(make):
    event_id = make.event()
    alice, bob = make.student(), make.student()
    _register(make, alice, event_id)

    r = make.client.delete(f"/api/events/{event_id}/unregister", headers=bob["headers"])
    assert r.status_code == 403
    assert make.scalar("SELECT COUNT(*) FROM event_registrations WHERE event_id=?", (event_id,)) == 1


def test_listing_reports_counts_and_own_registration(make):
    workshop = make.event(event_type="Workshop", event_date=iso_in(days=10), max_participants=3)
    festival = make.event(event_type="Festival", title="Tech Fest", event_date=iso_in(days=20))
    make.event(event_type="Festival", title="Last Year", event_date=iso_in(days=-30), registration_deadline=None)
    alice, bob = make.student(), make.student()
    _register(make, alice, workshop)
    _register(make, bob, workshop)

    r = make.client.get("/api/events", headers=alice["headers"])
    assert r.status_code == 200
    events = {e["id"]: e for e in r.json()["data"]["events"]}
    assert len(events) == 3
    assert events[workshop]["registered_count"] == 2
    assert events[workshop]["is_registered"] is True
    assert events[festival]["registered_count"] == 0
    assert events[festival]["is_registered"] is False

    r = make.client.get("/api/events", params={"type": "Festival", "upcoming": "true"}, headers=alice["headers"])
    assert [e["id"] for e in r.json()["data"]["events"]] == [festival]

    r = make.client.get(f"/api/events/{workshop}", headers=bob["headers"])
    assert r.json()["data"]["event"]["is_registered"] is True


def test_my_registrations(make):
    first = make.event(title="First", event_date=iso_in(days=3))
    second = make.event(title="Second", event_date=iso_in(days=5))
    make.event(title="Skipped")
    alice = make.student()
    _register(make, alice, second)
    _register(make, alice, first)

    r = make.client.get("/api/events/my/registrations", headers=alice["headers"])
    assert r.status_code == 200
    regs = r.json()["data"]["registeredEvents"]
    assert [e["title"] for e in regs] == ["First", "Second"]
    assert all(e["status"] == "registered" for e in regs)
