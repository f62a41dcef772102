"""Per-student resource queries (courses, attendance, assignments, fees, events, notifications).

Functions take an open connection and the authenticated student's id; ownership checks
live in `student_portal.auth.guards`.
"""
