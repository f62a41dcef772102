from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class StudentIdentity:
    """The authenticated student attached to a single request."""

    id: int
    email: str


@dataclass(frozen=True)
class OwnedResource:
    """A table whose rows belong to exactly one student."""

    table: str
    label: str
    owner_column: str = "student_id"
    id_column: str = "id"
