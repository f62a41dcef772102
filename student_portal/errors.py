"""Error taxonomy shared by the auth core and the resource modules.

Every error carries the HTTP status it maps to at the API boundary, so route
handlers never translate errors by hand:

    raise Forbidden("You are not enrolled in this course")

becomes ``403 {"status": "error", "message": "You are not enrolled in this course"}``.
"""

from __future__ import annotations

from typing import Dict, Optional


class PortalError(Exception):
    status_code: int = 500
    default_message: str = "Something went wrong!"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return None


class ValidationError(PortalError):
    """Missing or malformed input."""

    status_code = 400
    default_message = "Invalid request"


class Conflict(PortalError):
    """Duplicate unique field, duplicate submission/registration, already-paid fee."""

    status_code = 400
    default_message = "Resource already exists"


class Expired(PortalError):
    """A deadline (assignment due date, event registration deadline) has passed."""

    status_code = 400
    default_message = "Deadline has passed"


class Full(PortalError):
    status_code = 400
    default_message = "Capacity reached"


class Unauthorized(PortalError):
    status_code = 401
    default_message = "Unauthorized"

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return {"WWW-Authenticate": "Bearer"}


class InvalidToken(Unauthorized):
    default_message = "Invalid token"


class TokenExpired(Unauthorized):
    default_message = "Token expired"


class Forbidden(PortalError):
    """Authenticated, but the resource is absent or belongs to someone else."""

    status_code = 403
    default_message = "Access denied"


class NotFound(PortalError):
    status_code = 404
    default_message = "Not found"


class Internal(PortalError):
    status_code = 500
