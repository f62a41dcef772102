"""Student Portal - Backend.

REST API for a university student portal:
- Students register / log in and receive a JWT bearer token.
- Every per-student read or write is filtered by the authenticated id.
- Course-scoped resources (assignments, attendance) are reached through enrollments.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
