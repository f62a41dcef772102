"""Authentication / authorization core.

- Students table (email / student_id / roll_number + password hash)
- Stateless JWT bearer tokens (`Authorization: Bearer <token>`)
- Ownership guards: every per-student lookup is filtered by the authenticated id,
  course-scoped resources are reached through enrollments.
"""

from .crud import register_student, verify_student_credentials
from .deps import get_current_student
from .security import TokenService

__all__ = [
    "get_current_student",
    "register_student",
    "verify_student_credentials",
    "TokenService",
]
