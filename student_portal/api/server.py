from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import APIRouter, Depends, FastAPI, Path, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from student_portal import __version__
from student_portal.api.exception_handlers import setup_exception_handlers
from student_portal.auth.crud import (
    PROFILE_FIELDS,
    get_student_by_id,
    public_student,
    register_student,
    update_profile,
    verify_student_credentials,
)
from student_portal.auth.deps import get_config, get_current_student, get_token_service
from student_portal.auth.security import TokenService
from student_portal.config import Config, load_config
from student_portal.db import connect, init_db
from student_portal.errors import NotFound, ValidationError
from student_portal.models import StudentIdentity
from student_portal.portal import assignments, attendance, courses, events, fees, notifications, students
from student_portal.seed import insert_demo_data
from student_portal.util.time import utcnow_iso


def _debug(msg: str) -> None:
    print(f"[api] {msg}")


def envelope(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"status": "success"}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body


def _login_payload(tokens: TokenService, student: Dict[str, Any]) -> Dict[str, Any]:
    token = tokens.issue(StudentIdentity(id=int(student["id"]), email=str(student["email"])))
    summary_keys = ("id", "student_id", "name", "email", "department", "year", "semester", "roll_number")
    return {"token": token, "student": {k: student.get(k) for k in summary_keys}}


# Largest id a SQLite INTEGER / Postgres BIGINT column can hold.
MAX_ROW_ID = 2**63 - 1

router = APIRouter()


# -----------------------------
# Health
# -----------------------------


@router.get("/health")
def health() -> Dict[str, Any]:
    return {
        "status": "success",
        "message": "Student Portal API is running",
        "timestamp": utcnow_iso(),
    }


# -----------------------------
# Auth
# -----------------------------


class RegisterRequest(BaseModel):
    student_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    year: Optional[int] = None
    semester: Optional[int] = None
    roll_number: Optional[str] = None
    address: Optional[str] = None
    date_of_birth: Optional[str] = None
    parent_name: Optional[str] = None
    parent_phone: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    parent_name: Optional[str] = None
    parent_phone: Optional[str] = None


REGISTER_REQUIRED = "Student ID, name, email, and password are required"


@router.post("/api/auth/register", status_code=201)
def auth_register(
    payload: RegisterRequest,
    cfg: Config = Depends(get_config),
    tokens: TokenService = Depends(get_token_service),
) -> Dict[str, Any]:
    if not (payload.student_id and payload.name and payload.email and payload.password):
        raise ValidationError(REGISTER_REQUIRED)

    profile = {k: getattr(payload, k) for k in PROFILE_FIELDS}
    with connect(cfg.DB_DSN) as conn:
        try:
            student = register_student(
                conn,
                student_id=payload.student_id,
                name=payload.name,
                email=payload.email,
                password=payload.password,
                **profile,
            )
        except ValueError:
            raise ValidationError(REGISTER_REQUIRED)

    return envelope(_login_payload(tokens, student), "Student registered successfully")


@router.post("/api/auth/login")
def auth_login(
    payload: LoginRequest,
    cfg: Config = Depends(get_config),
    tokens: TokenService = Depends(get_token_service),
) -> Dict[str, Any]:
    if not payload.email or not payload.password:
        raise ValidationError("Email and password are required")

    with connect(cfg.DB_DSN) as conn:
        row = verify_student_credentials(conn, payload.email, payload.password)
        student = public_student(row)

    return envelope(_login_payload(tokens, student), "Login successful")


def _load_profile(cfg: Config, me: StudentIdentity) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        row = get_student_by_id(conn, me.id)
    if row is None:
        raise NotFound("Student not found")
    return public_student(row)


@router.get("/api/auth/me")
def auth_me(
    me: StudentIdentity = Depends(get_current_student),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    return envelope({"student": _load_profile(cfg, me)})


# -----------------------------
# Students
# -----------------------------


@router.get("/api/students/dashboard")
def student_dashboard(
    me: StudentIdentity = Depends(get_current_student),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        return envelope(students.dashboard(conn, student_id=me.id))


@router.get("/api/students/profile")
def student_profile(
    me: StudentIdentity = Depends(get_current_student),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    return envelope({"student": _load_profile(cfg, me)})


@router.put("/api/students/profile")
def student_update_profile(
    payload: ProfileUpdateRequest,
    me: StudentIdentity = Depends(get_current_student),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        student = update_profile(conn, student_pk=me.id, changes=payload.model_dump())
    if student is None:
        raise NotFound("Student not found")
    return envelope({"student": student}, "Profile updated successfully")


@router.get("/api/students/academic-performance")
def student_academic_performance(
    me: StudentIdentity = Depends(get_current_student),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        return envelope(students.academic_performance(conn, student_id=me.id))


# -----------------------------
# Courses
# -----------------------------


@router.get("/api/courses")
def course_list(
    me: StudentIdentity = Depends(get_current_student),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        return envelope({"courses": courses.list_courses(conn, student_id=me.id)})


@router.get("/api/courses/timetable/view")
def course_timetable(
    me: StudentIdentity = Depends(get_current_student),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        return envelope(courses.timetable(conn, student_id=me.id))


@router.get("/api/courses/{course_id}")
def course_detail(
    course_id: int = Path(..., ge=1, le=MAX_ROW_ID),
    me: StudentIdentity = Depends(get_current_student),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        return envelope(courses.course_details(conn, student_id=me.id, course_id=course_id))


# -----------------------------
# Attendance
# -----------------------------


@router.get("/api/attendance/summary")
def attendance_summary(
    me: StudentIdentity = Depends(get_current_student),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        return envelope({"attendance": attendance.attendance_by_course(conn, student_id=me.id)})


@router.get("/api/attendance/course/{course_id}")
def attendance_for_course(
    course_id: int = Path(..., ge=1, le=MAX_ROW_ID),
    me: StudentIdentity = Depends(get_current_student),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        rows = attendance.course_attendance(conn, student_id=me.id, course_id=course_id)
    return envelope({"attendance": rows})


@router.get("/api/attendance/monthly/{year}/{month}")
def attendance_for_month(
    year: int,
    month: int,
    me: StudentIdentity = Depends(get_current_student),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        rows = attendance.monthly_attendance(conn, student_id=me.id, year=year, month=month)
    return envelope({"attendance": rows})


# -----------------------------
# Assignments
# -----------------------------


class SubmissionRequest(BaseModel):
    file_path: Optional[str] = None
    submission_text: Optional[str] = None


@router.get("/api/assignments")
def assignment_list(
    me: StudentIdentity = Depends(get_current_student),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        return envelope({"assignments": assignments.list_assignments(conn, student_id=me.id)})


@router.get("/api/assignments/upcoming/list")
def assignment_upcoming(
    me: StudentIdentity = Depends(get_current_student),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        rows = assignments.upcoming_assignments(conn, student_id=me.id)
    return envelope({"upcomingAssignments": rows})


@router.get("/api/assignments/{assignment_id}")
def assignment_detail(
    assignment_id: int = Path(..., ge=1, le=MAX_ROW_ID),
    me: StudentIdentity = Depends(get_current_student),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        row = assignments.assignment_details(conn, student_id=me.id, assignment_id=assignment_id)
    return envelope({"assignment": row})


@router.post("/api/assignments/{assignment_id}/submit", status_code=201)
def assignment_submit(
    assignment_id: int = Path(..., ge=1, le=MAX_ROW_ID),
    payload: Optional[SubmissionRequest] = None,
    me: StudentIdentity = Depends(get_current_student),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    body = payload or SubmissionRequest()
    with connect(cfg.DB_DSN) as conn:
        submission = assignments.submit_assignment(
            conn,
            student_id=me.id,
            assignment_id=assignment_id,
            file_path=body.file_path,
            submission_text=body.submission_text,
        )
    return envelope({"submission": submission}, "Assignment submitted successfully")


# -----------------------------
# Fees
# -----------------------------


class PaymentRequest(BaseModel):
    payment_method: Optional[str] = None
    transaction_id: Optional[str] = None


@router.get("/api/fees/summary")
def fee_summary(
    me: StudentIdentity = Depends(get_current_student),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        return envelope({"feeSummary": fees.fee_summary(conn, student_id=me.id)})


@router.get("/api/fees")
def fee_list(
    me: StudentIdentity = Depends(get_current_student),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        return envelope({"fees": fees.list_fees(conn, student_id=me.id)})


@router.get("/api/fees/history/payments")
def fee_payment_history(
    me: StudentIdentity = Depends(get_current_student),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        return envelope({"paymentHistory": fees.payment_history(conn, student_id=me.id)})


@router.get("/api/fees/{fee_id}")
def fee_detail(
    fee_id: int = Path(..., ge=1, le=MAX_ROW_ID),
    me: StudentIdentity = Depends(get_current_student),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        return envelope({"fee": fees.fee_details(conn, student_id=me.id, fee_id=fee_id)})


@router.post("/api/fees/{fee_id}/pay")
def fee_pay(
    fee_id: int = Path(..., ge=1, le=MAX_ROW_ID),
    payload: Optional[PaymentRequest] = None,
    me: StudentIdentity = Depends(get_current_student),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    body = payload or PaymentRequest()
    with connect(cfg.DB_DSN) as conn:
        fee = fees.pay_fee(
            conn,
            student_id=me.id,
            fee_id=fee_id,
            payment_method=body.payment_method,
            transaction_id=body.transaction_id,
        )
    return envelope({"fee": fee}, "Payment successful")


# -----------------------------
# Events
# -----------------------------


@router.get("/api/events")
def event_list(
    event_type: Optional[str] = Query(None, alias="type", description="Filter by event type"),
    upcoming: bool = False,
    me: StudentIdentity = Depends(get_current_student),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        rows = events.list_events(conn, student_id=me.id, event_type=event_type, upcoming=upcoming)
    return envelope({"events": rows})


@router.get("/api/events/my/registrations")
def event_my_registrations(
    me: StudentIdentity = Depends(get_current_student),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        return envelope({"registeredEvents": events.my_registrations(conn, student_id=me.id)})


@router.get("/api/events/{event_id}")
def event_detail(
    event_id: int = Path(..., ge=1, le=MAX_ROW_ID),
    me: StudentIdentity = Depends(get_current_student),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        return envelope({"event": events.event_details(conn, student_id=me.id, event_id=event_id)})


@router.post("/api/events/{event_id}/register", status_code=201)
def event_register(
    event_id: int = Path(..., ge=1, le=MAX_ROW_ID),
    me: StudentIdentity = Depends(get_current_student),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        registration = events.register_for_event(conn, student_id=me.id, event_id=event_id)
    return envelope({"registration": registration}, "Successfully registered for event")


@router.delete("/api/events/{event_id}/unregister")
def event_unregister(
    event_id: int = Path(..., ge=1, le=MAX_ROW_ID),
    me: StudentIdentity = Depends(get_current_student),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        events.unregister_from_event(conn, student_id=me.id, event_id=event_id)
    return envelope(message="Successfully unregistered from event")


# -----------------------------
# Notifications
# -----------------------------


@router.get("/api/notifications")
def notification_list(
    unread_only: bool = False,
    me: StudentIdentity = Depends(get_current_student),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        rows = notifications.list_notifications(conn, student_id=me.id, unread_only=unread_only)
    return envelope({"notifications": rows})


@router.get("/api/notifications/count/unread")
def notification_unread_count(
    me: StudentIdentity = Depends(get_current_student),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        return envelope({"unreadCount": notifications.unread_count(conn, student_id=me.id)})


@router.put("/api/notifications/mark-all-read")
def notification_mark_all_read(
    me: StudentIdentity = Depends(get_current_student),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        n = notifications.mark_all_read(conn, student_id=me.id)
    return envelope({"updated_count": n}, "All notifications marked as read")


@router.put("/api/notifications/{notification_id}/read")
def notification_mark_read(
    notification_id: int = Path(..., ge=1, le=MAX_ROW_ID),
    me: StudentIdentity = Depends(get_current_student),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        row = notifications.mark_read(conn, student_id=me.id, notification_id=notification_id)
    return envelope({"notification": row}, "Notification marked as read")


@router.delete("/api/notifications/{notification_id}")
def notification_delete(
    notification_id: int = Path(..., ge=1, le=MAX_ROW_ID),
    me: StudentIdentity = Depends(get_current_student),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        notifications.delete_notification(conn, student_id=me.id, notification_id=notification_id)
    return envelope(message="Notification deleted successfully")


# -----------------------------
# App factory
# -----------------------------


def create_app(cfg: Config) -> FastAPI:
    """Build the API for one configuration.

    The config and the token service are created here once and read by the auth
    dependencies through `app.state`; nothing else is shared between requests.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        init_db(cfg.DB_DSN)
        if cfg.SEED_DEMO_DATA:
            with connect(cfg.DB_DSN) as conn:
                insert_demo_data(conn)
        _debug(f"Student Portal API ready (env={cfg.APP_ENV})")
        yield

    app = FastAPI(title="Student Portal API", version=__version__, lifespan=lifespan)
    app.state.cfg = cfg
    app.state.tokens = TokenService(cfg.AUTH_JWT_SECRET, cfg.AUTH_TOKEN_EXPIRE_MINUTES)

    origins = cfg.cors_origins()
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    setup_exception_handlers(app, cfg)
    app.include_router(router)
    return app


app = create_app(load_config())
