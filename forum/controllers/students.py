import logging

from fastapi import APIRouter
from psycopg import errors as pg_errors

from forum import db
from forum.dependencies import AdminGuard
from forum.errors import ConflictError, NotFoundError
from forum.models.bookings import BookingLimit, StudentBooking
from forum.models.catalog import HeadStartRequest, Student, StudentCreate, StudentEventStats

logger = logging.getLogger("forum.students")
router = APIRouter(tags=["students"])


def _not_found(student_id: int) -> NotFoundError:
    return NotFoundError("Student not found", resource_type="student", resource_id=str(student_id))


@router.post("/students", response_model=Student, status_code=201)
async def create_student(req: StudentCreate) -> Student:
    try:
        student = await db.create_student(req.full_name, req.email, req.is_deprioritized)
    except pg_errors.UniqueViolation as exc:
        raise ConflictError("A student with this email already exists") from exc
    logger.info("Created student id=%s", student["id"])
    return Student(**student)


@router.get("/students/{student_id}", response_model=Student)
async def get_student(student_id: int) -> Student:
    student = await db.get_student(student_id)
    if student is None:
        raise _not_found(student_id)
    return Student(**student)


@router.put("/admin/students/{student_id}/head-start", response_model=Student)
async def set_head_start(student_id: int, req: HeadStartRequest, _admin: AdminGuard) -> Student:
    student = await db.set_student_deprioritized(student_id, req.is_deprioritized)
    if student is None:
        raise _not_found(student_id)
    logger.info("Student %s head start flag set to %s", student_id, req.is_deprioritized)
    return Student(**student)


@router.get("/students/{student_id}/events/{event_id}/booking-limit", response_model=BookingLimit)
async def check_booking_limit(student_id: int, event_id: int) -> BookingLimit:
    result = await db.check_booking_limit(student_id, event_id)
    if result is None:
        raise NotFoundError("Student or event not found")
    return BookingLimit(**result.to_dict())


@router.get("/students/{student_id}/bookings", response_model=list[StudentBooking])
async def list_student_bookings(student_id: int) -> list[StudentBooking]:
    bookings = await db.list_student_bookings(student_id)
    return [StudentBooking(**b) for b in bookings]


@router.get("/students/{student_id}/stats", response_model=list[StudentEventStats])
async def student_stats(student_id: int) -> list[StudentEventStats]:
    if await db.get_student(student_id) is None:
        raise _not_found(student_id)
    return [StudentEventStats(**s) for s in await db.get_student_booking_stats(student_id)]
