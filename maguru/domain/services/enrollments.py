from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from maguru.domain.errors import (
    ErrorCode,
    FieldError,
    Result,
    internal_error,
    validation_error,
)
from maguru.domain.pagination import ENROLLMENT_PAGE_LIMIT_MAX, Pagination, check_pagination
from maguru.infrastructure.db.models import (
    ENROLLMENT_UNIQUE_CONSTRAINT,
    Course,
    CourseStatus,
    Enrollment,
)

if TYPE_CHECKING:
    from sqlalchemy import Select

logger = structlog.get_logger()

ALREADY_ENROLLED = "User is already enrolled in this course"
COURSE_NOT_FOUND = "Course not found"
COURSE_NOT_PUBLISHED = "Course is not published"

# SQLSTATE classes reported by PostgreSQL
UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"


@dataclass(slots=True)
class EnrollmentStatus:
    is_enrolled: bool
    enrollment_date: datetime | None = None


@dataclass(slots=True)
class EnrollmentPage:
    enrollments: list[Enrollment]
    pagination: Pagination


def _sqlstate(exc: IntegrityError) -> str | None:
    return getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)


def _constraint_name(exc: IntegrityError) -> str | None:
    # The asyncpg adapter chains the native error, which carries the name.
    native = getattr(exc.orig, "__cause__", None)
    return getattr(exc.orig, "constraint_name", None) or getattr(native, "constraint_name", None)


def is_unique_violation(exc: IntegrityError) -> bool:
    sqlstate = _sqlstate(exc)
    if sqlstate is not None:
        return sqlstate == UNIQUE_VIOLATION and _constraint_name(exc) in (
            None,
            ENROLLMENT_UNIQUE_CONSTRAINT,
        )
    error_name = getattr(exc.orig, "sqlite_errorname", None)
    if error_name is not None:
        return error_name == "SQLITE_CONSTRAINT_UNIQUE"
    message = str(exc.orig).lower()
    return ENROLLMENT_UNIQUE_CONSTRAINT in message or "unique constraint" in message


def is_foreign_key_violation(exc: IntegrityError) -> bool:
    sqlstate = _sqlstate(exc)
    if sqlstate is not None:
        return sqlstate == FOREIGN_KEY_VIOLATION
    error_name = getattr(exc.orig, "sqlite_errorname", None)
    if error_name is not None:
        return error_name == "SQLITE_CONSTRAINT_FOREIGNKEY"
    return "foreign key" in str(exc.orig).lower()


class EnrollmentService:
    """Enrollment lifecycle: ``absent -> enrolled``, and nothing after.

    Duplicate enrollments are not pre-checked. The insert is attempted and
    the ``(user_id, course_id)`` uniqueness violation is reported as
    ``already_enrolled``, which also covers two racing requests.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_enrollment(self, user_id: str, course_id: str) -> Result[Enrollment]:
        if not course_id or not course_id.strip():
            return validation_error(
                "Invalid course ID provided",
                [FieldError(field="courseId", message="Course ID is required")],
            )

        try:
            course = await self.session.get(Course, course_id)
        except SQLAlchemyError:
            logger.exception("enrollment_course_lookup_failed", course_id=course_id)
            return internal_error()

        if course is None:
            logger.warning("enrollment_course_not_found", user_id=user_id, course_id=course_id)
            return Result.fail(ErrorCode.NOT_FOUND, COURSE_NOT_FOUND)
        if course.status is not CourseStatus.PUBLISHED:
            logger.warning(
                "enrollment_course_not_published",
                user_id=user_id,
                course_id=course_id,
                status=course.status.value,
            )
            return Result.fail(ErrorCode.NOT_PUBLISHED, COURSE_NOT_PUBLISHED)

        enrollment = Enrollment(user_id=user_id, course_id=course_id)
        try:
            self.session.add(enrollment)
            await self.session.flush()
            await self.session.execute(
                update(Course)
                .where(Course.id == course_id)
                .values(students=Course.students + 1)
                .execution_options(synchronize_session=False)
            )
            await self.session.commit()
            await self.session.refresh(course)
        except IntegrityError as exc:
            await self.session.rollback()
            if is_foreign_key_violation(exc):
                logger.warning("enrollment_course_vanished", user_id=user_id, course_id=course_id)
                return Result.fail(ErrorCode.NOT_FOUND, COURSE_NOT_FOUND)
            if is_unique_violation(exc):
                logger.info("enrollment_duplicate", user_id=user_id, course_id=course_id)
                return Result.fail(ErrorCode.ALREADY_ENROLLED, ALREADY_ENROLLED)
            logger.exception("enrollment_integrity_error", user_id=user_id, course_id=course_id)
            return internal_error()
        except SQLAlchemyError:
            await self.session.rollback()
            logger.exception("enrollment_create_failed", user_id=user_id, course_id=course_id)
            return internal_error()

        set_committed_value(enrollment, "course", course)
        logger.info(
            "enrollment_created",
            enrollment_id=enrollment.id,
            user_id=user_id,
            course_id=course_id,
            students=course.students,
        )
        return Result.ok(enrollment)

    async def get_enrollment_status(self, user_id: str, course_id: str) -> Result[EnrollmentStatus]:
        if not user_id or not user_id.strip():
            return validation_error("Invalid user ID")
        if not course_id or not course_id.strip():
            return validation_error("Invalid course ID")

        stmt: Select[tuple[datetime]] = select(Enrollment.enrolled_at).where(
            Enrollment.user_id == user_id,
            Enrollment.course_id == course_id,
        )
        try:
            enrolled_at = await self.session.scalar(stmt)
        except SQLAlchemyError:
            logger.exception("enrollment_status_failed", user_id=user_id, course_id=course_id)
            return internal_error("Database query failed")

        return Result.ok(
            EnrollmentStatus(is_enrolled=enrolled_at is not None, enrollment_date=enrolled_at)
        )

    async def list_enrollments(
        self, user_id: str, page: int = 1, limit: int = 10
    ) -> Result[EnrollmentPage]:
        invalid = check_pagination(page, limit, max_limit=ENROLLMENT_PAGE_LIMIT_MAX)
        if invalid is not None:
            return invalid

        stmt: Select[tuple[Enrollment]] = (
            select(Enrollment)
            .where(Enrollment.user_id == user_id)
            .order_by(Enrollment.enrolled_at.desc(), Enrollment.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        count_stmt = select(func.count(Enrollment.id)).where(Enrollment.user_id == user_id)

        try:
            enrollments = list((await self.session.execute(stmt)).unique().scalars().all())
            total = await self.session.scalar(count_stmt) or 0
        except SQLAlchemyError:
            logger.exception("enrollment_list_failed", user_id=user_id)
            return internal_error("Database query failed")

        return Result.ok(
            EnrollmentPage(
                enrollments=enrollments,
                pagination=Pagination.build(page=page, limit=limit, total=total),
            )
        )
