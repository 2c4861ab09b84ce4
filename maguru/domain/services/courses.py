from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import BaseModel, Field, ValidationError
from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from maguru.core.config import get_settings
from maguru.domain.errors import (
    ErrorCode,
    FieldError,
    Result,
    internal_error,
    validation_error,
)
from maguru.domain.pagination import COURSE_PAGE_LIMIT_MAX, Pagination, check_pagination
from maguru.infrastructure.db.models import Course, CourseStatus

if TYPE_CHECKING:
    from sqlalchemy import Select

logger = structlog.get_logger()

NOT_FOUND_OR_DENIED = "Course not found or access denied"
FILTER_ALL = "all"
LIKE_ESCAPE = "\\"


class CourseFields(BaseModel):
    """Writable course metadata, shared by create and update."""

    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=500)
    category: str = Field(..., min_length=1, max_length=50)
    thumbnail: str | None = Field(default=None, max_length=512)
    status: CourseStatus | None = None


@dataclass(slots=True)
class CoursePage:
    courses: list[Course]
    pagination: Pagination


def field_errors(exc: ValidationError) -> list[FieldError]:
    """Flatten a pydantic error into ``field``/``message`` pairs."""
    return [
        FieldError(
            field=".".join(str(part) for part in error["loc"]) or "body",
            message=error["msg"],
        )
        for error in exc.errors()
    ]


def check_course_fields(fields: Mapping[str, Any]) -> Result[CourseFields]:
    """Validate course metadata; unset (``None``) values count as missing."""
    present = {key: value for key, value in fields.items() if value is not None}
    try:
        return Result.ok(CourseFields.model_validate(present))
    except ValidationError as exc:
        return validation_error("Validation failed", field_errors(exc))


def contains_pattern(term: str) -> str:
    """Substring ``LIKE`` pattern that matches ``%`` and ``_`` in ``term`` literally."""
    escaped = (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def parse_status(value: str | CourseStatus) -> CourseStatus | None:
    if isinstance(value, CourseStatus):
        return value
    try:
        return CourseStatus(value)
    except ValueError:
        return None


class CourseService:
    """Course catalogue reads and creator-owned course mutations.

    All mutations go through :meth:`_get_owned_course`, so ownership is
    enforced in one place. Admin callers pass ``admin_override=True``; the
    course must still exist.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_courses(
        self,
        page: int = 1,
        limit: int = 10,
        *,
        creator_id: str | None = None,
        search: str | None = None,
        status: str | None = None,
        category: str | None = None,
    ) -> Result[CoursePage]:
        invalid = check_pagination(page, limit, max_limit=COURSE_PAGE_LIMIT_MAX)
        if invalid is not None:
            return invalid

        conditions: list[Any] = []
        if creator_id:
            conditions.append(Course.creator_id == creator_id)
        if status and status != FILTER_ALL:
            parsed = parse_status(status)
            if parsed is None:
                return validation_error(
                    "Invalid status filter",
                    [FieldError(field="status", message=f"Unknown course status '{status}'")],
                )
            conditions.append(Course.status == parsed)
        if category and category != FILTER_ALL:
            conditions.append(Course.category == category)
        if search:
            pattern = contains_pattern(search.strip())
            conditions.append(
                or_(
                    Course.title.ilike(pattern, escape=LIKE_ESCAPE),
                    Course.description.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )

        stmt: Select[tuple[Course]] = (
            select(Course)
            .where(*conditions)
            .order_by(Course.created_at.desc(), Course.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        count_stmt = select(func.count(Course.id)).where(*conditions)

        try:
            courses = list((await self.session.execute(stmt)).scalars().all())
            total = await self.session.scalar(count_stmt) or 0
        except SQLAlchemyError:
            logger.exception("course_list_failed", page=page, limit=limit)
            return internal_error("Failed to fetch courses")

        return Result.ok(
            CoursePage(
                courses=courses,
                pagination=Pagination.build(page=page, limit=limit, total=total),
            )
        )

    async def get_course(self, course_id: str) -> Result[Course]:
        try:
            course = await self.session.get(Course, course_id)
        except SQLAlchemyError:
            logger.exception("course_fetch_failed", course_id=course_id)
            return internal_error("Failed to fetch course")

        if course is None:
            return Result.fail(ErrorCode.NOT_FOUND, "Course not found")
        return Result.ok(course)

    async def create_course(self, fields: Mapping[str, Any], creator_id: str) -> Result[Course]:
        checked = check_course_fields(fields)
        if not checked.success:
            return checked
        data = checked.unwrap()

        course = Course(
            title=data.title,
            description=data.description,
            category=data.category,
            thumbnail=data.thumbnail or get_settings().default_course_thumbnail_url,
            status=data.status or CourseStatus.DRAFT,
            students=0,
            lessons=0,
            duration="0 jam",
            rating=0.0,
            creator_id=creator_id,
        )
        try:
            self.session.add(course)
            await self.session.commit()
            await self.session.refresh(course)
        except SQLAlchemyError:
            await self.session.rollback()
            logger.exception("course_create_failed", creator_id=creator_id)
            return internal_error("Failed to create course")

        logger.info(
            "course_created",
            course_id=course.id,
            creator_id=creator_id,
            status=course.status.value,
        )
        return Result.ok(course)

    async def update_course(
        self,
        course_id: str,
        fields: Mapping[str, Any],
        requesting_creator_id: str,
        *,
        admin_override: bool = False,
    ) -> Result[Course]:
        checked = check_course_fields(fields)
        if not checked.success:
            return checked
        data = checked.unwrap()

        found = await self._get_owned_course(
            course_id, requesting_creator_id, admin_override=admin_override
        )
        if not found.success:
            return found
        course = found.unwrap()

        course.title = data.title
        course.description = data.description
        course.category = data.category
        if data.thumbnail:
            course.thumbnail = data.thumbnail
        if data.status is not None:
            course.status = data.status

        committed = await self._commit(course, event="course_updated")
        if not committed.success:
            return committed
        logger.info(
            "course_updated",
            course_id=course.id,
            requested_by=requesting_creator_id,
            admin_override=admin_override,
        )
        return Result.ok(course)

    async def delete_course(
        self,
        course_id: str,
        requesting_creator_id: str,
        *,
        admin_override: bool = False,
    ) -> Result[None]:
        found = await self._get_owned_course(
            course_id, requesting_creator_id, admin_override=admin_override
        )
        if not found.success:
            return Result.fail(found.code, found.message or NOT_FOUND_OR_DENIED)  # type: ignore[arg-type]

        try:
            await self.session.delete(found.unwrap())
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            logger.exception("course_delete_failed", course_id=course_id)
            return internal_error("Failed to delete course")

        logger.info(
            "course_deleted",
            course_id=course_id,
            requested_by=requesting_creator_id,
            admin_override=admin_override,
        )
        return Result.ok(None)

    async def update_course_status(
        self,
        course_id: str,
        new_status: str | CourseStatus,
        requesting_creator_id: str,
        *,
        admin_override: bool = False,
    ) -> Result[Course]:
        """Move a course to ``new_status``.

        Any status may follow any other; there is no transition table.
        """
        status = parse_status(new_status)
        if status is None:
            allowed = ", ".join(s.value for s in CourseStatus)
            return validation_error(
                "Validation failed",
                [FieldError(field="status", message=f"Status must be one of: {allowed}")],
            )

        found = await self._get_owned_course(
            course_id, requesting_creator_id, admin_override=admin_override
        )
        if not found.success:
            return found
        course = found.unwrap()

        previous = course.status
        course.status = status
        committed = await self._commit(course, event="course_status_update")
        if not committed.success:
            return committed

        logger.info(
            "course_status_updated",
            course_id=course.id,
            from_status=previous.value,
            to_status=status.value,
            requested_by=requesting_creator_id,
            admin_override=admin_override,
        )
        return Result.ok(course)

    async def _get_owned_course(
        self,
        course_id: str,
        requesting_creator_id: str,
        *,
        admin_override: bool,
    ) -> Result[Course]:
        stmt: Select[tuple[Course]] = select(Course).where(Course.id == course_id)
        if not admin_override:
            stmt = stmt.where(Course.creator_id == requesting_creator_id)

        try:
            course = await self.session.scalar(stmt)
        except SQLAlchemyError:
            logger.exception("course_fetch_failed", course_id=course_id)
            return internal_error("Failed to fetch course")

        if course is None:
            logger.info(
                "course_not_found_or_denied",
                course_id=course_id,
                requested_by=requesting_creator_id,
            )
            return Result.fail(ErrorCode.NOT_FOUND_OR_DENIED, NOT_FOUND_OR_DENIED)
        return Result.ok(course)

    async def _commit(self, course: Course, *, event: str) -> Result[Course]:
        try:
            await self.session.commit()
            await self.session.refresh(course)
        except SQLAlchemyError:
            await self.session.rollback()
            logger.exception(f"{event}_failed", course_id=course.id)
            return internal_error("Failed to update course")
        return Result.ok(course)
