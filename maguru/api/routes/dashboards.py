from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from maguru.api.deps import get_db_session, require_roles
from maguru.api.schemas.common import Envelope
from maguru.api.schemas.dashboards import (
    AdminDashboard,
    AuthSurface,
    CreatorDashboard,
    UserDashboard,
)
from maguru.domain import ALL_ROLES, Identity, Role
from maguru.infrastructure.db.models import Course, CourseStatus, Enrollment

router = APIRouter(tags=["Dashboards"])


async def _courses_by_status(session: AsyncSession, creator_id: str | None = None) -> dict[str, int]:
    stmt = select(Course.status, func.count(Course.id)).group_by(Course.status)
    if creator_id is not None:
        stmt = stmt.where(Course.creator_id == creator_id)
    counts = {status.value: 0 for status in CourseStatus}
    for course_status, count in (await session.execute(stmt)).all():
        counts[CourseStatus(course_status).value] = count
    return counts


@router.get("/admin/dashboard", response_model=Envelope[AdminDashboard])
async def admin_dashboard(
    _: Identity = Depends(require_roles([Role.ADMIN])),  # noqa: B008
    session: AsyncSession = Depends(get_db_session),  # noqa: B008
) -> Envelope[AdminDashboard]:
    """Platform-wide course and enrollment totals."""
    by_status = await _courses_by_status(session)
    total_enrollments = await session.scalar(select(func.count(Enrollment.id))) or 0
    return Envelope(
        data=AdminDashboard(
            total_courses=sum(by_status.values()),
            courses_by_status=by_status,
            total_enrollments=total_enrollments,
        )
    )


@router.get("/creator/dashboard", response_model=Envelope[CreatorDashboard])
async def creator_dashboard(
    identity: Identity = Depends(require_roles([Role.CREATOR, Role.ADMIN])),  # noqa: B008
    session: AsyncSession = Depends(get_db_session),  # noqa: B008
) -> Envelope[CreatorDashboard]:
    """Counts for the courses the caller owns."""
    by_status = await _courses_by_status(session, identity.user_id)
    students_stmt = select(func.coalesce(func.sum(Course.students), 0)).where(
        Course.creator_id == identity.user_id
    )
    total_students = await session.scalar(students_stmt) or 0
    return Envelope(
        data=CreatorDashboard(
            creator_id=identity.user_id,
            total_courses=sum(by_status.values()),
            courses_by_status=by_status,
            total_students=total_students,
        )
    )


@router.get("/dashboard", response_model=Envelope[UserDashboard])
async def user_dashboard(
    identity: Identity = Depends(require_roles(sorted(ALL_ROLES))),  # noqa: B008
    session: AsyncSession = Depends(get_db_session),  # noqa: B008
) -> Envelope[UserDashboard]:
    total = await session.scalar(
        select(func.count(Enrollment.id)).where(Enrollment.user_id == identity.user_id)
    )
    return Envelope(
        data=UserDashboard(
            user_id=identity.user_id,
            role=identity.role,
            total_enrollments=total or 0,
        )
    )


@router.get("/sign-in", response_model=Envelope[AuthSurface], response_model_exclude_none=True)
async def sign_in_surface(
    redirect: str | None = Query(None),
    error: str | None = Query(None),
) -> Envelope[AuthSurface]:
    """Where unauthenticated visitors of protected areas are sent."""
    return Envelope(
        data=AuthSurface(message="Sign in to continue", redirect=redirect, reason=error)
    )


@router.get(
    "/unauthorized", response_model=Envelope[AuthSurface], response_model_exclude_none=True
)
async def unauthorized_surface(
    from_path: str | None = Query(None, alias="from"),
) -> Envelope[AuthSurface]:
    """Where signed-in visitors without the required role are sent."""
    return Envelope(
        data=AuthSurface(
            message="You do not have permission to view this page",
            from_path=from_path,
            reason="forbidden",
        )
    )
