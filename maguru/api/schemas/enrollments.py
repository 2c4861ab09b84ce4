from __future__ import annotations

from datetime import datetime

from pydantic import Field

from maguru.api.schemas.common import APIModel, PaginationOut
from maguru.api.schemas.courses import CourseOut


class EnrollmentCreate(APIModel):
    course_id: str = Field(..., max_length=64)


class EnrollmentOut(APIModel):
    id: str
    user_id: str
    course_id: str
    enrolled_at: datetime
    course: CourseOut | None = None


class EnrollmentListData(APIModel):
    enrollments: list[EnrollmentOut]
    pagination: PaginationOut


class EnrollmentStatusResponse(APIModel):
    success: bool = True
    is_enrolled: bool
    enrollment_date: datetime | None = None
    error: str | None = None
