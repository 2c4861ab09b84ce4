from __future__ import annotations

from datetime import datetime

from pydantic import Field

from maguru.api.schemas.common import APIModel, PaginationOut
from maguru.infrastructure.db.models import CourseStatus


class CourseOut(APIModel):
    id: str
    title: str
    description: str
    thumbnail: str
    category: str
    status: CourseStatus
    students: int
    lessons: int
    duration: str
    rating: float
    creator_id: str
    created_at: datetime
    updated_at: datetime


class CourseListData(APIModel):
    courses: list[CourseOut]
    pagination: PaginationOut


class CourseUpdate(APIModel):
    # Validated by the course service so errors carry per-field messages.
    title: str | None = None
    description: str | None = None
    category: str | None = None
    thumbnail: str | None = None
    status: str | None = None


class CourseStatusUpdate(APIModel):
    status: str = Field(..., description="DRAFT, PUBLISHED or ARCHIVED")
