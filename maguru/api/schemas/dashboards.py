from __future__ import annotations

from maguru.api.schemas.common import APIModel
from maguru.domain.models import Role


class AdminDashboard(APIModel):
    total_courses: int
    courses_by_status: dict[str, int]
    total_enrollments: int


class CreatorDashboard(APIModel):
    creator_id: str
    total_courses: int
    courses_by_status: dict[str, int]
    total_students: int


class UserDashboard(APIModel):
    user_id: str
    role: Role | None
    total_enrollments: int


class AuthSurface(APIModel):
    message: str
    redirect: str | None = None
    from_path: str | None = None
    reason: str | None = None
