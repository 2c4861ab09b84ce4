from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from maguru.api.deps import issue_smoke_token
from maguru.domain import Role
from maguru.infrastructure.db.models import Course, CourseStatus
from maguru.infrastructure.storage import StorageError, ThumbnailUpload


def auth_headers(user_id: str = "u1", role: Role = Role.USER) -> dict[str, str]:
    token = issue_smoke_token(user_id, role=role, email=f"{user_id}@example.com")
    return {"Authorization": f"Bearer {token}"}


async def create_course(
    session_factory: async_sessionmaker[AsyncSession], **overrides: Any
) -> Course:
    """Insert a course directly, bypassing the service."""
    fields: dict[str, Any] = {
        "title": "Intro to Python",
        "description": "Variables, loops and functions.",
        "thumbnail": "https://cdn.example.com/python.png",
        "category": "programming",
        "status": CourseStatus.PUBLISHED,
        "creator_id": "creator-1",
    }
    fields.update(overrides)
    async with session_factory() as session:
        course = Course(**fields)
        session.add(course)
        await session.commit()
        await session.refresh(course)
        return course


class FakeThumbnailStorage:
    def __init__(self, *, fail_with: str | None = None) -> None:
        self.uploads: list[ThumbnailUpload] = []
        self.fail_with = fail_with

    def upload(self, upload: ThumbnailUpload) -> str:
        if self.fail_with:
            raise StorageError(self.fail_with)
        self.uploads.append(upload)
        return f"https://cdn.example.com/thumbnails/{len(self.uploads)}-{upload.filename}"
