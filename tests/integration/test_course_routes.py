"""Integration tests for the /courses endpoints."""

from __future__ import annotations

import pytest
from fastapi import status
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from maguru.domain import Role
from maguru.infrastructure.db.models import Course, CourseStatus, Enrollment
from tests.utils import FakeThumbnailStorage, auth_headers, create_course

COURSE_FORM = {
    "title": "Intro to FastAPI",
    "description": "Build async APIs with type hints.",
    "category": "programming",
}
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class TestListCourses:
    async def test_lists_newest_first_with_pagination(
        self,
        async_client: AsyncClient,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        await create_course(session_factory, title="Older")
        await create_course(session_factory, title="Newer")

        response = await async_client.get("/courses", params={"page": 1, "limit": 1})

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["success"] is True
        assert [c["title"] for c in body["data"]["courses"]] == ["Newer"]
        assert body["data"]["pagination"] == {
            "page": 1,
            "limit": 1,
            "total": 2,
            "totalPages": 2,
        }
        assert "error" not in body

    async def test_course_fields_are_camel_case(
        self,
        async_client: AsyncClient,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        await create_course(session_factory, creator_id="creator-9")

        course = (await async_client.get("/courses")).json()["data"]["courses"][0]

        assert course["creatorId"] == "creator-9"
        assert {"createdAt", "updatedAt", "students", "lessons", "duration", "rating"} <= set(
            course
        )

    @pytest.mark.parametrize(
        "params",
        [{"page": 0}, {"limit": 51}, {"limit": 0}, {"page": 10000000000000000000, "limit": 10}],
    )
    async def test_invalid_pagination_is_rejected(
        self, async_client: AsyncClient, params: dict[str, int]
    ) -> None:
        response = await async_client.get("/courses", params=params)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        body = response.json()
        assert body["success"] is False
        assert body["error"].startswith("Invalid pagination parameters")
        assert "data" not in body

    async def test_non_integer_page_is_a_validation_error(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/courses", params={"page": "two"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        body = response.json()
        assert body["error"] == "Validation failed"
        assert body["details"][0]["field"] == "page"

    async def test_get_missing_course_is_404(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/courses/ghost")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json() == {"success": False, "error": "Course not found"}


class TestCreateCourse:
    async def test_requires_authentication(self, async_client: AsyncClient) -> None:
        response = await async_client.post("/courses", data=COURSE_FORM)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json() == {"success": False, "error": "Authentication required"}

    async def test_learners_are_forbidden(self, async_client: AsyncClient) -> None:
        response = await async_client.post(
            "/courses", data=COURSE_FORM, headers=auth_headers("u1", Role.USER)
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["error"] == "Access denied. Required roles: creator, admin"

    async def test_garbage_token_is_rejected(self, async_client: AsyncClient) -> None:
        response = await async_client.post(
            "/courses", data=COURSE_FORM, headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"] == "Invalid authentication token"

    async def test_creator_creates_draft_with_defaults(self, async_client: AsyncClient) -> None:
        response = await async_client.post(
            "/courses", data=COURSE_FORM, headers=auth_headers("creator-1", Role.CREATOR)
        )

        assert response.status_code == status.HTTP_201_CREATED
        course = response.json()["data"]
        assert course["status"] == "DRAFT"
        assert course["creatorId"] == "creator-1"
        assert course["students"] == 0
        assert course["duration"] == "0 jam"

    async def test_uploaded_thumbnail_is_stored(
        self, async_client: AsyncClient, storage: FakeThumbnailStorage
    ) -> None:
        response = await async_client.post(
            "/courses",
            data={**COURSE_FORM, "status": "PUBLISHED"},
            files={"thumbnail": ("cover.png", PNG_BYTES, "image/png")},
            headers=auth_headers("creator-1", Role.CREATOR),
        )

        assert response.status_code == status.HTTP_201_CREATED
        course = response.json()["data"]
        assert course["status"] == "PUBLISHED"
        assert course["thumbnail"] == "https://cdn.example.com/thumbnails/1-cover.png"
        assert [u.content_type for u in storage.uploads] == ["image/png"]

    async def test_unsupported_thumbnail_type_is_rejected(
        self, async_client: AsyncClient, storage: FakeThumbnailStorage
    ) -> None:
        response = await async_client.post(
            "/courses",
            data=COURSE_FORM,
            files={"thumbnail": ("cover.gif", b"GIF89a", "image/gif")},
            headers=auth_headers("creator-1", Role.CREATOR),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "Unsupported thumbnail type" in response.json()["error"]
        assert storage.uploads == []

    async def test_storage_failure_is_an_upload_error(
        self, async_client: AsyncClient, storage: FakeThumbnailStorage
    ) -> None:
        storage.fail_with = "bucket unavailable"

        response = await async_client.post(
            "/courses",
            data=COURSE_FORM,
            files={"thumbnail": ("cover.png", PNG_BYTES, "image/png")},
            headers=auth_headers("creator-1", Role.CREATOR),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Upload failed: bucket unavailable"

    async def test_invalid_metadata_lists_fields_and_skips_upload(
        self, async_client: AsyncClient, storage: FakeThumbnailStorage
    ) -> None:
        response = await async_client.post(
            "/courses",
            data={"title": "x" * 101, "description": "ok"},
            files={"thumbnail": ("cover.png", PNG_BYTES, "image/png")},
            headers=auth_headers("creator-1", Role.CREATOR),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        body = response.json()
        assert body["error"] == "Validation failed"
        assert {d["field"] for d in body["details"]} == {"title", "category"}
        assert storage.uploads == []


class TestCourseStatus:
    async def test_owner_publishes_course(
        self,
        async_client: AsyncClient,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        course = await create_course(session_factory, id="c1", status=CourseStatus.DRAFT)

        response = await async_client.patch(
            f"/courses/{course.id}/status",
            json={"status": "PUBLISHED"},
            headers=auth_headers("creator-1", Role.CREATOR),
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["status"] == "PUBLISHED"

    async def test_other_creator_gets_not_found_or_denied(
        self,
        async_client: AsyncClient,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        await create_course(session_factory, id="c1", status=CourseStatus.DRAFT)

        foreign = await async_client.patch(
            "/courses/c1/status",
            json={"status": "PUBLISHED"},
            headers=auth_headers("creator-2", Role.CREATOR),
        )
        missing = await async_client.patch(
            "/courses/ghost/status",
            json={"status": "PUBLISHED"},
            headers=auth_headers("creator-2", Role.CREATOR),
        )

        assert foreign.status_code == missing.status_code == status.HTTP_404_NOT_FOUND
        assert foreign.json() == missing.json()
        assert foreign.json()["error"] == "Course not found or access denied"

    async def test_admin_may_change_any_course(
        self,
        async_client: AsyncClient,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        await create_course(session_factory, id="c1", status=CourseStatus.DRAFT)

        response = await async_client.patch(
            "/courses/c1/status",
            json={"status": "ARCHIVED"},
            headers=auth_headers("admin-1", Role.ADMIN),
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["status"] == "ARCHIVED"

    async def test_unknown_status_is_rejected(
        self,
        async_client: AsyncClient,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        await create_course(session_factory, id="c1")

        response = await async_client.patch(
            "/courses/c1/status",
            json={"status": "LIVE"},
            headers=auth_headers("creator-1", Role.CREATOR),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["details"][0]["field"] == "status"


class TestUpdateAndDeleteCourse:
    async def test_owner_updates_metadata(
        self,
        async_client: AsyncClient,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        await create_course(session_factory, id="c1")

        response = await async_client.put(
            "/courses/c1",
            json={**COURSE_FORM, "title": "FastAPI in Depth"},
            headers=auth_headers("creator-1", Role.CREATOR),
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["title"] == "FastAPI in Depth"

    async def test_delete_returns_bare_success(
        self,
        async_client: AsyncClient,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        await create_course(session_factory, id="c1")
        enrolled = await async_client.post(
            "/enrollments", json={"courseId": "c1"}, headers=auth_headers("u1", Role.USER)
        )
        assert enrolled.status_code == status.HTTP_201_CREATED

        response = await async_client.delete(
            "/courses/c1", headers=auth_headers("creator-1", Role.CREATOR)
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"success": True}
        async with session_factory() as session:
            assert await session.get(Course, "c1") is None
            remaining = await session.scalar(
                select(func.count(Enrollment.id)).where(Enrollment.course_id == "c1")
            )
            assert remaining == 0
