from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from starlette.concurrency import run_in_threadpool

from maguru.api.deps import get_course_service, get_storage, require_roles
from maguru.api.errors import ApiError, unwrap
from maguru.api.schemas.common import Envelope, PaginationOut
from maguru.api.schemas.courses import CourseListData, CourseOut, CourseStatusUpdate, CourseUpdate
from maguru.core.config import get_settings
from maguru.domain import Identity, Role
from maguru.domain.errors import ErrorCode, FieldError
from maguru.domain.services import CourseService
from maguru.domain.services.courses import check_course_fields
from maguru.infrastructure.storage import (
    StorageError,
    ThumbnailStorage,
    ThumbnailUpload,
    validate_thumbnail,
)

router = APIRouter(prefix="/courses", tags=["Courses"])
logger = structlog.get_logger()

course_managers = require_roles([Role.CREATOR, Role.ADMIN])


@router.get("", response_model=Envelope[CourseListData], response_model_exclude_none=True)
async def list_courses(
    page: int = Query(1),
    limit: int = Query(10),
    creator_id: str | None = Query(None, alias="creatorId"),
    search: str | None = Query(None),
    status_filter: str | None = Query(None, alias="status"),
    category: str | None = Query(None),
    service: CourseService = Depends(get_course_service),  # noqa: B008
) -> Envelope[CourseListData]:
    """List courses, newest first.

    Public. A creator's studio view passes its own ``creatorId``.
    """
    result = unwrap(
        await service.list_courses(
            page,
            limit,
            creator_id=creator_id,
            search=search,
            status=status_filter,
            category=category,
        )
    )
    return Envelope(
        data=CourseListData(
            courses=[CourseOut.model_validate(course) for course in result.courses],
            pagination=PaginationOut.from_domain(result.pagination),
        )
    )


@router.get("/{course_id}", response_model=Envelope[CourseOut], response_model_exclude_none=True)
async def get_course(
    course_id: str,
    service: CourseService = Depends(get_course_service),  # noqa: B008
) -> Envelope[CourseOut]:
    course = unwrap(await service.get_course(course_id))
    return Envelope(data=CourseOut.model_validate(course))


@router.post(
    "",
    response_model=Envelope[CourseOut],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_course(
    title: str | None = Form(None),
    description: str | None = Form(None),
    category: str | None = Form(None),
    course_status: str | None = Form(None, alias="status"),
    thumbnail_url: str | None = Form(None, alias="thumbnailUrl"),
    thumbnail: UploadFile | None = File(None),  # noqa: B008
    identity: Identity = Depends(course_managers),  # noqa: B008
    service: CourseService = Depends(get_course_service),  # noqa: B008
    storage: ThumbnailStorage = Depends(get_storage),  # noqa: B008
) -> Envelope[CourseOut]:
    """Create a course owned by the caller (creator or admin)."""
    fields: dict[str, Any] = {
        "title": title,
        "description": description,
        "category": category,
        "thumbnail": thumbnail_url or None,
    }
    if course_status:
        fields["status"] = course_status

    # Reject bad metadata before anything is uploaded
    unwrap(check_course_fields(fields))

    if thumbnail is not None and thumbnail.filename:
        fields["thumbnail"] = await _store_thumbnail(thumbnail, storage)

    course = unwrap(await service.create_course(fields, identity.user_id))
    return Envelope(data=CourseOut.model_validate(course))


@router.put("/{course_id}", response_model=Envelope[CourseOut], response_model_exclude_none=True)
async def update_course(
    course_id: str,
    payload: CourseUpdate,
    identity: Identity = Depends(course_managers),  # noqa: B008
    service: CourseService = Depends(get_course_service),  # noqa: B008
) -> Envelope[CourseOut]:
    """Update course metadata (owner, or any course for admins)."""
    course = unwrap(
        await service.update_course(
            course_id,
            payload.model_dump(exclude_none=True),
            identity.user_id,
            admin_override=identity.is_admin,
        )
    )
    return Envelope(data=CourseOut.model_validate(course))


@router.delete("/{course_id}", response_model=Envelope[None], response_model_exclude_none=True)
async def delete_course(
    course_id: str,
    identity: Identity = Depends(course_managers),  # noqa: B008
    service: CourseService = Depends(get_course_service),  # noqa: B008
) -> Envelope[None]:
    """Permanently delete a course and its enrollments."""
    unwrap(
        await service.delete_course(course_id, identity.user_id, admin_override=identity.is_admin)
    )
    return Envelope()


@router.patch(
    "/{course_id}/status", response_model=Envelope[CourseOut], response_model_exclude_none=True
)
async def update_course_status(
    course_id: str,
    payload: CourseStatusUpdate,
    identity: Identity = Depends(course_managers),  # noqa: B008
    service: CourseService = Depends(get_course_service),  # noqa: B008
) -> Envelope[CourseOut]:
    """Move a course between DRAFT, PUBLISHED and ARCHIVED."""
    course = unwrap(
        await service.update_course_status(
            course_id,
            payload.status,
            identity.user_id,
            admin_override=identity.is_admin,
        )
    )
    return Envelope(data=CourseOut.model_validate(course))


async def _store_thumbnail(thumbnail: UploadFile, storage: ThumbnailStorage) -> str:
    upload = ThumbnailUpload(
        filename=thumbnail.filename or "thumbnail",
        content_type=thumbnail.content_type or "application/octet-stream",
        content=await thumbnail.read(),
    )
    problem = validate_thumbnail(upload, max_bytes=get_settings().thumbnail_max_bytes)
    if problem:
        raise ApiError(
            status.HTTP_400_BAD_REQUEST,
            problem,
            [FieldError(field="thumbnail", message=problem)],
            code=ErrorCode.UPLOAD,
        )

    try:
        return await run_in_threadpool(storage.upload, upload)
    except StorageError as exc:
        logger.warning("course_thumbnail_upload_failed", filename=upload.filename, error=str(exc))
        raise ApiError(
            status.HTTP_400_BAD_REQUEST, f"Upload failed: {exc}", code=ErrorCode.UPLOAD
        ) from exc
