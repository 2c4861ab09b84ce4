from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from maguru.api.deps import get_enrollment_service, require_roles
from maguru.api.errors import unwrap
from maguru.api.schemas.common import Envelope, PaginationOut
from maguru.api.schemas.enrollments import (
    EnrollmentCreate,
    EnrollmentListData,
    EnrollmentOut,
    EnrollmentStatusResponse,
)
from maguru.domain import Identity, Role
from maguru.domain.services import EnrollmentService

router = APIRouter(tags=["Enrollments"])

learners = require_roles([Role.USER])


@router.post(
    "/enrollments",
    response_model=Envelope[EnrollmentOut],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_enrollment(
    payload: EnrollmentCreate,
    identity: Identity = Depends(learners),  # noqa: B008
    service: EnrollmentService = Depends(get_enrollment_service),  # noqa: B008
) -> Envelope[EnrollmentOut]:
    """Enroll the caller in a published course."""
    enrollment = unwrap(await service.create_enrollment(identity.user_id, payload.course_id))
    return Envelope(data=EnrollmentOut.model_validate(enrollment))


@router.get(
    "/enrollments",
    response_model=Envelope[EnrollmentListData],
    response_model_exclude_none=True,
)
async def list_enrollments(
    page: int = Query(1),
    limit: int = Query(10),
    identity: Identity = Depends(learners),  # noqa: B008
    service: EnrollmentService = Depends(get_enrollment_service),  # noqa: B008
) -> Envelope[EnrollmentListData]:
    """The caller's enrollments, most recent first, each with its course."""
    result = unwrap(await service.list_enrollments(identity.user_id, page, limit))
    return Envelope(
        data=EnrollmentListData(
            enrollments=[EnrollmentOut.model_validate(e) for e in result.enrollments],
            pagination=PaginationOut.from_domain(result.pagination),
        )
    )


@router.get(
    "/courses/{course_id}/enrollment-status",
    response_model=EnrollmentStatusResponse,
    response_model_exclude_none=True,
)
async def get_enrollment_status(
    course_id: str,
    identity: Identity = Depends(learners),  # noqa: B008
    service: EnrollmentService = Depends(get_enrollment_service),  # noqa: B008
) -> EnrollmentStatusResponse:
    result = unwrap(await service.get_enrollment_status(identity.user_id, course_id))
    return EnrollmentStatusResponse(
        is_enrolled=result.is_enrolled,
        enrollment_date=result.enrollment_date,
    )
