from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Sequence

from fastapi import Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from maguru.api.errors import ApiError
from maguru.core.auth import TokenError, create_access_token, resolve_identity
from maguru.core.authorization import DenyReason, authorize, role_set
from maguru.core.config import get_settings
from maguru.domain import Identity, Role
from maguru.domain.errors import ErrorCode
from maguru.domain.services import CourseService, EnrollmentService
from maguru.infrastructure.db.session import get_session
from maguru.infrastructure.storage import ThumbnailStorage, get_thumbnail_storage

bearer_scheme = HTTPBearer(auto_error=False)


async def get_identity(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),  # noqa: B008
) -> Identity | None:
    """Resolve the caller from a bearer token or the session cookie.

    ``None`` when neither was sent.
    """
    if credentials is not None:
        token = credentials.credentials
    else:
        token = request.cookies.get(get_settings().session_cookie_name)
    if not token:
        return None

    try:
        return resolve_identity(token)
    except TokenError as exc:
        raise _unauthorized("Invalid authentication token") from exc


def require_roles(required_roles: Sequence[Role | str]) -> Callable[..., Identity]:
    """Dependency factory enforcing that the caller holds one of the required roles."""
    required = role_set(required_roles)
    listed = ", ".join(Role(role).value for role in required_roles)

    def dependency(identity: Identity | None = Depends(get_identity)) -> Identity:  # noqa: B008
        decision = authorize(required, identity)
        if decision.reason is DenyReason.UNAUTHENTICATED:
            raise _unauthorized("Authentication required")
        if decision.reason is DenyReason.FORBIDDEN:
            raise _forbidden(f"Access denied. Required roles: {listed}")
        return identity  # type: ignore[return-value]

    return dependency


def issue_smoke_token(user_id: str, *, role: Role, email: str | None = None) -> str:
    """Generate a signed token for manual smoke testing."""
    return create_access_token(user_id, role=role, email=email)


async def get_db_session() -> AsyncIterator[AsyncSession]:
    """Provide an async SQLAlchemy session for API handlers."""
    async for session in get_session():
        yield session


def get_course_service(
    session: AsyncSession = Depends(get_db_session),  # noqa: B008
) -> CourseService:
    return CourseService(session)


def get_enrollment_service(
    session: AsyncSession = Depends(get_db_session),  # noqa: B008
) -> EnrollmentService:
    return EnrollmentService(session)


def get_storage() -> ThumbnailStorage:
    return get_thumbnail_storage()


def _unauthorized(detail: str) -> ApiError:
    return ApiError(status.HTTP_401_UNAUTHORIZED, detail, code=ErrorCode.UNAUTHENTICATED)


def _forbidden(detail: str) -> ApiError:
    return ApiError(status.HTTP_403_FORBIDDEN, detail, code=ErrorCode.FORBIDDEN)
