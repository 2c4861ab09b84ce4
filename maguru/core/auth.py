from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
import structlog

from maguru.core.config import get_settings
from maguru.domain.models import DEFAULT_ROLE, Identity, Role

logger = structlog.get_logger()


class TokenError(Exception):
    """Raised when a session token cannot be decoded or validated."""


def create_access_token(
    subject: str,
    *,
    role: Role | str | None = DEFAULT_ROLE,
    email: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Mint a signed session token shaped like the identity provider's.

    Used by local tooling and tests; production tokens come from the provider.
    """
    settings = get_settings()

    now = datetime.now(UTC)
    ttl = expires_delta or timedelta(seconds=settings.access_token_ttl_seconds)
    payload: dict[str, Any] = {
        "sub": subject,
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
        "iss": settings.jwt_issuer or settings.app_name,
    }
    if role is not None:
        payload[settings.jwt_role_claim] = role.value if isinstance(role, Role) else role
    if email:
        payload["email"] = email

    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and validate a session token."""
    settings = get_settings()

    options: dict[str, Any] = {"require": ["sub", "exp"]}
    kwargs: dict[str, Any] = {}
    if settings.jwt_issuer:
        kwargs["issuer"] = settings.jwt_issuer
    else:
        options["verify_iss"] = False

    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options=options,
            **kwargs,
        )
    except jwt.PyJWTError as exc:
        raise TokenError("Invalid token") from exc


def identity_from_claims(claims: dict[str, Any]) -> Identity:
    """Build an :class:`Identity` from verified token claims."""
    settings = get_settings()

    user_id = claims.get("sub")
    if not user_id:
        raise TokenError("Token missing subject")

    raw_role = claims.get(settings.jwt_role_claim)
    role: Role | None
    if raw_role is None:
        role = DEFAULT_ROLE
    elif isinstance(raw_role, str) and Role.contains(raw_role):
        role = Role(raw_role)
    else:
        logger.warning("session_unknown_role", user_id=user_id, role=str(raw_role))
        role = None

    return Identity(user_id=str(user_id), role=role, email=claims.get("email", "") or "")


def resolve_identity(token: str | None) -> Identity | None:
    """Resolve a raw session token to an identity, or ``None`` if absent."""
    if not token:
        return None
    return identity_from_claims(decode_access_token(token))
