"""Role-based authorization decisions.

A single pure function decides whether an identity may reach a resource
gated by a set of roles. The same decision backs the edge check on page
paths and the per-handler dependency on data endpoints.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass

from maguru.domain.models import Identity, Role


class DenyReason(str, enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"


@dataclass(frozen=True, slots=True)
class Decision:
    allowed: bool
    reason: DenyReason | None = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(allowed=True)


def deny(reason: DenyReason) -> Decision:
    return Decision(allowed=False, reason=reason)


def role_set(roles: Iterable[Role | str]) -> frozenset[Role]:
    """Normalise roles into a non-empty frozenset of :class:`Role`."""
    normalised = frozenset(Role(role) for role in roles)
    if not normalised:
        raise ValueError("At least one role is required")
    return normalised


def authorize(required_roles: frozenset[Role], identity: Identity | None) -> Decision:
    """Allow ``identity`` if its role is one of ``required_roles``."""
    if not required_roles:
        raise ValueError("At least one role is required")
    if identity is None:
        return deny(DenyReason.UNAUTHENTICATED)
    if identity.role is None or identity.role not in required_roles:
        return deny(DenyReason.FORBIDDEN)
    return ALLOW
