from __future__ import annotations

import enum
from dataclasses import dataclass


class Role(str, enum.Enum):
    ADMIN = "admin"
    CREATOR = "creator"
    USER = "user"

    @classmethod
    def contains(cls, value: str) -> bool:
        return value in {role.value for role in cls}


DEFAULT_ROLE = Role.USER
ALL_ROLES: frozenset[Role] = frozenset(Role)


@dataclass(frozen=True, slots=True)
class Identity:
    """An authenticated actor as asserted by the identity provider.

    The application never creates or mutates identities; one is resolved per
    request and handed explicitly to whatever needs it. ``role`` is ``None``
    when the provider sent a role value this service does not recognise.
    """

    user_id: str
    role: Role | None = DEFAULT_ROLE
    email: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN
