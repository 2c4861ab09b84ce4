from __future__ import annotations

import math
from dataclasses import dataclass

from maguru.domain.errors import FieldError, Result, validation_error

COURSE_PAGE_LIMIT_MAX = 50
ENROLLMENT_PAGE_LIMIT_MAX = 100
# Row offsets are bound as signed 64-bit integers by every supported driver.
MAX_ROW_OFFSET = 2**63 - 1


@dataclass(frozen=True, slots=True)
class Pagination:
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def build(cls, *, page: int, limit: int, total: int) -> Pagination:
        return cls(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit))


def check_pagination(page: int, limit: int, *, max_limit: int) -> Result | None:
    """Return a validation failure for out-of-range values, ``None`` if fine."""
    details: list[FieldError] = []
    if page < 1:
        details.append(FieldError(field="page", message="Page must be >= 1"))
    if limit < 1 or limit > max_limit:
        details.append(
            FieldError(field="limit", message=f"Limit must be between 1-{max_limit}")
        )
    elif page > 1 and (page - 1) * limit > MAX_ROW_OFFSET:
        details.append(FieldError(field="page", message="Page is too large"))
    if not details:
        return None
    return validation_error(
        "Invalid pagination parameters. Page must be >= 1, "
        f"limit must be between 1-{max_limit}",
        details,
    )
