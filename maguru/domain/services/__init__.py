"""Domain services."""

from maguru.domain.services.courses import CoursePage, CourseService
from maguru.domain.services.enrollments import (
    EnrollmentPage,
    EnrollmentService,
    EnrollmentStatus,
)

__all__ = [
    "CoursePage",
    "CourseService",
    "EnrollmentPage",
    "EnrollmentService",
    "EnrollmentStatus",
]
