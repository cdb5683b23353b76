from __future__ import annotations

from typing import Sequence

from ..db import get_store
from .store import Row

EnrollmentRow = Row

PENDING = "pending"
ACTIVE = "active"


async def get_enrollment(student_id: str, course_id: str) -> EnrollmentRow | None:
    return await get_store().find_one(
        "enrollments", student_id=student_id, course_id=course_id
    )


async def is_enrolled(student_id: str, course_id: str) -> bool:
    row = await get_enrollment(student_id, course_id)
    return bool(row) and row.get("status") == ACTIVE


async def reserve_enrollment(student_id: str, course_id: str) -> EnrollmentRow:
    """Claim the (student, course) pair; raises ``DuplicateRecord`` if taken."""
    return await get_store().insert(
        "enrollments",
        {
            "student_id": student_id,
            "course_id": course_id,
            "status": PENDING,
            "completed_lessons": [],
            "completed": False,
        },
    )


async def activate_enrollment(enrollment_id: str) -> EnrollmentRow | None:
    return await get_store().update("enrollments", enrollment_id, {"status": ACTIVE})


async def release_enrollment(enrollment_id: str) -> bool:
    return await get_store().delete("enrollments", enrollment_id)


async def list_student_enrollments(student_id: str) -> Sequence[EnrollmentRow]:
    return await get_store().find(
        "enrollments",
        {"student_id": student_id, "status": ACTIVE},
        order_by=("-created_at",),
    )


__all__ = [
    "ACTIVE",
    "PENDING",
    "EnrollmentRow",
    "activate_enrollment",
    "get_enrollment",
    "is_enrolled",
    "list_student_enrollments",
    "release_enrollment",
    "reserve_enrollment",
]
