"""Read-only access evaluation for courses, chapters and lessons.

Resolution is fail-closed: a broken link anywhere in the
lesson -> chapter -> course chain yields no access instead of an error.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Mapping

from ..errors import AccessDenied, AuthenticationRequired
from ..metrics import access_checks_total
from ..repositories import courses as courses_repo
from ..repositories import enrollments as enrollments_repo

logger = logging.getLogger(__name__)


class AccessLevel(str, enum.Enum):
    ADMIN = "admin"
    OWNER = "owner"
    ENROLLED = "enrolled"
    NONE = "none"

    @property
    def has_access(self) -> bool:
        return self is not AccessLevel.NONE

    @property
    def is_owner(self) -> bool:
        return self in (AccessLevel.ADMIN, AccessLevel.OWNER)


@dataclass(frozen=True)
class Identity:
    user_id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @classmethod
    def from_user(cls, user: Mapping[str, Any]) -> "Identity":
        return cls(user_id=str(user["id"]), role=str(user.get("role") or "student"))


@dataclass(frozen=True)
class CourseAccess:
    level: AccessLevel
    course_id: str | None = None

    @property
    def has_access(self) -> bool:
        return self.level.has_access

    @property
    def is_owner(self) -> bool:
        return self.level.is_owner

    def payload(self) -> dict[str, Any]:
        return {"hasAccess": self.has_access, "isOwner": self.is_owner}


@dataclass(frozen=True)
class ChapterAccess(CourseAccess):
    chapter_id: str | None = None

    def payload(self) -> dict[str, Any]:
        data = super().payload()
        if self.course_id is not None:
            data["courseId"] = self.course_id
        return data


@dataclass(frozen=True)
class LessonAccess(ChapterAccess):
    lesson_id: str | None = None

    def payload(self) -> dict[str, Any]:
        data = super().payload()
        if self.chapter_id is not None:
            data["chapterId"] = self.chapter_id
        return data


async def _course_level(identity: Identity | None, course_id: str) -> AccessLevel:
    if identity is None:
        return AccessLevel.NONE
    if identity.is_admin:
        return AccessLevel.ADMIN
    course = await courses_repo.get_course(course_id)
    if not course:
        return AccessLevel.NONE
    if str(course.get("tutor_id")) == identity.user_id:
        return AccessLevel.OWNER
    if await enrollments_repo.is_enrolled(identity.user_id, course_id):
        return AccessLevel.ENROLLED
    return AccessLevel.NONE


def _record(target: str, level: AccessLevel) -> None:
    access_checks_total.labels(target=target, level=level.value).inc()


async def evaluate_course_access(identity: Identity | None, course_id: str) -> CourseAccess:
    level = await _course_level(identity, course_id)
    _record("course", level)
    return CourseAccess(level=level, course_id=course_id)


async def evaluate_chapter_access(
    identity: Identity | None, chapter_id: str
) -> ChapterAccess:
    chapter = await courses_repo.get_chapter(chapter_id)
    if not chapter or not chapter.get("course_id"):
        _record("chapter", AccessLevel.NONE)
        return ChapterAccess(level=AccessLevel.NONE)
    course_id = str(chapter["course_id"])
    level = await _course_level(identity, course_id)
    _record("chapter", level)
    return ChapterAccess(level=level, course_id=course_id, chapter_id=str(chapter["id"]))


async def evaluate_lesson_access(identity: Identity | None, lesson_id: str) -> LessonAccess:
    lesson = await courses_repo.get_lesson(lesson_id)
    chapter = None
    if lesson and lesson.get("chapter_id"):
        chapter = await courses_repo.get_chapter(str(lesson["chapter_id"]))
    if not chapter or not chapter.get("course_id"):
        _record("lesson", AccessLevel.NONE)
        return LessonAccess(level=AccessLevel.NONE)
    course_id = str(chapter["course_id"])
    level = await _course_level(identity, course_id)
    _record("lesson", level)
    return LessonAccess(
        level=level,
        course_id=course_id,
        chapter_id=str(chapter["id"]),
        lesson_id=str(lesson["id"]),
    )


def _require(identity: Identity | None, access: CourseAccess, *, owner: bool) -> None:
    if identity is None:
        raise AuthenticationRequired()
    allowed = access.is_owner if owner else access.has_access
    if not allowed:
        logger.info(
            "Access denied",
            extra={"course_id": access.course_id, "user": identity.user_id, "owner": owner},
        )
        raise AccessDenied()


async def require_course_ownership(identity: Identity | None, course_id: str) -> CourseAccess:
    access = await evaluate_course_access(identity, course_id)
    _require(identity, access, owner=True)
    return access


async def require_chapter_ownership(
    identity: Identity | None, chapter_id: str
) -> ChapterAccess:
    access = await evaluate_chapter_access(identity, chapter_id)
    _require(identity, access, owner=True)
    return access


async def require_lesson_ownership(identity: Identity | None, lesson_id: str) -> LessonAccess:
    access = await evaluate_lesson_access(identity, lesson_id)
    _require(identity, access, owner=True)
    return access


async def require_lesson_access(identity: Identity | None, lesson_id: str) -> LessonAccess:
    access = await evaluate_lesson_access(identity, lesson_id)
    _require(identity, access, owner=False)
    return access


__all__ = [
    "AccessLevel",
    "ChapterAccess",
    "CourseAccess",
    "Identity",
    "LessonAccess",
    "evaluate_chapter_access",
    "evaluate_course_access",
    "evaluate_lesson_access",
    "require_chapter_ownership",
    "require_course_ownership",
    "require_lesson_access",
    "require_lesson_ownership",
]
