from __future__ import annotations

import logging
import re
import uuid
from typing import Any, Mapping, Sequence

from ..errors import AccessDenied, Conflict, LimitReached, NotFound
from ..repositories import courses as courses_repo
from ..repositories import enrollments as enrollments_repo
from ..repositories import licenses as licenses_repo
from ..repositories import users as users_repo
from ..repositories.store import DuplicateRecord, Row
from . import access_service
from .access_service import Identity

logger = logging.getLogger(__name__)

CoursePayload = Mapping[str, Any]
ChapterPayload = Mapping[str, Any]
LessonPayload = Mapping[str, Any]

FREE_LICENSE_SLUG = "free"

_COURSE_UPDATE_COLUMNS = {
    "title",
    "slug",
    "description",
    "category_id",
    "cover_image",
    "price",
    "is_published",
}
_CHAPTER_UPDATE_COLUMNS = {"title", "description", "position"}
_LESSON_UPDATE_COLUMNS = {"title", "content_blocks", "position"}

_SLUG_STRIP = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    slug = _SLUG_STRIP.sub("-", (value or "").lower()).strip("-")
    return slug or "course"


def _pick(values: Mapping[str, Any], allowed: set[str]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if key in allowed and value is not None}


def _visible(course: Row | None) -> bool:
    return bool(course) and not course.get("is_deleted")


async def _license_for_tutor(tutor_id: str) -> Row | None:
    """License governing a tutor's limits; no license counts as the free tier."""
    user = await users_repo.get_user(tutor_id)
    if user and user.get("license_id"):
        license_row = await licenses_repo.get_license(str(user["license_id"]))
        if license_row:
            return license_row
    return await licenses_repo.get_license_by_slug(FREE_LICENSE_SLUG)


async def _check_limit(
    identity: Identity, tutor_id: str, resource: str, current: int
) -> None:
    if identity.is_admin:
        return
    license_row = await _license_for_tutor(tutor_id)
    if not license_row:
        return
    limit = license_row.get(f"{resource}_limit")
    if limit is not None and current >= int(limit):
        logger.info(
            "License limit reached",
            extra={"tutor_id": tutor_id, "resource": resource, "limit": limit},
        )
        raise LimitReached(resource, int(limit))


async def list_categories() -> Sequence[Row]:
    return await courses_repo.list_categories()


async def create_category(name: str, slug: str | None = None) -> Row:
    try:
        return await courses_repo.create_category(name=name.strip(), slug=slug or slugify(name))
    except DuplicateRecord as exc:
        raise Conflict("slugUsed", "Slug already used") from exc


async def list_courses(category_id: str | None = None) -> Sequence[Row]:
    return await courses_repo.list_published_courses(category_id=category_id)


async def list_tutor_courses(tutor_id: str) -> Sequence[Row]:
    return await courses_repo.list_tutor_courses(tutor_id)


async def fetch_course(identity: Identity | None, course_id: str) -> Row:
    """Published courses are public; drafts only resolve for their owner or an admin."""
    course = await courses_repo.get_course(course_id)
    if not _visible(course):
        raise NotFound("course")
    if not course.get("is_published"):
        access = await access_service.evaluate_course_access(identity, course_id)
        if not access.is_owner:
            raise NotFound("course")
    return course


async def fetch_course_by_slug(identity: Identity | None, slug: str) -> Row:
    course = await courses_repo.get_course_by_slug(slug)
    if not course:
        raise NotFound("course")
    return await fetch_course(identity, str(course["id"]))


async def create_course(identity: Identity, payload: CoursePayload) -> Row:
    if identity.role not in {"tutor", "admin"}:
        raise AccessDenied("Tutor license required", reason="tutorOnly")
    current = await courses_repo.count_tutor_courses(identity.user_id)
    await _check_limit(identity, identity.user_id, "course", current)

    values = _pick(payload, _COURSE_UPDATE_COLUMNS)
    values["tutor_id"] = identity.user_id
    values["slug"] = values.get("slug") or f"{slugify(values.get('title', ''))}-{uuid.uuid4().hex[:6]}"
    try:
        course = await courses_repo.create_course(values)
    except DuplicateRecord as exc:
        raise Conflict("slugUsed", "Slug already used") from exc
    logger.info("Course created", extra={"course_id": course["id"], "tutor_id": identity.user_id})
    return course


async def update_course(identity: Identity, course_id: str, payload: CoursePayload) -> Row:
    course = await courses_repo.get_course(course_id)
    if not _visible(course):
        raise NotFound("course")
    await access_service.require_course_ownership(identity, course_id)
    # tutor_id is immutable once the course exists.
    values = _pick(payload, _COURSE_UPDATE_COLUMNS)
    try:
        updated = await courses_repo.update_course(course_id, values)
    except DuplicateRecord as exc:
        raise Conflict("slugUsed", "Slug already used") from exc
    if updated is None:
        raise NotFound("course")
    return updated


async def delete_course(identity: Identity, course_id: str) -> None:
    course = await courses_repo.get_course(course_id)
    if not _visible(course):
        raise NotFound("course")
    await access_service.require_course_ownership(identity, course_id)
    await courses_repo.soft_delete_course(course_id)
    logger.info("Course deleted", extra={"course_id": course_id})


async def list_chapters(course_id: str) -> Sequence[Row]:
    course = await courses_repo.get_course(course_id)
    if not _visible(course):
        raise NotFound("course")
    return await courses_repo.list_chapters(course_id)


async def chapter_outline(chapter_id: str) -> dict[str, Any]:
    """Chapter plus the titles of its lessons; lesson bodies need lesson access."""
    chapter = await courses_repo.get_chapter(chapter_id)
    if not chapter:
        raise NotFound("chapter")
    lessons = await courses_repo.list_lessons(chapter_id)
    outline = dict(chapter)
    outline["lessons"] = [
        {"id": lesson["id"], "title": lesson["title"], "position": lesson.get("position", 0)}
        for lesson in lessons
    ]
    return outline


async def create_chapter(identity: Identity, course_id: str, payload: ChapterPayload) -> Row:
    course = await courses_repo.get_course(course_id)
    if not _visible(course):
        raise NotFound("course")
    await access_service.require_course_ownership(identity, course_id)
    current = await courses_repo.count_chapters(course_id)
    await _check_limit(identity, str(course["tutor_id"]), "chapter", current)

    values = _pick(payload, _CHAPTER_UPDATE_COLUMNS)
    values.setdefault("position", current)
    values["course_id"] = course_id
    return await courses_repo.create_chapter(values)


async def update_chapter(identity: Identity, chapter_id: str, payload: ChapterPayload) -> Row:
    if not await courses_repo.get_chapter(chapter_id):
        raise NotFound("chapter")
    await access_service.require_chapter_ownership(identity, chapter_id)
    updated = await courses_repo.update_chapter(chapter_id, _pick(payload, _CHAPTER_UPDATE_COLUMNS))
    if updated is None:
        raise NotFound("chapter")
    return updated


async def delete_chapter(identity: Identity, chapter_id: str) -> None:
    if not await courses_repo.get_chapter(chapter_id):
        raise NotFound("chapter")
    await access_service.require_chapter_ownership(identity, chapter_id)
    await courses_repo.delete_chapter(chapter_id)


async def fetch_lesson(identity: Identity | None, lesson_id: str) -> Row:
    lesson = await courses_repo.get_lesson(lesson_id)
    if not lesson:
        raise NotFound("lesson")
    await access_service.require_lesson_access(identity, lesson_id)
    return lesson


async def create_lesson(identity: Identity, chapter_id: str, payload: LessonPayload) -> Row:
    chapter = await courses_repo.get_chapter(chapter_id)
    if not chapter:
        raise NotFound("chapter")
    access = await access_service.require_chapter_ownership(identity, chapter_id)
    course = await courses_repo.get_course(str(access.course_id))
    if not _visible(course):
        raise NotFound("course")
    current = await courses_repo.count_lessons(chapter_id)
    await _check_limit(identity, str(course["tutor_id"]), "lesson", current)

    values = _pick(payload, _LESSON_UPDATE_COLUMNS)
    values.setdefault("position", current)
    values["chapter_id"] = chapter_id
    return await courses_repo.create_lesson(values)


async def update_lesson(identity: Identity, lesson_id: str, payload: LessonPayload) -> Row:
    if not await courses_repo.get_lesson(lesson_id):
        raise NotFound("lesson")
    await access_service.require_lesson_ownership(identity, lesson_id)
    updated = await courses_repo.update_lesson(lesson_id, _pick(payload, _LESSON_UPDATE_COLUMNS))
    if updated is None:
        raise NotFound("lesson")
    return updated


async def delete_lesson(identity: Identity, lesson_id: str) -> None:
    if not await courses_repo.get_lesson(lesson_id):
        raise NotFound("lesson")
    await access_service.require_lesson_ownership(identity, lesson_id)
    await courses_repo.delete_lesson(lesson_id)


async def list_my_enrollments(user_id: str) -> list[dict[str, Any]]:
    items: list[dict[str, Any]] = []
    for enrollment in await enrollments_repo.list_student_enrollments(user_id):
        course = await courses_repo.get_course(str(enrollment["course_id"]))
        if not _visible(course):
            continue
        items.append({**enrollment, "course": course})
    return items


__all__ = [
    "chapter_outline",
    "create_category",
    "create_chapter",
    "create_course",
    "create_lesson",
    "delete_chapter",
    "delete_course",
    "delete_lesson",
    "fetch_course",
    "fetch_course_by_slug",
    "fetch_lesson",
    "list_categories",
    "list_chapters",
    "list_courses",
    "list_my_enrollments",
    "list_tutor_courses",
    "slugify",
    "update_chapter",
    "update_course",
    "update_lesson",
]
