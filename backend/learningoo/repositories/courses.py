from __future__ import annotations

from typing import Any, Mapping, Sequence

from ..db import get_store
from .store import Row

CourseRow = Row
ChapterRow = Row
LessonRow = Row
CategoryRow = Row


async def get_course(course_id: str) -> CourseRow | None:
    return await get_store().get("courses", course_id)


async def get_course_by_slug(slug: str) -> CourseRow | None:
    return await get_store().find_one("courses", slug=slug, is_deleted=False)


async def list_published_courses(
    *, category_id: str | None = None, limit: int | None = None
) -> Sequence[CourseRow]:
    filters: dict[str, Any] = {"is_published": True, "is_deleted": False}
    if category_id:
        filters["category_id"] = category_id
    return await get_store().find("courses", filters, order_by=("-created_at",), limit=limit)


async def list_tutor_courses(tutor_id: str) -> Sequence[CourseRow]:
    return await get_store().find(
        "courses",
        {"tutor_id": tutor_id, "is_deleted": False},
        order_by=("-created_at",),
    )


async def count_tutor_courses(tutor_id: str) -> int:
    return await get_store().count("courses", {"tutor_id": tutor_id, "is_deleted": False})


async def count_courses() -> int:
    return await get_store().count("courses", {"is_deleted": False})


async def create_course(values: Mapping[str, Any]) -> CourseRow:
    payload = {"is_published": False, "is_deleted": False, "price": 0, **values}
    return await get_store().insert("courses", payload)


async def update_course(course_id: str, values: Mapping[str, Any]) -> CourseRow | None:
    return await get_store().update("courses", course_id, values)


async def soft_delete_course(course_id: str) -> CourseRow | None:
    return await get_store().update(
        "courses", course_id, {"is_deleted": True, "is_published": False}
    )


async def get_chapter(chapter_id: str) -> ChapterRow | None:
    return await get_store().get("chapters", chapter_id)


async def list_chapters(course_id: str) -> Sequence[ChapterRow]:
    return await get_store().find(
        "chapters", {"course_id": course_id}, order_by=("position", "created_at")
    )


async def count_chapters(course_id: str) -> int:
    return await get_store().count("chapters", {"course_id": course_id})


async def create_chapter(values: Mapping[str, Any]) -> ChapterRow:
    return await get_store().insert("chapters", {"position": 0, **values})


async def update_chapter(chapter_id: str, values: Mapping[str, Any]) -> ChapterRow | None:
    return await get_store().update("chapters", chapter_id, values)


async def delete_chapter(chapter_id: str) -> bool:
    """Delete a chapter together with its lessons."""
    store = get_store()
    for lesson in await store.find("lessons", {"chapter_id": chapter_id}):
        await store.delete("lessons", lesson["id"])
    return await store.delete("chapters", chapter_id)


async def get_lesson(lesson_id: str) -> LessonRow | None:
    return await get_store().get("lessons", lesson_id)


async def list_lessons(chapter_id: str) -> Sequence[LessonRow]:
    return await get_store().find(
        "lessons", {"chapter_id": chapter_id}, order_by=("position", "created_at")
    )


async def count_lessons(chapter_id: str) -> int:
    return await get_store().count("lessons", {"chapter_id": chapter_id})


async def create_lesson(values: Mapping[str, Any]) -> LessonRow:
    return await get_store().insert(
        "lessons", {"position": 0, "content_blocks": [], **values}
    )


async def update_lesson(lesson_id: str, values: Mapping[str, Any]) -> LessonRow | None:
    return await get_store().update("lessons", lesson_id, values)


async def delete_lesson(lesson_id: str) -> bool:
    return await get_store().delete("lessons", lesson_id)


async def list_categories() -> Sequence[CategoryRow]:
    return await get_store().find("categories", order_by=("name",))


async def count_categories() -> int:
    return await get_store().count("categories")


async def create_category(*, name: str, slug: str) -> CategoryRow:
    return await get_store().insert("categories", {"name": name, "slug": slug})


__all__ = [
    "CategoryRow",
    "ChapterRow",
    "CourseRow",
    "LessonRow",
    "count_categories",
    "count_chapters",
    "count_courses",
    "count_lessons",
    "count_tutor_courses",
    "create_category",
    "create_chapter",
    "create_course",
    "create_lesson",
    "delete_chapter",
    "delete_lesson",
    "get_chapter",
    "get_course",
    "get_course_by_slug",
    "get_lesson",
    "list_categories",
    "list_chapters",
    "list_lessons",
    "list_published_courses",
    "list_tutor_courses",
    "soft_delete_course",
    "update_chapter",
    "update_course",
    "update_lesson",
]
