from fastapi import APIRouter

from ..auth import OptionalIdentity
from ..services import access_service

router = APIRouter(prefix="/access", tags=["access"])


@router.get("/course/{course_id}")
async def course_access(course_id: str, identity: OptionalIdentity):
    access = await access_service.evaluate_course_access(identity, course_id)
    return access.payload()


@router.get("/chapter/{chapter_id}")
async def chapter_access(chapter_id: str, identity: OptionalIdentity):
    access = await access_service.evaluate_chapter_access(identity, chapter_id)
    return access.payload()


@router.get("/lesson/{lesson_id}")
async def lesson_access(lesson_id: str, identity: OptionalIdentity):
    access = await access_service.evaluate_lesson_access(identity, lesson_id)
    return access.payload()
