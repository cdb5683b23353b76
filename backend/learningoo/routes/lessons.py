from fastapi import APIRouter, HTTPException, Response, status

from .. import schemas
from ..auth import CurrentUser, OptionalIdentity
from ..errors import LedgerError
from ..services import catalog_service
from ..services.access_service import Identity

router = APIRouter(prefix="/lessons", tags=["lessons"])


@router.get("/{lesson_id}", response_model=schemas.Lesson)
async def get_lesson(lesson_id: str, identity: OptionalIdentity):
    try:
        return await catalog_service.fetch_lesson(identity, lesson_id)
    except LedgerError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)


@router.post("", response_model=schemas.Lesson, status_code=status.HTTP_201_CREATED)
async def create_lesson(payload: schemas.LessonCreate, current: CurrentUser):
    values = payload.model_dump(exclude_unset=True, exclude={"chapter_id"})
    try:
        return await catalog_service.create_lesson(
            Identity.from_user(current), payload.chapter_id, values
        )
    except LedgerError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)


@router.patch("/{lesson_id}", response_model=schemas.Lesson)
async def update_lesson(lesson_id: str, payload: schemas.LessonUpdate, current: CurrentUser):
    try:
        return await catalog_service.update_lesson(
            Identity.from_user(current), lesson_id, payload.model_dump(exclude_unset=True)
        )
    except LedgerError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)


@router.delete("/{lesson_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_lesson(lesson_id: str, current: CurrentUser):
    try:
        await catalog_service.delete_lesson(Identity.from_user(current), lesson_id)
    except LedgerError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
