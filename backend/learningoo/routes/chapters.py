from fastapi import APIRouter, HTTPException, Response, status

from .. import schemas
from ..auth import CurrentUser
from ..errors import LedgerError
from ..services import catalog_service
from ..services.access_service import Identity

router = APIRouter(prefix="/chapters", tags=["chapters"])


@router.get("/{chapter_id}", response_model=schemas.ChapterDetail)
async def get_chapter(chapter_id: str):
    try:
        return await catalog_service.chapter_outline(chapter_id)
    except LedgerError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)


@router.post("", response_model=schemas.Chapter, status_code=status.HTTP_201_CREATED)
async def create_chapter(payload: schemas.ChapterCreate, current: CurrentUser):
    values = payload.model_dump(exclude_unset=True, exclude={"course_id"})
    try:
        return await catalog_service.create_chapter(
            Identity.from_user(current), payload.course_id, values
        )
    except LedgerError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)


@router.patch("/{chapter_id}", response_model=schemas.Chapter)
async def update_chapter(chapter_id: str, payload: schemas.ChapterUpdate, current: CurrentUser):
    try:
        return await catalog_service.update_chapter(
            Identity.from_user(current), chapter_id, payload.model_dump(exclude_unset=True)
        )
    except LedgerError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)


@router.delete("/{chapter_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_chapter(chapter_id: str, current: CurrentUser):
    try:
        await catalog_service.delete_chapter(Identity.from_user(current), chapter_id)
    except LedgerError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
