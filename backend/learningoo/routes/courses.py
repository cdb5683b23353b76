from typing import List, Optional

from fastapi import APIRouter, HTTPException, Response, status

from .. import schemas
from ..auth import CurrentUser, OptionalIdentity
from ..errors import LedgerError
from ..permissions import AuthorUser
from ..services import catalog_service, ledger_service
from ..services.access_service import Identity

router = APIRouter(prefix="/courses", tags=["courses"])


@router.get("", response_model=List[schemas.Course])
async def list_courses(category: Optional[str] = None):
    return await catalog_service.list_courses(category_id=category)


@router.get("/mine", response_model=List[schemas.Course])
async def my_courses(current: AuthorUser):
    return await catalog_service.list_tutor_courses(str(current["id"]))


@router.get("/slug/{slug}", response_model=schemas.Course)
async def get_course_by_slug(slug: str, identity: OptionalIdentity):
    try:
        return await catalog_service.fetch_course_by_slug(identity, slug)
    except LedgerError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)


@router.get("/{course_id}", response_model=schemas.Course)
async def get_course(course_id: str, identity: OptionalIdentity):
    try:
        return await catalog_service.fetch_course(identity, course_id)
    except LedgerError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)


@router.post("", response_model=schemas.Course, status_code=status.HTTP_201_CREATED)
async def create_course(payload: schemas.CourseCreate, current: AuthorUser):
    try:
        return await catalog_service.create_course(
            Identity.from_user(current), payload.model_dump(exclude_unset=True)
        )
    except LedgerError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)


@router.patch("/{course_id}", response_model=schemas.Course)
async def update_course(course_id: str, payload: schemas.CourseUpdate, current: CurrentUser):
    try:
        return await catalog_service.update_course(
            Identity.from_user(current), course_id, payload.model_dump(exclude_unset=True)
        )
    except LedgerError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_course(course_id: str, current: CurrentUser):
    try:
        await catalog_service.delete_course(Identity.from_user(current), course_id)
    except LedgerError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{course_id}/chapters", response_model=List[schemas.Chapter])
async def list_course_chapters(course_id: str):
    try:
        return await catalog_service.list_chapters(course_id)
    except LedgerError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)


@router.post("/{course_id}/enroll", response_model=schemas.PurchaseResponse)
async def enroll(course_id: str, current: CurrentUser):
    try:
        result = await ledger_service.purchase_course(str(current["id"]), course_id)
    except LedgerError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)
    return {"enrollment": result.enrollment, "balance": result.balance}
