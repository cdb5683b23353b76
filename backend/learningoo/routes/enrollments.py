from typing import List

from fastapi import APIRouter

from .. import schemas
from ..auth import CurrentUser
from ..services import catalog_service

router = APIRouter(prefix="/enrollments", tags=["enrollments"])


@router.get("/me", response_model=List[schemas.EnrollmentWithCourse])
async def my_enrollments(current: CurrentUser):
    return await catalog_service.list_my_enrollments(str(current["id"]))
