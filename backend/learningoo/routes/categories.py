from typing import List

from fastapi import APIRouter, HTTPException, status

from .. import schemas
from ..errors import LedgerError
from ..permissions import AdminUser
from ..services import catalog_service

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=List[schemas.Category])
async def list_categories():
    return await catalog_service.list_categories()


@router.post("", response_model=schemas.Category, status_code=status.HTTP_201_CREATED)
async def create_category(payload: schemas.CategoryCreate, current: AdminUser):
    try:
        return await catalog_service.create_category(payload.name, payload.slug)
    except LedgerError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)
