from typing import List

from fastapi import APIRouter

from .. import schemas
from ..auth import CurrentUser
from ..services import ledger_service

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get("/me", response_model=List[schemas.Transaction])
async def my_transactions(current: CurrentUser):
    return await ledger_service.list_transactions(str(current["id"]))
