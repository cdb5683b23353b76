from typing import List

from fastapi import APIRouter, HTTPException

from .. import schemas
from ..errors import LedgerError
from ..permissions import AdminUser
from ..services import admin_service, auth_service, config_service, ledger_service

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/login", response_model=schemas.AuthSession)
async def admin_login(payload: schemas.AdminLoginRequest):
    identifier = payload.key or payload.email or ""
    try:
        return await auth_service.admin_login(identifier, payload.password)
    except LedgerError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)


@router.get("/summary", response_model=schemas.AdminSummary)
async def admin_summary(current: AdminUser):
    return await admin_service.summary()


@router.get("/overview", response_model=schemas.AdminOverview)
async def admin_overview(current: AdminUser):
    return await admin_service.overview()


@router.get("/users", response_model=List[schemas.AdminUserRecord])
async def admin_list_users(current: AdminUser):
    return await admin_service.list_users()


@router.get("/users/{user_id}", response_model=schemas.User)
async def admin_get_user(user_id: str, current: AdminUser):
    try:
        return await admin_service.get_user(user_id)
    except LedgerError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)


@router.put("/users/{user_id}", response_model=schemas.User)
async def admin_update_user(
    user_id: str,
    payload: schemas.AdminUserUpdate,
    current: AdminUser,
):
    try:
        return await admin_service.update_user(
            user_id,
            balance=payload.balance,
            is_active=payload.is_active,
            license_slug=payload.license_slug,
            new_password=payload.new_password,
            actor_id=str(current["id"]),
        )
    except LedgerError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)


@router.get("/transactions", response_model=List[schemas.Transaction])
async def admin_transactions(current: AdminUser):
    return await ledger_service.list_all_transactions()


@router.get("/config", response_model=schemas.AppConfig)
async def admin_get_config(current: AdminUser):
    return await config_service.get_config()


@router.put("/config", response_model=schemas.AppConfig)
async def admin_update_config(payload: schemas.AppConfigUpdate, current: AdminUser):
    try:
        return await config_service.update_config(**payload.model_dump(exclude_unset=True))
    except LedgerError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)
