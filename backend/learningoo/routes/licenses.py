from typing import List

from fastapi import APIRouter, HTTPException, status

from .. import schemas
from ..auth import CurrentUser
from ..errors import AccessDenied, LedgerError
from ..permissions import AdminUser
from ..services import admin_service, ledger_service

router = APIRouter(prefix="/licenses", tags=["licenses"])


@router.get("", response_model=List[schemas.License])
async def list_licenses():
    return await admin_service.list_licenses()


@router.post("/assign")
async def assign_license(payload: schemas.LicenseAssignRequest, current: CurrentUser):
    user_id = payload.user_id or str(current["id"])
    try:
        if user_id != str(current["id"]) and current.get("role") != "admin":
            raise AccessDenied()
        result = await ledger_service.assign_license(user_id, payload.license_slug)
    except LedgerError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)
    return {
        "message": result["message"],
        "license": schemas.License.model_validate(result["license"]).model_dump(by_alias=True),
        "user": schemas.User.model_validate(result["user"]).model_dump(mode="json", by_alias=True),
    }


@router.patch("/{license_id}", response_model=schemas.License)
async def update_license(license_id: str, payload: schemas.LicenseUpdate, current: AdminUser):
    try:
        return await admin_service.update_license(
            license_id, payload.model_dump(exclude_unset=True)
        )
    except LedgerError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)
