from fastapi import APIRouter, HTTPException, status

from .. import schemas
from ..auth import CurrentUser
from ..errors import LedgerError
from ..repositories.users import public_user
from ..services import auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=schemas.AuthSession,
    status_code=status.HTTP_201_CREATED,
)
async def register(payload: schemas.AuthRegisterRequest):
    try:
        return await auth_service.register_user(payload.name, payload.email, payload.password)
    except LedgerError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)


@router.post("/login", response_model=schemas.AuthSession)
async def login(payload: schemas.AuthLoginRequest):
    try:
        return await auth_service.login_user(payload.email, payload.password)
    except LedgerError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)


@router.get("/me", response_model=schemas.User)
async def me(current: CurrentUser):
    return public_user(current)


@router.patch("/me", response_model=schemas.User)
async def update_me(payload: schemas.ProfileUpdate, current: CurrentUser):
    try:
        return await auth_service.update_profile(
            str(current["id"]),
            name=payload.name,
            author_name=payload.author_name,
            bio=payload.bio,
        )
    except LedgerError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)
