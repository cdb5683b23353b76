from datetime import datetime, timedelta, timezone
from typing import Annotated, Any

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from passlib.context import CryptContext

from .config import settings
from .logging_context import set_user_context
from .repositories import users as users_repo
from .services.access_service import Identity

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")
oauth2_optional_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str | None) -> bool:
    if not hashed:
        return False
    try:
        return pwd_context.verify(password, hashed)
    except ValueError:
        # Unrecognised hash format.
        return False


def decode_jwt(token: str) -> dict[str, Any]:
    """Verify signature and expiry; raises ``JWTError`` otherwise."""
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])


def create_access_token(
    sub: str,
    expires_minutes: int | None = None,
    *,
    claims: dict[str, Any] | None = None,
) -> str:
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=expires_minutes or settings.jwt_expires_minutes
    )
    to_encode: dict[str, Any] = {"sub": sub, "exp": expire, "token_type": "access"}
    if claims:
        to_encode.update(claims)
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def token_for_user(user: dict[str, Any]) -> str:
    return create_access_token(str(user["id"]), claims={"role": user.get("role")})


async def resolve_user(token: str | None) -> dict[str, Any] | None:
    """Return the active user behind ``token`` or ``None``.

    The role always comes from the stored row, never from the token claims.
    """
    if not token:
        return None
    try:
        payload = decode_jwt(token)
    except JWTError:
        return None
    user_id = payload.get("sub")
    if not user_id or payload.get("token_type", "access") != "access":
        return None
    user = await users_repo.get_user(str(user_id))
    if not user or not user.get("is_active", True):
        return None
    return user


async def get_current_user(token: Annotated[str, Depends(oauth2_scheme)]):
    user = await resolve_user(token)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    set_user_context(str(user["id"]))
    return user


async def get_optional_user(
    token: Annotated[str | None, Depends(oauth2_optional_scheme)],
):
    user = await resolve_user(token)
    if user is not None:
        set_user_context(str(user["id"]))
    return user


async def get_optional_identity(
    user: Annotated[dict | None, Depends(get_optional_user)],
) -> Identity | None:
    return Identity.from_user(user) if user else None


CurrentUser = Annotated[dict, Depends(get_current_user)]
OptionalIdentity = Annotated[Identity | None, Depends(get_optional_identity)]
