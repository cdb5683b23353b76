from typing import Annotated

from fastapi import Depends, HTTPException, status

from .auth import CurrentUser


async def require_admin(current: CurrentUser) -> dict:
    if current.get("role") != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"reason": "adminOnly", "message": "Admin privileges required"},
        )
    return current


async def require_author(current: CurrentUser) -> dict:
    if current.get("role") not in {"tutor", "admin"}:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"reason": "tutorOnly", "message": "Tutor license required"},
        )
    return current


AdminUser = Annotated[dict, Depends(require_admin)]
AuthorUser = Annotated[dict, Depends(require_author)]
