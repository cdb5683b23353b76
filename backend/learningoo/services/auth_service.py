from __future__ import annotations

import hmac
import logging
from typing import Any

from .. import auth
from ..config import settings
from ..errors import Conflict, InvalidCredentials, InvalidRequest, NotFound, ServiceDisabled
from ..repositories import users as users_repo
from ..repositories.store import DuplicateRecord, Row
from .config_service import config_cache

logger = logging.getLogger(__name__)


def _same(left: str | None, right: str | None) -> bool:
    if not left or not right:
        return False
    return hmac.compare_digest(left.encode("utf-8"), right.encode("utf-8"))


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def is_admin_credentials(email: str, password: str) -> bool:
    email_ok = _same(_normalize_email(email), _normalize_email(settings.admin_email))
    password_ok = _same(password, settings.admin_password)
    return email_ok and password_ok


def _session(user: Row) -> dict[str, Any]:
    return {"token": auth.token_for_user(user), "user": users_repo.public_user(user)}


async def _ensure_admin_user() -> Row:
    email = _normalize_email(settings.admin_email)
    user = await users_repo.get_user_by_email(email)
    if user is None:
        try:
            user = await users_repo.create_user(
                name="Admin",
                email=email,
                password_hash=auth.hash_password(settings.admin_password or ""),
                role="admin",
            )
            logger.info("Admin account created", extra={"user_id": user["id"]})
            return user
        except DuplicateRecord:
            user = await users_repo.get_user_by_email(email)
            if user is None:
                raise
    if user.get("role") != "admin" or not user.get("is_active", True):
        user = await users_repo.update_user(str(user["id"]), {"role": "admin", "is_active": True}) or user
    return user


async def register_user(name: str, email: str, password: str) -> dict[str, Any]:
    config = await config_cache.get()
    if not config.get("allow_registration", True):
        raise ServiceDisabled("registration")

    normalized = _normalize_email(email)
    if await users_repo.get_user_by_email(normalized):
        raise Conflict("emailUsed")
    try:
        user = await users_repo.create_user(
            name=name.strip(),
            email=normalized,
            password_hash=auth.hash_password(password),
            role="student",
            balance=int(config.get("default_credits") or 0),
        )
    except DuplicateRecord as exc:
        raise Conflict("emailUsed") from exc

    logger.info("User registered", extra={"user_id": user["id"], "balance": user["balance"]})
    return _session(user)


async def login_user(email: str, password: str) -> dict[str, Any]:
    if is_admin_credentials(email, password):
        return _session(await _ensure_admin_user())

    config = await config_cache.get()
    user = await users_repo.get_user_by_email(email)
    valid = (
        user is not None
        and bool(user.get("is_active", True))
        and auth.verify_password(password, user.get("password_hash"))
    )
    if not config.get("allow_login", True):
        if not (valid and user.get("role") == "admin"):
            raise ServiceDisabled("login")
    if not valid:
        raise InvalidCredentials()
    return _session(user)


async def update_profile(
    user_id: str,
    *,
    name: str | None = None,
    author_name: str | None = None,
    bio: str | None = None,
) -> dict[str, Any]:
    """Self-service edit of the public profile; role, balance and license stay untouched."""
    values: dict[str, Any] = {}
    if name is not None:
        if not name.strip():
            raise InvalidRequest("Name must not be blank", reason="blankName")
        values["name"] = name.strip()
    if author_name is not None:
        values["author_name"] = author_name.strip() or None
    if bio is not None:
        values["bio"] = bio.strip() or None
    if values:
        user = await users_repo.update_user(user_id, values)
    else:
        user = await users_repo.get_user(user_id)
    if user is None:
        raise NotFound("user")
    if values:
        logger.info("Profile updated", extra={"user_id": user_id, "fields": sorted(values)})
    return users_repo.public_user(user)


async def admin_login(identifier: str, password: str) -> dict[str, Any]:
    """Sign in with ``ADMIN_KEY`` or the admin email plus ``ADMIN_PASSWORD``."""
    identifier_ok = _same(identifier, settings.admin_key) or _same(
        _normalize_email(identifier), _normalize_email(settings.admin_email)
    )
    if not (identifier_ok and _same(password, settings.admin_password)):
        logger.warning("Rejected admin login attempt")
        raise InvalidCredentials()
    return _session(await _ensure_admin_user())


__all__ = [
    "admin_login",
    "is_admin_credentials",
    "login_user",
    "register_user",
    "update_profile",
]
