from __future__ import annotations

from typing import Any, Mapping, Sequence

from ..db import get_store
from .store import Row

UserRow = Row

_PUBLIC_FIELDS = (
    "id",
    "name",
    "email",
    "role",
    "is_active",
    "balance",
    "license_id",
    "author_name",
    "bio",
    "created_at",
    "updated_at",
)


def public_user(row: Mapping[str, Any]) -> dict[str, Any]:
    """Strip credentials from a user row."""
    return {key: row.get(key) for key in _PUBLIC_FIELDS}


async def get_user(user_id: str) -> UserRow | None:
    return await get_store().get("users", user_id)


async def get_user_by_email(email: str) -> UserRow | None:
    normalized = (email or "").strip().lower()
    if not normalized:
        return None
    return await get_store().find_one("users", email=normalized)


async def create_user(
    *,
    name: str,
    email: str,
    password_hash: str,
    role: str = "student",
    balance: int = 0,
) -> UserRow:
    return await get_store().insert(
        "users",
        {
            "name": name,
            "email": email.strip().lower(),
            "password_hash": password_hash,
            "role": role,
            "is_active": True,
            "balance": int(balance),
            "license_id": None,
        },
    )


async def update_user(user_id: str, values: Mapping[str, Any]) -> UserRow | None:
    return await get_store().update("users", user_id, values)


async def adjust_balance(user_id: str, delta: int) -> UserRow | None:
    """Atomically add ``delta`` to the balance, refusing to go below zero.

    Returns ``None`` when the user is missing or the balance would turn
    negative.
    """
    return await get_store().increment("users", user_id, "balance", int(delta), minimum=0)


async def list_users() -> Sequence[UserRow]:
    return await get_store().find("users", order_by=("created_at",))


async def count_users(role: str | None = None) -> int:
    filters = {"role": role} if role else None
    return await get_store().count("users", filters)


__all__ = [
    "UserRow",
    "adjust_balance",
    "count_users",
    "create_user",
    "get_user",
    "get_user_by_email",
    "list_users",
    "public_user",
    "update_user",
]
