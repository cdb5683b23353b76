from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Mapping, Sequence

from .. import auth
from ..errors import NotFound
from ..repositories import courses as courses_repo
from ..repositories import licenses as licenses_repo
from ..repositories import transactions as transactions_repo
from ..repositories import users as users_repo
from ..repositories.store import Row
from . import ledger_service

logger = logging.getLogger(__name__)

_LICENSE_UPDATE_COLUMNS = {"name", "price", "course_limit", "chapter_limit", "lesson_limit"}
_DEFAULT_LICENSE_BUCKETS = ("student", "free", "startup", "advanced", "pro")


async def summary() -> dict[str, int]:
    return {
        "categories": await courses_repo.count_categories(),
        "licenses": await licenses_repo.count_licenses(),
        "courses": await courses_repo.count_courses(),
        "users": await users_repo.count_users(),
        "transactions": await transactions_repo.count_transactions(),
    }


async def overview() -> dict[str, Any]:
    users = await users_repo.list_users()
    licenses = {row["id"]: row["slug"] for row in await licenses_repo.list_licenses()}
    transactions = await transactions_repo.list_all_transactions()

    roles = Counter(user.get("role") for user in users)
    license_counts: dict[str, int] = {bucket: 0 for bucket in _DEFAULT_LICENSE_BUCKETS}
    for user in users:
        if user.get("role") == "student":
            bucket = "student"
        elif user.get("role") == "admin":
            continue
        else:
            bucket = licenses.get(user.get("license_id"), "unknown")
        license_counts[bucket] = license_counts.get(bucket, 0) + 1

    revenue: Counter[str] = Counter()
    earned: Counter[str] = Counter()
    for tx in transactions:
        if tx["type"] == "debit" and tx["category"] in {"course", "license"}:
            revenue[tx["category"]] += int(tx["amount"])
        if tx["type"] == "credit" and tx["category"] == "course":
            earned[str(tx["user_id"])] += int(tx["amount"])

    top_earner = None
    if earned:
        user_id, amount = earned.most_common(1)[0]
        user = await users_repo.get_user(user_id)
        top_earner = {
            "amount": amount,
            "user": users_repo.public_user(user) if user else None,
        }

    return {
        "total_users": len(users),
        "tutors": roles.get("tutor", 0),
        "students": roles.get("student", 0),
        "categories": await courses_repo.count_categories(),
        "courses": await courses_repo.count_courses(),
        "licenses": license_counts,
        "revenue_total": sum(revenue.values()),
        "revenue_licenses": revenue.get("license", 0),
        "revenue_courses": revenue.get("course", 0),
        "top_earner": top_earner,
    }


async def list_users() -> list[dict[str, Any]]:
    licenses = {row["id"]: row["slug"] for row in await licenses_repo.list_licenses()}
    items = []
    for user in await users_repo.list_users():
        item = users_repo.public_user(user)
        item["license_slug"] = licenses.get(user.get("license_id"))
        items.append(item)
    return items


async def get_user(user_id: str) -> dict[str, Any]:
    user = await users_repo.get_user(user_id)
    if not user:
        raise NotFound("user")
    return users_repo.public_user(user)


async def update_user(
    user_id: str,
    *,
    balance: int | None = None,
    is_active: bool | None = None,
    license_slug: str | None = None,
    new_password: str | None = None,
    actor_id: str | None = None,
) -> dict[str, Any]:
    user = await users_repo.get_user(user_id)
    if not user:
        raise NotFound("user")

    if license_slug is not None:
        await ledger_service.set_user_license(user_id, license_slug)
    if balance is not None:
        await ledger_service.adjust_balance(user_id, balance, actor_id=actor_id)

    values: dict[str, Any] = {}
    if is_active is not None:
        values["is_active"] = is_active
    if new_password:
        values["password_hash"] = auth.hash_password(new_password)
    if values:
        await users_repo.update_user(user_id, values)

    logger.info(
        "User updated by admin",
        extra={
            "user_id": user_id,
            "actor_id": actor_id,
            "fields": sorted(
                name
                for name, value in (
                    ("balance", balance),
                    ("is_active", is_active),
                    ("license_slug", license_slug),
                    ("password", new_password),
                )
                if value is not None
            ),
        },
    )
    return await get_user(user_id)


async def list_licenses() -> Sequence[Row]:
    return await licenses_repo.list_licenses()


async def update_license(license_id: str, payload: Mapping[str, Any]) -> Row:
    if not await licenses_repo.get_license(license_id):
        raise NotFound("license")
    values = {key: value for key, value in payload.items() if key in _LICENSE_UPDATE_COLUMNS}
    updated = await licenses_repo.update_license(license_id, values)
    if updated is None:
        raise NotFound("license")
    logger.info("License updated", extra={"license_id": license_id, "changes": values})
    return updated


__all__ = [
    "get_user",
    "list_licenses",
    "list_users",
    "overview",
    "summary",
    "update_license",
    "update_user",
]
