from __future__ import annotations

from typing import Any, Mapping, Sequence

from ..db import get_store
from .store import Row

LicenseRow = Row

DEFAULT_LICENSES: tuple[dict[str, Any], ...] = (
    {
        "name": "Free",
        "slug": "free",
        "price": 0,
        "course_limit": 1,
        "chapter_limit": 3,
        "lesson_limit": 2,
    },
    {
        "name": "Startup",
        "slug": "startup",
        "price": 9,
        "course_limit": 5,
        "chapter_limit": None,
        "lesson_limit": None,
    },
    {
        "name": "Advanced",
        "slug": "advanced",
        "price": 16,
        "course_limit": 10,
        "chapter_limit": None,
        "lesson_limit": None,
    },
    {
        "name": "Professional",
        "slug": "pro",
        "price": 29,
        "course_limit": None,
        "chapter_limit": None,
        "lesson_limit": None,
    },
)


async def get_license(license_id: str) -> LicenseRow | None:
    return await get_store().get("licenses", license_id)


async def get_license_by_slug(slug: str) -> LicenseRow | None:
    normalized = (slug or "").strip().lower()
    if not normalized:
        return None
    return await get_store().find_one("licenses", slug=normalized)


async def list_licenses() -> Sequence[LicenseRow]:
    return await get_store().find("licenses", order_by=("price",))


async def count_licenses() -> int:
    return await get_store().count("licenses")


async def update_license(license_id: str, values: Mapping[str, Any]) -> LicenseRow | None:
    return await get_store().update("licenses", license_id, values)


async def seed_default_licenses() -> int:
    """Insert the default tiers when the table is empty; returns rows inserted."""
    store = get_store()
    if await store.count("licenses"):
        return 0
    for payload in DEFAULT_LICENSES:
        await store.insert("licenses", payload)
    return len(DEFAULT_LICENSES)


__all__ = [
    "DEFAULT_LICENSES",
    "LicenseRow",
    "count_licenses",
    "get_license",
    "get_license_by_slug",
    "list_licenses",
    "seed_default_licenses",
    "update_license",
]
