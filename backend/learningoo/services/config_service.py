"""Process-wide cache for the Config singleton.

Readers go through ``config_cache.get()``; every writer calls
``invalidate()`` in the same operation that changed the row, so a stale
read lasts at most until that call.
"""

from __future__ import annotations

import logging
from typing import Any

from ..config import settings
from ..errors import InvalidRequest
from ..repositories import app_config as app_config_repo
from ..repositories.store import Row

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = {"allow_registration", "allow_login", "default_credits"}


def _seed_defaults() -> dict[str, Any]:
    return {
        "allow_registration": settings.allow_registration,
        "allow_login": settings.allow_login,
        "default_credits": settings.default_credits,
    }


class ConfigCache:
    def __init__(self) -> None:
        self._row: Row | None = None
        # Bumped by every invalidate; a load started under an older
        # generation must not repopulate the cache.
        self._generation = 0

    async def get(self) -> Row:
        row = self._row
        if row is None:
            generation = self._generation
            row = await app_config_repo.ensure_config_row(_seed_defaults())
            if generation == self._generation:
                self._row = row
        return dict(row)

    def invalidate(self) -> None:
        self._generation += 1
        self._row = None

    @property
    def cached(self) -> bool:
        return self._row is not None


config_cache = ConfigCache()


async def get_config() -> Row:
    return await config_cache.get()


async def update_config(**changes: Any) -> Row:
    values = {key: value for key, value in changes.items() if value is not None}
    unknown = set(values) - _UPDATABLE_FIELDS
    if unknown:
        raise InvalidRequest(
            f"Unknown config field(s): {', '.join(sorted(unknown))}",
            reason="unknownConfigField",
        )
    if "default_credits" in values and int(values["default_credits"]) < 0:
        raise InvalidRequest("defaultCredits must be >= 0", reason="negativeCredits")

    await app_config_repo.ensure_config_row(_seed_defaults())
    try:
        row = await app_config_repo.update_config_row(values)
    finally:
        config_cache.invalidate()
    logger.info("Config updated", extra={"changes": values})
    if row is None:
        return await config_cache.get()
    return dict(row)


__all__ = ["ConfigCache", "config_cache", "get_config", "update_config"]
