from __future__ import annotations

from typing import Any, Mapping

from ..db import get_store
from .store import DuplicateRecord, Row

CONFIG_ID = "default"

ConfigRow = Row


async def get_config_row() -> ConfigRow | None:
    return await get_store().get("app_config", CONFIG_ID)


async def ensure_config_row(defaults: Mapping[str, Any]) -> ConfigRow:
    store = get_store()
    row = await store.get("app_config", CONFIG_ID)
    if row is not None:
        return row
    try:
        return await store.insert("app_config", {"id": CONFIG_ID, **defaults})
    except DuplicateRecord:
        # Lost a first-boot race; the winner's row is the singleton.
        row = await store.get("app_config", CONFIG_ID)
        if row is None:
            raise
        return row


async def update_config_row(values: Mapping[str, Any]) -> ConfigRow | None:
    return await get_store().update("app_config", CONFIG_ID, values)


__all__ = ["CONFIG_ID", "ConfigRow", "ensure_config_row", "get_config_row", "update_config_row"]
