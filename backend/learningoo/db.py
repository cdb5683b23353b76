from __future__ import annotations

import logging
from pathlib import Path

from .config import Settings, settings
from .repositories.memory_store import MemoryStore
from .repositories.postgres_store import PostgresStore
from .repositories.store import RecordStore

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parents[1] / "migrations"

_store: RecordStore | None = None


def create_store_from_settings(config: Settings = settings) -> RecordStore:
    if config.store_backend == "memory":
        return MemoryStore()
    if config.database_url is None:
        raise RuntimeError("DATABASE_URL is required for the postgres store")
    return PostgresStore(
        str(config.database_url),
        min_size=config.db_pool_min_size,
        max_size=config.db_pool_max_size,
    )


def get_store() -> RecordStore:
    global _store
    if _store is None:
        _store = create_store_from_settings()
    return _store


def use_store(store: RecordStore | None) -> None:
    """Swap the process-wide store (tests, scripts)."""
    global _store
    _store = store


async def apply_migrations(store: RecordStore) -> None:
    if not isinstance(store, PostgresStore):
        return
    for path in sorted(MIGRATIONS_DIR.glob("*.sql")):
        script = path.read_text(encoding="utf-8")
        async with store.pool.connection() as conn:  # type: ignore[attr-defined]
            await conn.execute(script)
            await conn.commit()
        logger.info("Applied migration %s", path.name)


__all__ = ["apply_migrations", "create_store_from_settings", "get_store", "use_store"]
