#!/usr/bin/env python3
"""Seed the default licenses and the Config singleton.

Uses the store configured through the environment (STORE_BACKEND,
DATABASE_URL). Existing licenses and an existing Config row are left
untouched, so the script is safe to re-run.

Usage:
  python scripts/seed_defaults.py
  python scripts/seed_defaults.py --migrate
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from learningoo.db import apply_migrations, get_store  # noqa: E402
from learningoo.repositories import licenses as licenses_repo  # noqa: E402
from learningoo.services.config_service import config_cache  # noqa: E402


async def _seed(migrate: bool) -> int:
    store = get_store()
    await store.open()
    try:
        if migrate:
            await apply_migrations(store)
        inserted = await licenses_repo.seed_default_licenses()
        config = await config_cache.get()
        licenses = await licenses_repo.list_licenses()
    finally:
        await store.close()

    if inserted:
        print(f"Inserted {inserted} default licenses.")
    else:
        print("Licenses already present; nothing inserted.")
    for row in licenses:
        print(f"- {row['slug']}: price={row['price']} courses={row.get('course_limit')}")
    print(
        "Config:",
        f"allow_registration={config['allow_registration']}",
        f"allow_login={config['allow_login']}",
        f"default_credits={config['default_credits']}",
    )
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--migrate",
        action="store_true",
        help="Apply backend/migrations before seeding (postgres store only)",
    )
    args = parser.parse_args()
    return asyncio.run(_seed(args.migrate))


if __name__ == "__main__":
    raise SystemExit(main())
