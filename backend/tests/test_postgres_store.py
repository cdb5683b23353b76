"""Ledger checks against a real Postgres; skipped unless TEST_DATABASE_URL is set."""

import asyncio

import pytest

from learningoo import db
from learningoo.db import apply_migrations
from learningoo.errors import Conflict, InsufficientFunds
from learningoo.repositories import licenses as licenses_repo
from learningoo.repositories import users as users_repo
from learningoo.repositories.postgres_store import PostgresStore
from learningoo.repositories.store import DuplicateRecord
from learningoo.services import ledger_service
from learningoo.testing.db_safety import resolve_test_database_url

from .utils import make_course, make_user

TEST_DATABASE_URL = resolve_test_database_url()

pytestmark = [
    pytest.mark.anyio("asyncio"),
    pytest.mark.skipif(TEST_DATABASE_URL is None, reason="TEST_DATABASE_URL not set"),
]

_TABLES = (
    "transactions",
    "enrollments",
    "lessons",
    "chapters",
    "courses",
    "categories",
    "users",
    "licenses",
    "app_config",
)


@pytest.fixture
async def pg_store(store):
    pg = PostgresStore(TEST_DATABASE_URL, min_size=1, max_size=4)
    await pg.open()
    await apply_migrations(pg)
    async with pg.pool.connection() as conn:
        await conn.execute(
            "TRUNCATE " + ", ".join(f"app.{table}" for table in _TABLES) + " CASCADE"
        )
        await conn.commit()
    db.use_store(pg)
    await licenses_repo.seed_default_licenses()
    try:
        yield pg
    finally:
        db.use_store(store)
        await pg.close()


async def test_unique_enrollment_maps_to_duplicate_record(pg_store):
    await pg_store.insert("enrollments", {"student_id": "s1", "course_id": "c1", "status": "pending"})
    with pytest.raises(DuplicateRecord) as excinfo:
        await pg_store.insert(
            "enrollments", {"student_id": "s1", "course_id": "c1", "status": "pending"}
        )
    assert excinfo.value.index == ("student_id", "course_id")


async def test_conditional_debit_never_goes_negative(pg_store):
    user = await make_user(balance=10)
    assert (await users_repo.adjust_balance(user["id"], -10))["balance"] == 0
    assert await users_repo.adjust_balance(user["id"], -1) is None


async def test_concurrent_purchase_charges_once(pg_store):
    tutor = await make_user(role="tutor", balance=0)
    student = await make_user(balance=50)
    course = await make_course(tutor["id"], price=30)

    results = await asyncio.gather(
        ledger_service.purchase_course(student["id"], course["id"]),
        ledger_service.purchase_course(student["id"], course["id"]),
        return_exceptions=True,
    )

    successes = [r for r in results if isinstance(r, ledger_service.PurchaseResult)]
    failures = [r for r in results if isinstance(r, (Conflict, InsufficientFunds))]
    assert len(successes) == 1
    assert len(failures) == 1
    assert (await users_repo.get_user(student["id"]))["balance"] == 20
    assert (await users_repo.get_user(tutor["id"]))["balance"] == 30
    assert await pg_store.count("transactions") == 2
