"""Record store contract shared by the Postgres and in-memory backends.

A store offers single-document operations only: every call reads or
writes exactly one row atomically, and nothing spans two rows. Rows are
plain dicts keyed by column name.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Protocol, Sequence

Row = dict[str, Any]


@dataclass(frozen=True)
class TableSpec:
    name: str
    columns: tuple[str, ...]
    unique: tuple[tuple[str, ...], ...] = ()
    json_columns: frozenset[str] = field(default_factory=frozenset)

    @property
    def has_updated_at(self) -> bool:
        return "updated_at" in self.columns


TABLES: dict[str, TableSpec] = {
    spec.name: spec
    for spec in (
        TableSpec(
            "users",
            (
                "id",
                "name",
                "email",
                "password_hash",
                "role",
                "is_active",
                "balance",
                "license_id",
                "author_name",
                "bio",
                "created_at",
                "updated_at",
            ),
            unique=(("email",),),
        ),
        TableSpec(
            "categories",
            ("id", "name", "slug", "created_at", "updated_at"),
            unique=(("slug",),),
        ),
        TableSpec(
            "courses",
            (
                "id",
                "title",
                "slug",
                "description",
                "category_id",
                "cover_image",
                "price",
                "tutor_id",
                "is_published",
                "is_deleted",
                "created_at",
                "updated_at",
            ),
            unique=(("slug",),),
        ),
        TableSpec(
            "chapters",
            ("id", "title", "description", "course_id", "position", "created_at", "updated_at"),
        ),
        TableSpec(
            "lessons",
            ("id", "title", "chapter_id", "content_blocks", "position", "created_at", "updated_at"),
            json_columns=frozenset({"content_blocks"}),
        ),
        TableSpec(
            "enrollments",
            (
                "id",
                "student_id",
                "course_id",
                "status",
                "completed_lessons",
                "completed",
                "created_at",
                "updated_at",
            ),
            unique=(("student_id", "course_id"),),
            json_columns=frozenset({"completed_lessons"}),
        ),
        TableSpec(
            "transactions",
            (
                "id",
                "user_id",
                "type",
                "category",
                "amount",
                "related_id",
                "counterpart_id",
                "description",
                "created_at",
            ),
        ),
        TableSpec(
            "licenses",
            (
                "id",
                "name",
                "slug",
                "price",
                "course_limit",
                "chapter_limit",
                "lesson_limit",
                "created_at",
                "updated_at",
            ),
            unique=(("slug",),),
        ),
        TableSpec(
            "app_config",
            ("id", "allow_registration", "allow_login", "default_credits", "created_at", "updated_at"),
        ),
    )
}


class StoreError(Exception):
    """Backend failure that is not a constraint violation."""


class DuplicateRecord(StoreError):
    def __init__(self, table: str, index: Sequence[str]) -> None:
        self.table = table
        self.index = tuple(index)
        super().__init__(f"duplicate {table} record on ({', '.join(self.index)})")


def table_spec(table: str) -> TableSpec:
    try:
        return TABLES[table]
    except KeyError as exc:
        raise StoreError(f"unknown table {table!r}") from exc


def check_columns(spec: TableSpec, names: Sequence[str]) -> None:
    unknown = [name for name in names if name not in spec.columns]
    if unknown:
        raise StoreError(f"unknown column(s) for {spec.name}: {', '.join(unknown)}")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def prepare_insert(spec: TableSpec, values: Mapping[str, Any]) -> Row:
    """Fill in id and timestamps and validate column names."""
    row = dict(values)
    check_columns(spec, list(row))
    now = utcnow()
    row.setdefault("id", str(uuid.uuid4()))
    row.setdefault("created_at", now)
    if spec.has_updated_at:
        row.setdefault("updated_at", now)
    return row


def parse_order(spec: TableSpec, order_by: Sequence[str]) -> list[tuple[str, bool]]:
    """Turn ``["position", "-created_at"]`` into ``[(column, descending)]``."""
    parsed: list[tuple[str, bool]] = []
    for item in order_by:
        descending = item.startswith("-")
        column = item[1:] if descending else item
        check_columns(spec, [column])
        parsed.append((column, descending))
    return parsed


class RecordStore(Protocol):
    async def open(self) -> None: ...

    async def close(self) -> None: ...

    async def ping(self) -> None: ...

    async def get(self, table: str, record_id: str) -> Row | None: ...

    async def find_one(self, table: str, **filters: Any) -> Row | None: ...

    async def find(
        self,
        table: str,
        filters: Mapping[str, Any] | None = None,
        *,
        order_by: Sequence[str] = (),
        limit: int | None = None,
    ) -> list[Row]: ...

    async def count(self, table: str, filters: Mapping[str, Any] | None = None) -> int: ...

    async def insert(self, table: str, values: Mapping[str, Any]) -> Row: ...

    async def update(
        self, table: str, record_id: str, values: Mapping[str, Any]
    ) -> Row | None: ...

    async def increment(
        self,
        table: str,
        record_id: str,
        column: str,
        delta: int,
        *,
        minimum: int | None = None,
    ) -> Row | None: ...

    async def delete(self, table: str, record_id: str) -> bool: ...


__all__ = [
    "DuplicateRecord",
    "RecordStore",
    "Row",
    "StoreError",
    "TABLES",
    "TableSpec",
    "check_columns",
    "parse_order",
    "prepare_insert",
    "table_spec",
    "utcnow",
]
