"""Process-local record store used for local development and the test-suite."""

from __future__ import annotations

import asyncio
import copy
from typing import Any, Mapping, Sequence

from .store import (
    TABLES,
    DuplicateRecord,
    Row,
    StoreError,
    TableSpec,
    check_columns,
    parse_order,
    prepare_insert,
    table_spec,
    utcnow,
)


def _sort_key(column: str):
    def key(row: Row):
        value = row.get(column)
        return (value is None, value if value is not None else 0)

    return key


class MemoryStore:
    """Dict-backed store honouring the same unique indexes as the SQL schema.

    Each call yields to the event loop before touching data, so concurrent
    coroutines interleave between calls the way they would against a
    networked database. The mutation itself runs without suspension and is
    therefore atomic per document.
    """

    def __init__(self) -> None:
        self._tables: dict[str, dict[str, Row]] = {name: {} for name in TABLES}
        self.closed = True

    async def open(self) -> None:
        self.closed = False

    async def close(self) -> None:
        self.closed = True

    async def ping(self) -> None:
        await asyncio.sleep(0)

    def _rows(self, table: str) -> tuple[TableSpec, dict[str, Row]]:
        spec = table_spec(table)
        return spec, self._tables[spec.name]

    @staticmethod
    def _matches(row: Row, filters: Mapping[str, Any]) -> bool:
        return all(row.get(column) == value for column, value in filters.items())

    def _check_unique(self, spec: TableSpec, rows: dict[str, Row], candidate: Row) -> None:
        for index in spec.unique:
            key = tuple(candidate.get(column) for column in index)
            if any(value is None for value in key):
                continue
            for other in rows.values():
                if other["id"] == candidate["id"]:
                    continue
                if tuple(other.get(column) for column in index) == key:
                    raise DuplicateRecord(spec.name, index)

    async def get(self, table: str, record_id: str) -> Row | None:
        await asyncio.sleep(0)
        _, rows = self._rows(table)
        row = rows.get(record_id)
        return copy.deepcopy(row) if row is not None else None

    async def find_one(self, table: str, **filters: Any) -> Row | None:
        found = await self.find(table, filters, limit=1)
        return found[0] if found else None

    async def find(
        self,
        table: str,
        filters: Mapping[str, Any] | None = None,
        *,
        order_by: Sequence[str] = (),
        limit: int | None = None,
    ) -> list[Row]:
        await asyncio.sleep(0)
        spec, rows = self._rows(table)
        filters = filters or {}
        check_columns(spec, list(filters))
        ordering = parse_order(spec, order_by)
        # dict preserves insertion order, which breaks ties.
        matched = [row for row in rows.values() if self._matches(row, filters)]
        for column, descending in reversed(ordering):
            matched.sort(key=_sort_key(column), reverse=descending)
        if limit is not None:
            matched = matched[:limit]
        return [copy.deepcopy(row) for row in matched]

    async def count(self, table: str, filters: Mapping[str, Any] | None = None) -> int:
        await asyncio.sleep(0)
        spec, rows = self._rows(table)
        filters = filters or {}
        check_columns(spec, list(filters))
        return sum(1 for row in rows.values() if self._matches(row, filters))

    async def insert(self, table: str, values: Mapping[str, Any]) -> Row:
        await asyncio.sleep(0)
        spec, rows = self._rows(table)
        row = prepare_insert(spec, values)
        for column in spec.columns:
            row.setdefault(column, None)
        if row["id"] in rows:
            raise DuplicateRecord(spec.name, ("id",))
        self._check_unique(spec, rows, row)
        rows[row["id"]] = copy.deepcopy(row)
        return row

    async def update(
        self, table: str, record_id: str, values: Mapping[str, Any]
    ) -> Row | None:
        await asyncio.sleep(0)
        spec, rows = self._rows(table)
        changes = dict(values)
        check_columns(spec, list(changes))
        if "id" in changes:
            raise StoreError("record ids are immutable")
        current = rows.get(record_id)
        if current is None:
            return None
        candidate = {**current, **copy.deepcopy(changes)}
        if spec.has_updated_at:
            candidate["updated_at"] = utcnow()
        self._check_unique(spec, rows, candidate)
        rows[record_id] = candidate
        return copy.deepcopy(candidate)

    async def increment(
        self,
        table: str,
        record_id: str,
        column: str,
        delta: int,
        *,
        minimum: int | None = None,
    ) -> Row | None:
        await asyncio.sleep(0)
        spec, rows = self._rows(table)
        check_columns(spec, [column])
        current = rows.get(record_id)
        if current is None:
            return None
        next_value = int(current.get(column) or 0) + int(delta)
        if minimum is not None and next_value < minimum:
            return None
        current[column] = next_value
        if spec.has_updated_at:
            current["updated_at"] = utcnow()
        return copy.deepcopy(current)

    async def delete(self, table: str, record_id: str) -> bool:
        await asyncio.sleep(0)
        _, rows = self._rows(table)
        return rows.pop(record_id, None) is not None


__all__ = ["MemoryStore"]
