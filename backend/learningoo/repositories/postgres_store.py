from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Mapping, Sequence

import psycopg
from psycopg import errors, sql
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb
from psycopg_pool import AsyncConnectionPool

from .store import (
    DuplicateRecord,
    Row,
    StoreError,
    TableSpec,
    check_columns,
    parse_order,
    prepare_insert,
    table_spec,
)

logger = logging.getLogger(__name__)

SCHEMA = "app"


def _table(spec: TableSpec) -> sql.Composed:
    return sql.SQL("{}.{}").format(sql.Identifier(SCHEMA), sql.Identifier(spec.name))


def _adapt(spec: TableSpec, column: str, value: Any) -> Any:
    if column in spec.json_columns and value is not None:
        return Jsonb(value)
    return value


def _where(filters: Mapping[str, Any]) -> tuple[sql.Composable, list[Any]]:
    if not filters:
        return sql.SQL("TRUE"), []
    clauses: list[sql.Composable] = []
    params: list[Any] = []
    for column, value in filters.items():
        if value is None:
            clauses.append(sql.SQL("{} IS NULL").format(sql.Identifier(column)))
        else:
            clauses.append(sql.SQL("{} = %s").format(sql.Identifier(column)))
            params.append(value)
    return sql.SQL(" AND ").join(clauses), params


def _unique_index_for(spec: TableSpec, constraint: str | None) -> tuple[str, ...]:
    for index in spec.unique:
        if constraint == f"{spec.name}_{'_'.join(index)}_key":
            return index
    return (constraint or "unknown",)


class PostgresStore:
    """Record store over a psycopg async pool; one connection and one commit per call."""

    def __init__(self, conninfo: str, *, min_size: int = 1, max_size: int = 10) -> None:
        self.pool = AsyncConnectionPool(
            conninfo,
            min_size=min_size,
            max_size=max_size,
            open=False,
        )

    async def open(self) -> None:
        if self.pool.closed:
            await self.pool.open(wait=True)

    async def close(self) -> None:
        await self.pool.close()

    @asynccontextmanager
    async def _cursor(self, spec: TableSpec | None = None) -> AsyncIterator[psycopg.AsyncCursor]:
        try:
            async with self.pool.connection() as conn:  # type: ignore[attr-defined]
                async with conn.cursor(row_factory=dict_row) as cur:  # type: ignore[attr-defined]
                    yield cur
                await conn.commit()
        except errors.UniqueViolation as exc:
            constraint = exc.diag.constraint_name if exc.diag else None
            if spec is None:
                raise DuplicateRecord("unknown", (constraint or "unknown",)) from exc
            raise DuplicateRecord(spec.name, _unique_index_for(spec, constraint)) from exc
        except psycopg.Error as exc:
            logger.exception("Record store failure")
            raise StoreError(str(exc)) from exc

    async def ping(self) -> None:
        async with self._cursor() as cur:
            await cur.execute("SELECT 1")
            await cur.fetchone()

    async def get(self, table: str, record_id: str) -> Row | None:
        spec = table_spec(table)
        query = sql.SQL("SELECT * FROM {} WHERE id = %s LIMIT 1").format(_table(spec))
        async with self._cursor(spec) as cur:
            await cur.execute(query, (record_id,))
            return await cur.fetchone()

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
        spec = table_spec(table)
        filters = filters or {}
        check_columns(spec, list(filters))
        where, params = _where(filters)
        query = sql.SQL("SELECT * FROM {} WHERE {}").format(_table(spec), where)
        ordering = parse_order(spec, order_by)
        if ordering:
            query += sql.SQL(" ORDER BY ") + sql.SQL(", ").join(
                sql.SQL("{} {}").format(
                    sql.Identifier(column), sql.SQL("DESC" if descending else "ASC")
                )
                for column, descending in ordering
            )
        if limit is not None:
            query += sql.SQL(" LIMIT %s")
            params.append(int(limit))
        async with self._cursor(spec) as cur:
            await cur.execute(query, params)
            return list(await cur.fetchall())

    async def count(self, table: str, filters: Mapping[str, Any] | None = None) -> int:
        spec = table_spec(table)
        filters = filters or {}
        check_columns(spec, list(filters))
        where, params = _where(filters)
        query = sql.SQL("SELECT COUNT(*)::int AS count FROM {} WHERE {}").format(
            _table(spec), where
        )
        async with self._cursor(spec) as cur:
            await cur.execute(query, params)
            row = await cur.fetchone()
        return int((row or {}).get("count") or 0)

    async def insert(self, table: str, values: Mapping[str, Any]) -> Row:
        spec = table_spec(table)
        row = prepare_insert(spec, values)
        columns = list(row)
        query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING *").format(
            _table(spec),
            sql.SQL(", ").join(sql.Identifier(column) for column in columns),
            sql.SQL(", ").join(sql.Placeholder() for _ in columns),
        )
        params = [_adapt(spec, column, row[column]) for column in columns]
        async with self._cursor(spec) as cur:
            await cur.execute(query, params)
            inserted = await cur.fetchone()
        if inserted is None:
            raise StoreError(f"insert into {spec.name} returned no row")
        return inserted

    async def update(
        self, table: str, record_id: str, values: Mapping[str, Any]
    ) -> Row | None:
        spec = table_spec(table)
        changes = dict(values)
        check_columns(spec, list(changes))
        if "id" in changes:
            raise StoreError("record ids are immutable")
        if not changes:
            return await self.get(table, record_id)
        assignments = [
            sql.SQL("{} = %s").format(sql.Identifier(column)) for column in changes
        ]
        if spec.has_updated_at:
            assignments.append(sql.SQL("updated_at = now()"))
        query = sql.SQL("UPDATE {} SET {} WHERE id = %s RETURNING *").format(
            _table(spec), sql.SQL(", ").join(assignments)
        )
        params = [_adapt(spec, column, value) for column, value in changes.items()]
        params.append(record_id)
        async with self._cursor(spec) as cur:
            await cur.execute(query, params)
            return await cur.fetchone()

    async def increment(
        self,
        table: str,
        record_id: str,
        column: str,
        delta: int,
        *,
        minimum: int | None = None,
    ) -> Row | None:
        spec = table_spec(table)
        check_columns(spec, [column])
        target = sql.Identifier(column)
        assignments = [sql.SQL("{} = {} + %s").format(target, target)]
        if spec.has_updated_at:
            assignments.append(sql.SQL("updated_at = now()"))
        query = sql.SQL("UPDATE {} SET {} WHERE id = %s").format(
            _table(spec), sql.SQL(", ").join(assignments)
        )
        params: list[Any] = [int(delta), record_id]
        if minimum is not None:
            query += sql.SQL(" AND {} + %s >= %s").format(target)
            params.extend([int(delta), int(minimum)])
        query += sql.SQL(" RETURNING *")
        async with self._cursor(spec) as cur:
            await cur.execute(query, params)
            return await cur.fetchone()

    async def delete(self, table: str, record_id: str) -> bool:
        spec = table_spec(table)
        query = sql.SQL("DELETE FROM {} WHERE id = %s RETURNING id").format(_table(spec))
        async with self._cursor(spec) as cur:
            await cur.execute(query, (record_id,))
            return (await cur.fetchone()) is not None


__all__ = ["PostgresStore"]
