"""PostgreSQL adapter — labels via SQL comments + application_name."""

from __future__ import annotations

import time

import psycopg

from querywarden.adapters._base import (
    AdapterError,
    ColumnInfo,
    ConnectionConfig,
    DatabaseType,
    ExecutionResult,
    TableInfo,
    label_comment,
)


class PostgresAdapter:
    """PostgreSQL adapter using psycopg (async)."""

    def __init__(self) -> None:
        self._conn: psycopg.AsyncConnection | None = None

    async def connect(self, config: ConnectionConfig) -> None:
        dsn = config.params.get("dsn")
        if not dsn:
            raise AdapterError("PostgreSQL requires 'dsn' in connection params")
        try:
            self._conn = await psycopg.AsyncConnection.connect(
                dsn, autocommit=True, application_name="querywarden"
            )
        except Exception as e:
            raise AdapterError(f"PostgreSQL connection failed: {e}") from e

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None

    def _ensure_conn(self) -> psycopg.AsyncConnection:
        if self._conn is None:
            raise AdapterError("Not connected. Call connect() first.")
        return self._conn

    async def execute(
        self,
        sql: str,
        *,
        labels: dict[str, str] | None = None,
        max_rows: int | None = None,
    ) -> ExecutionResult:
        conn = self._ensure_conn()

        # Label via SQL comment prefix.
        sql = label_comment(labels) + sql

        rows_affected = None
        t0 = time.monotonic()
        try:
            async with conn.cursor() as cur:
                await cur.execute(sql)
                if cur.description:
                    columns = [desc.name for desc in cur.description]
                    if max_rows is None:
                        rows_raw = await cur.fetchall()
                    else:
                        rows_raw = await cur.fetchmany(max_rows + 1)
                else:
                    columns, rows_raw = [], []
                    if cur.rowcount >= 0:
                        rows_affected = cur.rowcount
        except Exception as e:
            raise AdapterError(f"PostgreSQL execution failed: {e}") from e
        duration_ms = (time.monotonic() - t0) * 1000

        truncated = max_rows is not None and len(rows_raw) > max_rows
        if truncated:
            rows_raw = rows_raw[:max_rows]
        rows = [dict(zip(columns, row, strict=True)) for row in rows_raw]

        return ExecutionResult(
            columns=columns,
            rows=rows,
            row_count=len(rows),
            rows_affected=rows_affected,
            truncated=truncated,
            duration_ms=duration_ms,
        )

    async def list_schemas(self) -> list[str]:
        conn = self._ensure_conn()
        try:
            async with conn.cursor() as cur:
                await cur.execute(
                    "SELECT nspname FROM pg_catalog.pg_namespace "
                    "WHERE nspname <> 'information_schema' AND nspname NOT LIKE 'pg\\_%' "
                    "ORDER BY nspname"
                )
                rows = await cur.fetchall()
        except Exception as e:
            raise AdapterError(f"PostgreSQL introspection failed: {e}") from e
        return [name for (name,) in rows]

    async def list_tables(self, schema: str) -> list[TableInfo]:
        conn = self._ensure_conn()
        try:
            async with conn.cursor() as cur:
                await cur.execute(
                    "SELECT table_name FROM information_schema.tables "
                    "WHERE table_schema = %s ORDER BY table_name",
                    (schema,),
                )
                rows = await cur.fetchall()
        except Exception as e:
            raise AdapterError(f"PostgreSQL introspection failed: {e}") from e
        return [TableInfo(schema=schema, name=name) for (name,) in rows]

    async def describe_table(self, table: str, *, schema: str | None = None) -> TableInfo:
        conn = self._ensure_conn()
        schema = schema or "public"
        try:
            async with conn.cursor() as cur:
                await cur.execute(
                    "SELECT column_name, data_type, is_nullable "
                    "FROM information_schema.columns "
                    "WHERE table_schema = %s AND table_name = %s "
                    "ORDER BY ordinal_position",
                    (schema, table),
                )
                col_rows = await cur.fetchall()
                await cur.execute(
                    "SELECT kcu.column_name "
                    "FROM information_schema.table_constraints tc "
                    "JOIN information_schema.key_column_usage kcu "
                    "ON tc.constraint_name = kcu.constraint_name "
                    "AND tc.table_schema = kcu.table_schema "
                    "AND tc.table_name = kcu.table_name "
                    "WHERE tc.constraint_type = 'PRIMARY KEY' "
                    "AND tc.table_schema = %s AND tc.table_name = %s",
                    (schema, table),
                )
                pk_rows = await cur.fetchall()
        except Exception as e:
            raise AdapterError(f"PostgreSQL introspection failed: {e}") from e

        if not col_rows:
            raise AdapterError(f"Table '{schema}.{table}' not found")

        primary_key = {name for (name,) in pk_rows}
        columns = [
            ColumnInfo(
                name=col_name,
                data_type=data_type,
                is_nullable=(nullable == "YES"),
                is_primary_key=col_name in primary_key,
            )
            for col_name, data_type, nullable in col_rows
        ]
        return TableInfo(schema=schema, name=table, columns=columns)

    def db_type(self) -> DatabaseType:
        return DatabaseType.POSTGRES

    def dialect(self) -> str:
        return "postgres"
