"""DuckDB adapter — local/in-memory, great for testing and local analytics."""

from __future__ import annotations

import time

import duckdb as _duckdb

from querywarden.adapters._base import (
    AdapterError,
    ColumnInfo,
    ConnectionConfig,
    DatabaseType,
    ExecutionResult,
    TableInfo,
    label_comment,
)


class DuckDBAdapter:
    """DuckDB adapter — in-process, no server needed."""

    def __init__(self) -> None:
        self._conn: _duckdb.DuckDBPyConnection | None = None

    async def connect(self, config: ConnectionConfig) -> None:
        path = config.params.get("path", ":memory:")
        try:
            self._conn = _duckdb.connect(
                path, config={"custom_user_agent": "querywarden"}
            )
        except Exception as e:
            raise AdapterError(f"DuckDB connection failed: {e}") from e

    async def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _ensure_conn(self) -> _duckdb.DuckDBPyConnection:
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

        # DuckDB has no native label support; prepend SQL comment.
        sql = label_comment(labels) + sql

        t0 = time.monotonic()
        try:
            result = conn.execute(sql)
            columns = [desc[0] for desc in result.description] if result.description else []
            if max_rows is None:
                rows_raw = result.fetchall()
            else:
                rows_raw = result.fetchmany(max_rows + 1)
        except Exception as e:
            raise AdapterError(f"DuckDB execution failed: {e}") from e
        duration_ms = (time.monotonic() - t0) * 1000

        truncated = max_rows is not None and len(rows_raw) > max_rows
        if truncated:
            rows_raw = rows_raw[:max_rows]
        rows = [dict(zip(columns, row, strict=True)) for row in rows_raw]

        return ExecutionResult(
            columns=columns,
            rows=rows,
            row_count=len(rows),
            truncated=truncated,
            duration_ms=duration_ms,
        )

    async def list_schemas(self) -> list[str]:
        conn = self._ensure_conn()
        try:
            rows = conn.execute(
                "SELECT DISTINCT schema_name FROM information_schema.schemata "
                "WHERE catalog_name = current_database() "
                "AND schema_name NOT IN ('information_schema', 'pg_catalog') "
                "ORDER BY schema_name"
            ).fetchall()
        except Exception as e:
            raise AdapterError(f"DuckDB introspection failed: {e}") from e
        return [name for (name,) in rows]

    async def list_tables(self, schema: str) -> list[TableInfo]:
        conn = self._ensure_conn()
        try:
            rows = conn.execute(
                "SELECT table_name FROM information_schema.tables "
                "WHERE table_catalog = current_database() AND table_schema = ? "
                "ORDER BY table_name",
                [schema],
            ).fetchall()
        except Exception as e:
            raise AdapterError(f"DuckDB introspection failed: {e}") from e
        return [TableInfo(schema=schema, name=name) for (name,) in rows]

    async def describe_table(self, table: str, *, schema: str | None = None) -> TableInfo:
        conn = self._ensure_conn()
        schema = schema or "main"
        try:
            col_rows = conn.execute(
                "SELECT column_name, data_type, is_nullable "
                "FROM information_schema.columns "
                "WHERE table_catalog = current_database() "
                "AND table_schema = ? AND table_name = ? "
                "ORDER BY ordinal_position",
                [schema, table],
            ).fetchall()
            pk_rows = conn.execute(
                "SELECT constraint_column_names FROM duckdb_constraints() "
                "WHERE database_name = current_database() "
                "AND schema_name = ? AND table_name = ? "
                "AND constraint_type = 'PRIMARY KEY'",
                [schema, table],
            ).fetchall()
        except Exception as e:
            raise AdapterError(f"DuckDB introspection failed: {e}") from e

        if not col_rows:
            raise AdapterError(f"Table '{schema}.{table}' not found")

        primary_key = {col for (names,) in pk_rows for col in names}
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
        return DatabaseType.DUCKDB

    def dialect(self) -> str:
        return "duckdb"
