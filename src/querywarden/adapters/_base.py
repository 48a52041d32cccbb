"""Database adapter protocol — the boundary between the policy core and drivers."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


class DatabaseType(enum.Enum):
    POSTGRES = "postgres"
    DUCKDB = "duckdb"


@dataclass
class ConnectionConfig:
    name: str
    db_type: DatabaseType
    params: dict[str, str] = field(default_factory=dict)


@dataclass
class ExecutionResult:
    """Query execution result."""

    columns: list[str]
    rows: list[dict[str, object]]
    row_count: int
    rows_affected: int | None = None  # DML only, when the driver reports it
    truncated: bool = False  # more rows were available than max_rows
    duration_ms: float | None = None


class AdapterError(Exception):
    """Raised by adapters for connection/execution failures."""


@dataclass
class ColumnInfo:
    name: str
    data_type: str
    is_nullable: bool = True
    is_primary_key: bool = False


@dataclass
class TableInfo:
    schema: str
    name: str
    columns: list[ColumnInfo] = field(default_factory=list)


def label_comment(labels: dict[str, str] | None) -> str:
    """Leading SQL comment carrying execution labels, or an empty string."""
    if not labels:
        return ""
    label_str = ", ".join(f"{k}={v}" for k, v in labels.items())
    # A label must not be able to close the comment early.
    label_str = label_str.replace("*/", "* /")
    return f"/* querywarden: {label_str} */ "


@runtime_checkable
class DatabaseAdapter(Protocol):
    async def connect(self, config: ConnectionConfig) -> None: ...
    async def close(self) -> None: ...
    async def execute(
        self,
        sql: str,
        *,
        labels: dict[str, str] | None = None,
        max_rows: int | None = None,
    ) -> ExecutionResult: ...
    async def list_schemas(self) -> list[str]: ...
    async def list_tables(self, schema: str) -> list[TableInfo]: ...
    async def describe_table(self, table: str, *, schema: str | None = None) -> TableInfo: ...
    def db_type(self) -> DatabaseType: ...
    def dialect(self) -> str: ...
