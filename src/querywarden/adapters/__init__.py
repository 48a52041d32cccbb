"""Database adapters — implementations of the DatabaseAdapter protocol."""

from querywarden.adapters._base import (
    AdapterError,
    ColumnInfo,
    ConnectionConfig,
    DatabaseAdapter,
    DatabaseType,
    ExecutionResult,
    TableInfo,
)

__all__ = [
    "AdapterError",
    "ColumnInfo",
    "ConnectionConfig",
    "DatabaseAdapter",
    "DatabaseType",
    "ExecutionResult",
    "TableInfo",
]
