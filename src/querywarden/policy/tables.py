"""CTE-aware table extraction using sqlglot scope analysis.

Reporting only: the tables end up in the policy result and the query log, and
never take part in the allow/block decision.
"""

from __future__ import annotations

import sqlglot
from sqlglot import exp
from sqlglot.optimizer.scope import traverse_scope

from querywarden.policy.classify import MAX_SQL_LENGTH


def extract_tables(sql: str, dialect: str | None = None) -> list[str]:
    """Extract referenced physical table names from a SQL string.

    Resolves CTEs, handles joins, subqueries, set operations and DML targets.
    Returns a sorted list (schema.table when a schema is present), or an empty
    list when the text cannot be parsed.
    """
    if not sql.strip() or len(sql) > MAX_SQL_LENGTH:
        return []
    try:
        statement = sqlglot.parse_one(sql, dialect=dialect)
    except (sqlglot.errors.SqlglotError, RecursionError):
        # Deeply nested input exhausts the parser's recursion.
        return []
    if statement is None:
        return []
    return _statement_tables(statement)


def _statement_tables(statement: exp.Expression) -> list[str]:
    cte_names: set[str] = set()
    source_tables: set[str] = set()

    try:
        scopes = list(traverse_scope(statement))
    except Exception:
        # Scope analysis fails on DDL and other non-scoped statements.
        return _walk_tables(statement)

    if not scopes:
        return _walk_tables(statement)

    for scope in scopes:
        if scope.is_cte:
            cte_names.add(scope.expression.parent.alias)

    for scope in scopes:
        for table in scope.tables:
            if table.name not in cte_names:
                source_tables.add(_qualified_name(table))

    # DML targets (INSERT INTO, DELETE FROM, UPDATE) aren't in scopes.
    dml_types = (exp.Insert, exp.Delete, exp.Update)
    for node in (statement.find(t) for t in dml_types):
        if node is not None:
            table = node.find(exp.Table)
            if table is not None and table.name not in cte_names:
                source_tables.add(_qualified_name(table))

    return sorted(source_tables)


def _walk_tables(statement: exp.Expression) -> list[str]:
    tables: set[str] = set()
    for node in statement.walk():
        if isinstance(node, exp.Table) and node.name:
            tables.add(_qualified_name(node))
    return sorted(tables)


def _qualified_name(table: exp.Table) -> str:
    if table.db:
        return f"{table.db}.{table.name}"
    return table.name
