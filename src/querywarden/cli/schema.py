"""The `schema` command: drill-down introspection (schemas → tables → columns).

Introspection runs fixed catalog queries through the adapter, never caller SQL,
so it does not pass through the policy engine.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import TypeVar

import click

from querywarden.adapters._base import AdapterError, ConnectionConfig, DatabaseAdapter, TableInfo
from querywarden.adapters._registry import get_adapter
from querywarden.cli._shared import parse_db

T = TypeVar("T")


async def _with_adapter(
    config: ConnectionConfig, action: Callable[[DatabaseAdapter], Awaitable[T]]
) -> T:
    adapter = get_adapter(config.db_type)()
    await adapter.connect(config)
    try:
        return await action(adapter)
    finally:
        await adapter.close()


def _run(config: ConnectionConfig, action: Callable[[DatabaseAdapter], Awaitable[T]],
         output_format: str) -> T:
    try:
        return asyncio.run(_with_adapter(config, action))
    except AdapterError as e:
        if output_format == "json":
            click.echo(json.dumps({"error": str(e)}, indent=2))
        else:
            click.echo(f"error: {e}", err=True)
        raise SystemExit(1) from None


def _table_to_dict(info: TableInfo) -> dict[str, object]:
    return {
        "schema": info.schema,
        "table": info.name,
        "columns": [
            {
                "name": c.name,
                "type": c.data_type,
                "nullable": c.is_nullable,
                **({"primary_key": True} if c.is_primary_key else {}),
            }
            for c in info.columns
        ],
    }


@click.group("schema")
def schema() -> None:
    """Browse database schemas, tables, and columns."""


@schema.command("ls")
@click.argument("schema_name", required=False, default=None)
@click.option("--db", required=True, envvar="QUERYWARDEN_DB", help="Connection name or type:key=val.")
@click.option("--format", "output_format", type=click.Choice(["json", "text"]), default="json")
def ls(schema_name: str | None, db: str, output_format: str) -> None:
    """List schemas, or tables within a schema."""
    config = parse_db(db)

    if schema_name:
        tables = _run(config, lambda a: a.list_tables(schema_name), output_format)
        if output_format == "json":
            click.echo(json.dumps({
                "schema": schema_name,
                "tables": [t.name for t in tables],
            }, indent=2))
        elif not tables:
            click.echo(f"No tables in '{schema_name}'.")
        else:
            for t in tables:
                click.echo(t.name)
        return

    schemas = _run(config, lambda a: a.list_schemas(), output_format)
    if output_format == "json":
        click.echo(json.dumps({"schemas": schemas}, indent=2))
    elif not schemas:
        click.echo("No schemas found.")
    else:
        for s in schemas:
            click.echo(s)


@schema.command("show")
@click.argument("table_ref")
@click.option("--db", required=True, envvar="QUERYWARDEN_DB", help="Connection name or type:key=val.")
@click.option("--format", "output_format", type=click.Choice(["json", "text"]), default="json")
def show(table_ref: str, db: str, output_format: str) -> None:
    """Show columns of a table. TABLE_REF is schema.table or just table."""
    config = parse_db(db)

    if "." in table_ref:
        schema_name, table_name = table_ref.split(".", 1)
    else:
        schema_name, table_name = None, table_ref

    info = _run(
        config, lambda a: a.describe_table(table_name, schema=schema_name), output_format
    )
    if output_format == "json":
        click.echo(json.dumps(_table_to_dict(info), indent=2))
        return

    click.echo(f"{info.schema}.{info.name}")
    for c in info.columns:
        nullable = "NULL" if c.is_nullable else "NOT NULL"
        line = f"  {c.name}  {c.data_type}  {nullable}"
        if c.is_primary_key:
            line += "  PRIMARY KEY"
        click.echo(line)
