"""The `query` command: policy engine → execute pipeline.

Allowed statements are executed with the rewritten (row-limited) SQL.
Refusals are reported, logged, and never reach the database.
"""

from __future__ import annotations

import asyncio
import json

import click

from querywarden.adapters._base import AdapterError, ConnectionConfig
from querywarden.adapters._registry import get_adapter
from querywarden.cli._shared import (
    AUTO_LABELS,
    emit_output,
    parse_db,
    policy_mode,
    resolve_limits,
    resolve_sql_stdin,
)
from querywarden.policy import PolicyMode, run_policy
from querywarden.querylog import cleanup_old_logs, log_policy_result


async def _run_query(
    sql: str,
    config: ConnectionConfig,
    *,
    mode: PolicyMode,
    confirm_unsafe: bool,
    dialect: str,
    limit: int,
    offset: int,
    output_format: str,
) -> int:
    """Run the pipeline: policy → execute. Returns exit code."""
    adapter_cls = get_adapter(config.db_type)
    policy_result = run_policy(
        sql,
        mode=mode,
        confirm_unsafe=confirm_unsafe,
        limit=limit,
        offset=offset,
        dialect=dialect,
    )

    if policy_result.blocked:
        emit_output(output_format, policy_result)
        log_policy_result(policy_result, db=config.name, dialect=dialect)
        return 1

    adapter = adapter_cls()
    await adapter.connect(config)
    try:
        exec_result = await adapter.execute(
            policy_result.effective_sql, labels=AUTO_LABELS, max_rows=limit,
        )
    finally:
        await adapter.close()

    emit_output(output_format, policy_result, exec_result=exec_result)
    log_policy_result(
        policy_result,
        db=config.name,
        dialect=dialect,
        rows_returned=exec_result.row_count,
        rows_affected=exec_result.rows_affected,
        duration_ms=exec_result.duration_ms,
        labels=AUTO_LABELS,
    )
    return 0


@click.command()
@click.argument("sql", required=False, default=None)
@click.option("--from-stdin", is_flag=True, help="Read SQL from stdin instead of argument.")
@click.option(
    "--db", required=True, envvar="QUERYWARDEN_DB", help="Connection name or type:key=val.",
)
@click.option("--dialect", default=None, help="SQL dialect (defaults to the database's own).")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "text", "csv"]),
    default="json",
    help="Output format.",
)
@click.option("--max-rows", type=int, default=None, help="Maximum rows to return.")
@click.option("--page-size", type=int, default=None, help="Rows per page.")
@click.option("--offset", type=click.IntRange(min=0), default=0, help="Rows to skip.")
@click.option("--confirm-unsafe", is_flag=True, help="Confirm DELETE/TRUNCATE statements.")
@click.option("--read-only", is_flag=True, help="Block every statement except SELECT.")
def query(
    sql: str | None,
    from_stdin: bool,
    db: str,
    dialect: str | None,
    output_format: str,
    max_rows: int | None,
    page_size: int | None,
    offset: int,
    confirm_unsafe: bool,
    read_only: bool,
) -> None:
    """Execute a guarded SQL statement.

    Reads are bounded to min(max-rows, page-size), each clamped to the
    configured ceiling. DELETE/TRUNCATE need --confirm-unsafe; DDL and
    administrative statements are always refused.
    """
    cleanup_old_logs()
    sql = resolve_sql_stdin(sql, from_stdin)
    limits = resolve_limits("query")
    limit = min(limits.clamp(max_rows), limits.clamp(page_size))

    try:
        config = parse_db(db)
    except click.BadParameter as e:
        click.echo(f"error: {e.format_message()}", err=True)
        raise SystemExit(1) from e

    try:
        # Use adapter's dialect if none specified.
        if dialect is None:
            dialect = get_adapter(config.db_type)().dialect()

        exit_code = asyncio.run(
            _run_query(
                sql,
                config,
                mode=policy_mode(read_only),
                confirm_unsafe=confirm_unsafe,
                dialect=dialect,
                limit=limit,
                offset=offset,
                output_format=output_format,
            )
        )
    except AdapterError as e:
        if output_format == "json":
            click.echo(json.dumps({"decision": "deny", "blocked": True, "error": str(e)}, indent=2))
        else:
            click.echo(f"error: {e}", err=True)
        raise SystemExit(1) from e

    if exit_code != 0:
        raise SystemExit(exit_code)
