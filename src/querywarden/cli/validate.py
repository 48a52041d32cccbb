"""The `validate` command: check SQL through the policy engine without executing."""

from __future__ import annotations

import click

from querywarden.cli._output import format_result
from querywarden.cli._shared import policy_mode, resolve_limits, resolve_sql_stdin
from querywarden.policy import run_policy


@click.command()
@click.argument("sql", required=False, default=None)
@click.option("--from-stdin", is_flag=True, help="Read SQL from stdin instead of argument.")
@click.option(
    "--dialect",
    default="tsql",
    show_default=True,
    help="SQL dialect; tsql rewrites with TOP, others with LIMIT.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "text"]),
    default="text",
    help="Output format.",
)
@click.option(
    "--limit",
    type=int,
    default=None,
    help="Row limit for reads (default from config, 0 to disable).",
)
@click.option("--offset", type=click.IntRange(min=0), default=0, help="Rows to skip.")
@click.option("--confirm-unsafe", is_flag=True, help="Confirm DELETE/TRUNCATE statements.")
@click.option("--read-only", is_flag=True, help="Block every statement except SELECT.")
def validate(
    sql: str | None,
    from_stdin: bool,
    dialect: str,
    output_format: str,
    limit: int | None,
    offset: int,
    confirm_unsafe: bool,
    read_only: bool,
) -> None:
    """Validate SQL through the policy engine without executing.

    Exits 1 unless the statement is allowed as submitted.
    """
    sql = resolve_sql_stdin(sql, from_stdin)
    effective_limit = None if limit == 0 else resolve_limits("validate").clamp(limit)

    result = run_policy(
        sql,
        mode=policy_mode(read_only),
        confirm_unsafe=confirm_unsafe,
        limit=effective_limit,
        offset=offset,
        dialect=dialect,
    )
    output = format_result(result, output_format=output_format)
    if output:
        click.echo(output)
    if result.blocked:
        raise SystemExit(1)
