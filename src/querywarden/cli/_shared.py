"""Shared helpers for the validate and query commands."""

from __future__ import annotations

import json
import sys

import click

from querywarden.adapters._base import ConnectionConfig, DatabaseType, ExecutionResult
from querywarden.cli._output import execution_to_dict, format_execution_result, format_result
from querywarden.config import ConfigError, Limits, load_limits
from querywarden.connections import get_connection
from querywarden.diagnostics.render import render_json
from querywarden.diagnostics.types import DiagnosticResult
from querywarden.policy import PolicyMode

AUTO_LABELS = {"tool": "querywarden"}


def resolve_sql_stdin(sql: str | None, from_stdin: bool) -> str:
    """Resolve SQL from positional argument or stdin. Exactly one source required."""
    if sql and from_stdin:
        raise click.UsageError("Provide SQL as an argument or --from-stdin, not both.")
    if from_stdin:
        if sys.stdin.isatty():
            raise click.UsageError("--from-stdin requires piped input (stdin is a terminal).")
        text = sys.stdin.read().strip()
        if not text:
            raise click.UsageError("--from-stdin: stdin was empty.")
        return text
    if not sql or not sql.strip():
        raise click.UsageError("Missing argument 'SQL'. Provide SQL or use --from-stdin.")
    return sql


def resolve_limits(command: str) -> Limits:
    """Load configured row limits, turning config problems into CLI errors."""
    try:
        return load_limits(command)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e


def policy_mode(read_only: bool) -> PolicyMode:
    return PolicyMode.READ_ONLY if read_only else PolicyMode.DML


def parse_db(value: str) -> ConnectionConfig:
    """Resolve --db value: try named connection first, fall back to 'type:key=val' format."""
    config = get_connection(value)
    if config is not None:
        return config

    # Raw format: type:key=val,key=val
    if ":" not in value:
        raise click.BadParameter(
            f"Connection '{value}' not found in ~/.querywarden/connections.toml "
            f"and not in 'type:key=val' format.\n"
            f"  Add it: querywarden connect add {value} <type> <param>=<val>",
            param_hint="'--db'",
        )
    db_type_str, params_str = value.split(":", 1)

    try:
        db_type = DatabaseType(db_type_str)
    except ValueError as e:
        valid = ", ".join(t.value for t in DatabaseType)
        raise click.BadParameter(
            f"Unknown database type '{db_type_str}'. Valid: {valid}",
            param_hint="'--db'",
        ) from e

    params: dict[str, str] = {}
    if params_str:
        for part in params_str.split(","):
            if "=" not in part:
                raise click.BadParameter(
                    f"Expected key=value pair, got '{part}'",
                    param_hint="'--db'",
                )
            k, v = part.split("=", 1)
            params[k.strip()] = v.strip()

    return ConnectionConfig(name=db_type_str, db_type=db_type, params=params)


def emit_output(
    output_format: str,
    policy_result: DiagnosticResult,
    *,
    exec_result: ExecutionResult | None = None,
) -> None:
    """Emit a single output document (JSON, text, or CSV rows)."""
    if output_format == "json":
        envelope: dict[str, object] = render_json(policy_result)
        if exec_result is not None:
            envelope.update(execution_to_dict(exec_result))
        click.echo(json.dumps(envelope, indent=2, default=str))
        return

    if output_format == "csv":
        # Rows own stdout; diagnostics go to stderr so the CSV stays parseable.
        report = format_result(policy_result, output_format="text")
        if report:
            click.echo(report, err=True)
        if exec_result is not None and exec_result.columns:
            click.echo(format_execution_result(exec_result, output_format="csv"))
        return

    report = format_result(policy_result, output_format="text")
    if report:
        click.echo(report)
    if exec_result is not None:
        click.echo(format_execution_result(exec_result, output_format="text"))
