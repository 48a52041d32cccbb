"""Shared output formatting for CLI commands."""

from __future__ import annotations

import csv
import io
import json

from querywarden.adapters._base import ExecutionResult
from querywarden.diagnostics.render import render_json, render_text
from querywarden.diagnostics.types import DiagnosticResult


def decision_header(result: DiagnosticResult) -> str | None:
    """One-line summary of a refusal, or None when the statement is allowed."""
    if result.decision == "ask":
        return (
            f"decision: ask ({result.tag}); "
            "re-run with --confirm-unsafe to proceed"
        )
    if result.decision == "deny":
        return f"decision: deny ({result.tag}); confirmation cannot override this"
    return None


def format_result(result: DiagnosticResult, *, output_format: str = "text") -> str:
    if output_format == "json":
        return json.dumps(render_json(result), indent=2)
    body = render_text(result)
    header = decision_header(result)
    if header is None:
        return body
    return f"{header}\n{body}" if body else header


def format_execution_result(result: ExecutionResult, *, output_format: str = "text") -> str:
    if output_format == "json":
        return json.dumps(execution_to_dict(result), indent=2, default=str)

    if output_format == "csv":
        buf = io.StringIO()
        writer = csv.DictWriter(buf, fieldnames=result.columns, lineterminator="\n")
        writer.writeheader()
        writer.writerows(result.rows)
        return buf.getvalue().rstrip("\n")

    # Text format: simple tabular output.
    lines: list[str] = []
    if result.columns:
        lines.append(" | ".join(result.columns))
        lines.append("-+-".join("-" * max(len(c), 5) for c in result.columns))
        for row in result.rows:
            lines.append(" | ".join(str(row.get(c, "")) for c in result.columns))

    duration = f", {result.duration_ms:.0f}ms" if result.duration_ms is not None else ""
    if result.rows_affected is not None:
        lines.append(f"\n({result.rows_affected} rows affected{duration})")
    else:
        more = ", more available" if result.truncated else ""
        lines.append(f"\n({result.row_count} rows{more}{duration})")
    return "\n".join(lines)


def execution_to_dict(result: ExecutionResult) -> dict[str, object]:
    data: dict[str, object] = {
        "columns": result.columns,
        "rows": result.rows,
        "row_count": result.row_count,
        "truncated": result.truncated,
        "duration_ms": result.duration_ms,
    }
    if result.rows_affected is not None:
        data["rows_affected"] = result.rows_affected
    return data
