"""Query logging — daily JSONL files per project, with automatic retention cleanup.

Every statement that reaches the `query` command is recorded, including the
ones the policy refused, so the log doubles as an audit trail of decisions.
"""

from __future__ import annotations

import contextlib
import json
import os
from datetime import UTC, datetime, timedelta
from pathlib import Path

from querywarden.config import STATE_DIR
from querywarden.diagnostics import DiagnosticResult

DEFAULT_RETENTION_DAYS = 30
_LOG_ROOT = STATE_DIR / "logs"


def _project_slug() -> str:
    """Encode cwd into a directory-safe slug."""
    cwd = os.getcwd()
    return cwd.replace("/", "-").lstrip("-")


def _log_dir() -> Path:
    return _LOG_ROOT / _project_slug()


def _today_file() -> Path:
    today = datetime.now(UTC).strftime("%Y-%m-%d")
    return _log_dir() / f"{today}.jsonl"


def log_query(
    *,
    sql: str,
    effective_sql: str,
    db: str | None = None,
    dialect: str | None = None,
    tables: list[str] | None = None,
    decision: str = "allow",
    category: str | None = None,
    tag: str | None = None,
    warnings: list[str] | None = None,
    diagnostics: list[str] | None = None,
    rows_returned: int | None = None,
    rows_affected: int | None = None,
    duration_ms: float | None = None,
    labels: dict[str, str] | None = None,
) -> None:
    """Append a query log entry to today's JSONL file."""
    entry = {
        "ts": datetime.now(UTC).isoformat(),
        "db": db,
        "dialect": dialect,
        "sql": sql,
        "effective_sql": effective_sql,
        "tables": tables or [],
        "decision": decision,
        "category": category,
        "tag": tag,
        "warnings": warnings or [],
        "diagnostics": diagnostics or [],
        "rows_returned": rows_returned,
        "rows_affected": rows_affected,
        "duration_ms": duration_ms,
        "labels": labels,
    }

    log_file = _today_file()
    log_file.parent.mkdir(parents=True, exist_ok=True)
    with open(log_file, "a") as f:
        f.write(json.dumps(entry, default=str) + "\n")


def log_policy_result(
    result: DiagnosticResult,
    *,
    db: str | None = None,
    dialect: str | None = None,
    **extra: object,
) -> None:
    """Log a policy outcome, filling the decision fields from the result."""
    log_query(
        sql=result.original_sql,
        effective_sql=result.effective_sql,
        db=db,
        dialect=dialect,
        tables=result.tables,
        decision=result.decision,
        category=result.classification,
        tag=result.tag,
        warnings=result.warnings,
        diagnostics=[str(d.code) for d in result.diagnostics],
        **extra,
    )


def cleanup_old_logs(*, retention_days: int = DEFAULT_RETENTION_DAYS) -> int:
    """Delete log files older than retention_days. Returns count of deleted files."""
    cutoff = datetime.now(UTC) - timedelta(days=retention_days)
    deleted = 0

    log_dir = _log_dir()
    if not log_dir.exists():
        return 0

    for log_file in log_dir.glob("*.jsonl"):
        # Parse date from filename (YYYY-MM-DD.jsonl)
        try:
            file_date = datetime.strptime(log_file.stem, "%Y-%m-%d").replace(tzinfo=UTC)
        except ValueError:
            continue
        if file_date < cutoff:
            log_file.unlink()
            deleted += 1

    # Remove the project directory once it is empty.
    with contextlib.suppress(OSError):
        log_dir.rmdir()

    return deleted
