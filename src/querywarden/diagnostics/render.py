"""Render diagnostics for terminal (text) and agent (JSON) output."""

from __future__ import annotations

from querywarden.diagnostics.types import Applicability, Diagnostic, DiagnosticResult


def render_json(result: DiagnosticResult) -> dict:
    """Render a DiagnosticResult as a JSON-serializable dict."""
    d: dict = {
        "decision": result.decision,
        "blocked": result.blocked,
        "requires_confirmation": result.requires_confirmation,
        "original_sql": result.original_sql,
        "effective_sql": result.effective_sql,
        "tables": result.tables,
        "warnings": result.warnings,
        "applied_fixes": result.applied_fixes_summary(),
        "diagnostics": [_diagnostic_to_dict(diag) for diag in result.diagnostics],
    }
    if result.classification is not None:
        d["classification"] = result.classification
    if result.tag is not None:
        d["tag"] = result.tag
    return d


def render_text(result: DiagnosticResult) -> str:
    """Render a DiagnosticResult as human-readable text."""
    lines: list[str] = []
    for d in result.diagnostics:
        lines.append(f"{d.level.name.lower()}[{d.code}]: {d.message}")
        for s in d.spans:
            snippet = s.span.slice(result.original_sql)
            lines.append(f"  --> {s.span.start}..{s.span.end} {snippet!r}: {s.label}")
        for note in d.notes:
            lines.append(f"  = note: {note}")
        for s in d.suggestions:
            prefix = "fix" if s.applicability == Applicability.MACHINE_APPLICABLE else "help"
            lines.append(f"  = {prefix}: {s.message}")

    if result.healed_sql is not None:
        lines.append("")
        lines.append(f"effective SQL: {result.effective_sql}")

    return "\n".join(lines)


def _diagnostic_to_dict(d: Diagnostic) -> dict:
    out: dict = {
        "level": d.level.name.lower(),
        "code": str(d.code),
        "message": d.message,
        "notes": d.notes,
    }
    if d.spans:
        out["spans"] = [
            {"start": s.span.start, "end": s.span.end, "label": s.label} for s in d.spans
        ]
    return out
