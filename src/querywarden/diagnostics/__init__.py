"""Diagnostic system: types, codes, rendering, and machine-applicable fixes."""

from querywarden.diagnostics.codes import DiagnosticCode
from querywarden.diagnostics.types import (
    Applicability,
    Diagnostic,
    DiagnosticResult,
    Level,
    Span,
    SpanLabel,
    SubstitutionPart,
    Suggestion,
    apply_fixes,
)

__all__ = [
    "Applicability",
    "Diagnostic",
    "DiagnosticCode",
    "DiagnosticResult",
    "Level",
    "Span",
    "SpanLabel",
    "Suggestion",
    "SubstitutionPart",
    "apply_fixes",
]
