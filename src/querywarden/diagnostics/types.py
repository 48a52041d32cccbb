"""Rust compiler-inspired diagnostic system for SQL statement analysis.

Every stage of the policy pipeline reports through Diagnostic values: refusals
are errors, advisories are warnings, and row-limit rewrites are info-level
diagnostics carrying machine-applicable fixes. The fixes are applied to the
original text with `apply_fixes`, so the caller always sees both the statement
it sent and the statement that will run.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from querywarden.diagnostics.codes import DiagnosticCode


class Level(enum.IntEnum):
    INFO = 0
    WARNING = 1
    ERROR = 2


class Applicability(enum.Enum):
    MACHINE_APPLICABLE = "machine_applicable"
    HAS_PLACEHOLDERS = "has_placeholders"


@dataclass(frozen=True)
class Span:
    start: int
    end: int

    def slice(self, sql: str) -> str:
        return sql[self.start : self.end]

    def __len__(self) -> int:
        return self.end - self.start


@dataclass
class SpanLabel:
    span: Span
    label: str | None = None


@dataclass
class SubstitutionPart:
    span: Span
    replacement: str


@dataclass
class Suggestion:
    message: str
    parts: list[SubstitutionPart] = field(default_factory=list)
    applicability: Applicability = Applicability.HAS_PLACEHOLDERS


@dataclass
class Diagnostic:
    level: Level
    code: DiagnosticCode
    message: str
    spans: list[SpanLabel] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)
    suggestions: list[Suggestion] = field(default_factory=list)

    # -- Builder classmethods ---------------------------------------------------

    @classmethod
    def error(cls, code: DiagnosticCode, message: str) -> Diagnostic:
        return cls(level=Level.ERROR, code=code, message=message)

    @classmethod
    def warning(cls, code: DiagnosticCode, message: str) -> Diagnostic:
        return cls(level=Level.WARNING, code=code, message=message)

    @classmethod
    def info(cls, code: DiagnosticCode, message: str) -> Diagnostic:
        return cls(level=Level.INFO, code=code, message=message)

    # -- Builder chain methods --------------------------------------------------

    def span(self, span: Span, label: str) -> Diagnostic:
        self.spans.append(SpanLabel(span=span, label=label))
        return self

    def note(self, note: str) -> Diagnostic:
        self.notes.append(note)
        return self

    def fix(self, message: str, span: Span, replacement: str) -> Diagnostic:
        self.suggestions.append(
            Suggestion(
                message=message,
                parts=[SubstitutionPart(span=span, replacement=replacement)],
                applicability=Applicability.MACHINE_APPLICABLE,
            )
        )
        return self

    def suggest_template(self, message: str) -> Diagnostic:
        self.suggestions.append(
            Suggestion(message=message, applicability=Applicability.HAS_PLACEHOLDERS)
        )
        return self

    # -- Query methods ----------------------------------------------------------

    def auto_fixable_suggestions(self) -> list[Suggestion]:
        return [
            s for s in self.suggestions if s.applicability == Applicability.MACHINE_APPLICABLE
        ]


@dataclass
class DiagnosticResult:
    original_sql: str
    healed_sql: str | None
    diagnostics: list[Diagnostic]
    decision: str = "allow"
    classification: str | None = None
    tag: str | None = None
    requires_confirmation: bool = False
    warnings: list[str] = field(default_factory=list)
    tables: list[str] = field(default_factory=list)

    @property
    def blocked(self) -> bool:
        return self.decision != "allow"

    @property
    def effective_sql(self) -> str:
        return self.healed_sql if self.healed_sql is not None else self.original_sql

    def applied_fixes_summary(self) -> list[str]:
        return [
            f"{d.code}: {s.message}"
            for d in self.diagnostics
            for s in d.suggestions
            if s.applicability == Applicability.MACHINE_APPLICABLE
        ]


def apply_fixes(sql: str, diagnostics: list[Diagnostic]) -> str | None:
    """Apply all MachineApplicable suggestions to the SQL string.

    Suggestions are applied in reverse offset order so that earlier spans
    remain valid after later replacements. Returns None if no fixes were
    applied, or if two fixes overlap.
    """
    parts: list[SubstitutionPart] = [
        part
        for d in diagnostics
        for s in d.auto_fixable_suggestions()
        for part in s.parts
    ]

    if not parts:
        return None

    # Apply from the end of the text backwards so earlier offsets stay valid.
    parts.sort(key=lambda p: p.span.start, reverse=True)

    for i in range(len(parts) - 1):
        # parts[i] has later start (sorted descending).
        if parts[i + 1].span.end > parts[i].span.start:
            return None

    for part in parts:
        if part.span.start < 0 or part.span.end > len(sql):
            return None

    result = sql
    for part in parts:
        result = result[: part.span.start] + part.replacement + result[part.span.end :]

    return result
