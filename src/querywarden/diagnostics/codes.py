"""Stable, searchable error code registry.

Ranges:
- Q02xx      — Statement safety (multiple statements, SELECT INTO, ...)
- Q03xx      — Classification / access control
- Q05xx      — Advisories (non-blocking warnings)
- Q06xx      — Enrichment (info-level rewrites)
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DiagnosticCode:
    value: int

    def __str__(self) -> str:
        return f"Q{self.value:04d}"


# Statement safety (Q02xx)
DELETE_WITHOUT_WHERE = DiagnosticCode(201)
MULTIPLE_STATEMENTS = DiagnosticCode(202)
UPDATE_WITHOUT_WHERE = DiagnosticCode(203)
SELECT_INTO = DiagnosticCode(206)
NON_SELECT_STATEMENT = DiagnosticCode(207)
QUERY_TOO_LONG = DiagnosticCode(208)

# Classification / access control (Q03xx)
WRITE_BLOCKED = DiagnosticCode(301)
DDL_BLOCKED = DiagnosticCode(302)
ADMIN_BLOCKED = DiagnosticCode(303)
CONFIRMATION_REQUIRED = DiagnosticCode(304)

# Advisories (Q05xx)
UNBOUNDED_RESULT = DiagnosticCode(503)
MANUAL_PAGINATION = DiagnosticCode(504)
DATA_MODIFICATION = DiagnosticCode(505)
DATA_REMOVAL = DiagnosticCode(506)

# Enrichment (Q06xx)
LIMIT_INJECTED = DiagnosticCode(601)
LIMIT_CAPPED = DiagnosticCode(603)
PAGINATION_APPLIED = DiagnosticCode(604)
