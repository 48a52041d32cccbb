"""Policy engine: (classification, mode, confirmation) → PolicyDecision."""

from __future__ import annotations

from querywarden.diagnostics import DiagnosticCode, codes
from querywarden.policy._types import (
    Classification,
    OperationTag,
    PolicyDecision,
    PolicyMode,
    StatementCategory,
)

_CONFIRMABLE = frozenset({StatementCategory.DELETE, StatementCategory.TRUNCATE})
_WRITES = frozenset({
    StatementCategory.INSERT,
    StatementCategory.UPDATE,
    StatementCategory.DELETE,
    StatementCategory.TRUNCATE,
})

_READ_ONLY_SUFFIX = "only SELECT queries are allowed for data viewing"

_MESSAGES: dict[OperationTag, str] = {
    OperationTag.MULTIPLE_STATEMENTS: "multiple statements are not allowed",
    OperationTag.NON_SELECT_STATEMENT: "only SELECT statements are allowed",
    OperationTag.SELECT_INTO: "SELECT INTO is not allowed",
    OperationTag.QUERY_TOO_LONG: "statement exceeds the maximum accepted length",
    OperationTag.EXEC: "EXEC/EXECUTE operations are not allowed",
    OperationTag.EXECUTE: "EXEC/EXECUTE operations are not allowed",
}

_DIAGNOSTIC_CODES: dict[OperationTag, DiagnosticCode] = {
    OperationTag.MULTIPLE_STATEMENTS: codes.MULTIPLE_STATEMENTS,
    OperationTag.NON_SELECT_STATEMENT: codes.NON_SELECT_STATEMENT,
    OperationTag.SELECT_INTO: codes.SELECT_INTO,
    OperationTag.QUERY_TOO_LONG: codes.QUERY_TOO_LONG,
    OperationTag.INSERT: codes.WRITE_BLOCKED,
    OperationTag.UPDATE: codes.WRITE_BLOCKED,
    OperationTag.DELETE: codes.WRITE_BLOCKED,
    OperationTag.MERGE: codes.WRITE_BLOCKED,
    OperationTag.BULK: codes.WRITE_BLOCKED,
    OperationTag.TRUNCATE: codes.DDL_BLOCKED,
    OperationTag.DROP: codes.DDL_BLOCKED,
    OperationTag.CREATE: codes.DDL_BLOCKED,
    OperationTag.ALTER: codes.DDL_BLOCKED,
}


def authorize(
    classification: Classification,
    confirm_unsafe: bool = False,
    mode: PolicyMode = PolicyMode.DML,
) -> PolicyDecision:
    """Decide whether a classified statement may run.

    DANGEROUS is always blocked; confirmation cannot override it. In DML mode
    INSERT/UPDATE run freely and DELETE/TRUNCATE need `confirm_unsafe`. In
    READ_ONLY mode every write is blocked.
    """
    category = classification.category
    if category == StatementCategory.READ_ONLY:
        return PolicyDecision.allowed()

    tag = classification.tag
    if category == StatementCategory.DANGEROUS:
        return PolicyDecision.blocked(tag or OperationTag.NON_SELECT_STATEMENT)
    if tag is None:
        tag = OperationTag(category.name)

    if mode == PolicyMode.READ_ONLY and category in _WRITES:
        return PolicyDecision.blocked(tag)

    if category in _CONFIRMABLE and not confirm_unsafe:
        return PolicyDecision.requires_confirmation(tag)

    return PolicyDecision.allowed()


def blocked_message(tag: OperationTag, requires_confirmation: bool = False) -> str:
    """User-facing explanation of a refusal."""
    if requires_confirmation:
        return (
            f"{tag.value} operations require confirmation; "
            "retry with confirm_unsafe enabled to proceed"
        )
    message = _MESSAGES.get(tag, f"{tag.value} operations are not allowed")
    if tag == OperationTag.MULTIPLE_STATEMENTS:
        return f"{message}; submit a single statement"
    return f"{message}; {_READ_ONLY_SUFFIX}"


def diagnostic_code(tag: OperationTag, requires_confirmation: bool = False) -> DiagnosticCode:
    """Stable code for a refusal: safety (Q02xx) or access control (Q03xx)."""
    if requires_confirmation:
        return codes.CONFIRMATION_REQUIRED
    return _DIAGNOSTIC_CODES.get(tag, codes.ADMIN_BLOCKED)
