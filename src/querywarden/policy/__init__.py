"""Policy engine: classify, authorize, rewrite, advise, return diagnostics."""

from __future__ import annotations

from querywarden.diagnostics import Diagnostic, DiagnosticResult, Span
from querywarden.policy._types import (
    Classification,
    OperationTag,
    PolicyDecision,
    PolicyMode,
    StatementCategory,
    Verdict,
)
from querywarden.policy.advise import advise, advise_on
from querywarden.policy.authorize import authorize, blocked_message, diagnostic_code
from querywarden.policy.classify import classify
from querywarden.policy.normalize import mask_comments
from querywarden.policy.rewrite import (
    LimitStyle,
    RewriteRequest,
    RewriteResult,
    limit_style_for,
    rewrite_for_limit,
)
from querywarden.policy.tables import extract_tables

__all__ = [
    "Classification",
    "LimitStyle",
    "OperationTag",
    "PolicyDecision",
    "PolicyMode",
    "RewriteRequest",
    "RewriteResult",
    "StatementCategory",
    "Verdict",
    "advise_on",
    "authorize",
    "classify",
    "limit_style_for",
    "rewrite_for_limit",
    "run_policy",
]


def _refusal(sql: str, classification: Classification, decision: PolicyDecision) -> Diagnostic:
    tag = decision.tag
    assert tag is not None
    needs_confirmation = decision.verdict == Verdict.REQUIRES_CONFIRMATION
    diag = Diagnostic.error(
        diagnostic_code(tag, needs_confirmation),
        blocked_message(tag, needs_confirmation),
    )

    if tag == OperationTag.MULTIPLE_STATEMENTS:
        semi_pos = mask_comments(sql).find(";")
        if semi_pos == -1:
            semi_pos = sql.find(";")
        if semi_pos != -1:
            diag.span(Span(semi_pos, semi_pos + 1), "statement separator")
        diag.note("only single statements are allowed (possible SQL injection)")

    if needs_confirmation:
        diag.note("pass --confirm-unsafe to run this statement")
    elif classification.category == StatementCategory.DANGEROUS:
        diag.note("confirmation cannot override this block")
    return diag


def run_policy(
    sql: str,
    *,
    mode: PolicyMode = PolicyMode.DML,
    confirm_unsafe: bool = False,
    limit: int | None = 1000,
    offset: int = 0,
    dialect: str | None = None,
) -> DiagnosticResult:
    """Run the full policy pipeline on a SQL string.

    Steps:
        1. Classify (multiple statements, DML/DDL keywords, SELECT shape)
        2. Authorize against the mode and the caller's confirmation
        3. Rewrite allowed reads to carry a row limit (and pagination)
        4. Attach advisory warnings, whatever the decision
        5. Extract referenced tables for reporting

    Args:
        sql: The raw SQL string from the caller.
        mode: DML (confirmation-aware) or READ_ONLY (strict).
        confirm_unsafe: Caller confirmation for DELETE/TRUNCATE.
        limit: Row limit for reads, already clamped by the caller. None or a
            non-positive value disables rewriting.
        offset: Requested pagination offset; negative values count as 0.
        dialect: SQL dialect; picks TOP or LIMIT rewriting.

    Returns:
        DiagnosticResult with the decision, diagnostics and effective SQL.
    """
    sql = sql.strip()
    offset = max(0, offset)
    diagnostics: list[Diagnostic] = []

    classification = classify(sql, mode)
    decision = authorize(classification, confirm_unsafe, mode)

    if not decision.is_allowed:
        diagnostics.append(_refusal(sql, classification, decision))

    healed_sql = None
    rewrite = limit is not None and limit > 0
    if decision.is_allowed and classification.is_read_only and rewrite:
        request = RewriteRequest(sql=sql, limit=limit, offset=offset)
        rewritten = rewrite_for_limit(
            request, classification.category, style=limit_style_for(dialect),
        )
        if rewritten.diagnostic is not None:
            diagnostics.append(rewritten.diagnostic)
            healed_sql = rewritten.sql

    advisories = advise(sql, classification.category, offset)
    diagnostics.extend(advisories)

    tag = decision.tag or classification.tag
    return DiagnosticResult(
        original_sql=sql,
        healed_sql=healed_sql,
        diagnostics=diagnostics,
        decision=decision.verdict.value,
        classification=classification.category.value,
        tag=tag.value if tag is not None else None,
        requires_confirmation=decision.verdict == Verdict.REQUIRES_CONFIRMATION,
        warnings=[d.message for d in advisories],
        tables=extract_tables(sql, dialect),
    )
