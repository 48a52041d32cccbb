"""Row-limit rewriting: inject or cap TOP / LIMIT / FETCH clauses on reads.

Detection runs on a masked copy of the statement in which comments, quoted
literals and bracketed identifiers are blanked out character-for-character, so
every offset found there is valid in the original text. Changes are expressed
as machine-applicable fixes and applied to the original text, which keeps the
caller's comments and formatting intact.

Guarantees:
- only READ_ONLY statements are touched,
- an existing cap is never raised, and a rewrite leaves the cap at most `limit`,
- rewriting twice gives the same text as rewriting once,
- on anything ambiguous the original text comes back unchanged, including a
  top-level UNION/EXCEPT/INTERSECT in TOP style.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass

from querywarden.diagnostics import Diagnostic, Span, apply_fixes, codes
from querywarden.policy._types import StatementCategory
from querywarden.policy.classify import MAX_SQL_LENGTH
from querywarden.policy.normalize import mask_comments_and_literals


class LimitStyle(enum.Enum):
    TOP = "top"      # SQL Server: SELECT TOP n, OFFSET m ROWS FETCH NEXT n ROWS ONLY
    LIMIT = "limit"  # trailing LIMIT n [OFFSET m]


_TOP_DIALECTS = frozenset({"tsql", "mssql", "sqlserver"})


def limit_style_for(dialect: str | None) -> LimitStyle:
    """SQL Server (and no dialect at all) uses TOP; every other dialect uses LIMIT."""
    if dialect is None or dialect.lower() in _TOP_DIALECTS:
        return LimitStyle.TOP
    return LimitStyle.LIMIT


@dataclass(frozen=True)
class RewriteRequest:
    sql: str
    limit: int
    offset: int = 0

    def __post_init__(self) -> None:
        if self.limit < 1:
            raise ValueError(f"limit must be a positive integer, got {self.limit}")
        if self.offset < 0:
            raise ValueError(f"offset must be non-negative, got {self.offset}")

    @classmethod
    def build(
        cls,
        sql: str,
        limit: int | None = None,
        offset: int | None = None,
        *,
        default: int,
        ceiling: int,
    ) -> RewriteRequest:
        """Fill in the default limit and clamp it to `[1, ceiling]`."""
        requested = default if limit is None else limit
        return cls(
            sql=sql,
            limit=max(1, min(requested, ceiling)),
            offset=max(0, offset or 0),
        )


@dataclass(frozen=True)
class RewriteResult:
    sql: str
    diagnostic: Diagnostic | None = None

    @property
    def changed(self) -> bool:
        return self.diagnostic is not None


_SELECT_RE = re.compile(r"\bSELECT\b", re.IGNORECASE)
_SELECT_HEAD_RE = re.compile(r"SELECT(?:\s+(?:DISTINCT|ALL)\b)?\s*", re.IGNORECASE)
_TOP_RE = re.compile(
    r"TOP(?:\s*\(\s*(?P<paren>\d+)\s*\)|\s+(?P<bare>\d+)\b|\s*(?P<expr>\())"
    r"(?P<percent>\s+PERCENT\b)?",
    re.IGNORECASE,
)
_FETCH_RE = re.compile(r"\bFETCH\s+(?:NEXT|FIRST)\s+(\d+)\s+ROWS?\s+ONLY\b", re.IGNORECASE)
_OFFSET_ROWS_RE = re.compile(r"\bOFFSET\s+\d+\s+ROWS?\b", re.IGNORECASE)
_LIMIT_RE = re.compile(r"\bLIMIT\b", re.IGNORECASE)
_SET_OP_RE = re.compile(r"\b(?:UNION|EXCEPT|INTERSECT)\b", re.IGNORECASE)
_TRAILING_LIMIT_RE = re.compile(
    r"\bLIMIT\s+(\d+)(?:\s*,\s*(\d+))?(?:\s+OFFSET\s+\d+(?:\s+ROWS?)?)?\s*;?\s*\Z",
    re.IGNORECASE,
)


def _top_level(pattern: re.Pattern[str], view: str) -> list[re.Match[str]]:
    """Matches of `pattern` that sit outside any parentheses."""
    found: list[re.Match[str]] = []
    depth = 0
    cursor = 0
    for m in pattern.finditer(view):
        segment = view[cursor : m.start()]
        depth += segment.count("(") - segment.count(")")
        cursor = m.start()
        if depth == 0:
            found.append(m)
    return found


def _tail(view: str) -> int | None:
    """Offset just past the last token, before a trailing semicolon or comment."""
    end = len(view.rstrip())
    if end and view[end - 1] == ";":
        end = len(view[: end - 1].rstrip())
    return end or None


def _cap(m: re.Match[str], group: int | str, limit: int, clause: str) -> Diagnostic | None:
    existing = int(m.group(group))
    if existing <= limit:
        return None
    span = Span(m.start(group), m.end(group))
    return Diagnostic.info(
        codes.LIMIT_CAPPED, f"{clause} {existing} capped to {limit}"
    ).fix(f"cap {clause} at {limit}", span, str(limit))


def _append(view: str, text: str, diag: Diagnostic, message: str) -> Diagnostic | None:
    pos = _tail(view)
    if pos is None:
        return None
    return diag.fix(message, Span(pos, pos), text)


def _plan_fetch(view: str, limit: int) -> tuple[bool, Diagnostic | None]:
    """Handle an existing OFFSET/FETCH clause. Returns (handled, diagnostic)."""
    fetches = _top_level(_FETCH_RE, view)
    if fetches:
        return True, _cap(fetches[-1], 1, limit, "FETCH")

    offsets = _top_level(_OFFSET_ROWS_RE, view)
    if offsets:
        pos = offsets[-1].end()
        diag = (
            Diagnostic.info(codes.LIMIT_INJECTED, f"FETCH NEXT {limit} ROWS ONLY added after OFFSET")
            .fix(f"insert FETCH NEXT {limit} ROWS ONLY", Span(pos, pos),
                 f" FETCH NEXT {limit} ROWS ONLY")
        )
        return True, diag
    return False, None


def _plan_top(view: str, limit: int, offset: int) -> Diagnostic | None:
    # TOP binds to one branch of a set operation and cannot bound the combined result.
    if _top_level(_SET_OP_RE, view):
        return None

    selects = _top_level(_SELECT_RE, view)
    if not selects:
        return None
    head = _SELECT_HEAD_RE.match(view, selects[0].start())
    if head is None:
        return None

    top = _TOP_RE.match(view, head.end())
    if top is not None:
        if top.group("expr") is not None or top.group("percent") is not None:
            return None
        group = "paren" if top.group("paren") is not None else "bare"
        return _cap(top, group, limit, "TOP")

    if offset > 0:
        clause = f"OFFSET {offset} ROWS FETCH NEXT {limit} ROWS ONLY"
        diag = Diagnostic.info(codes.PAGINATION_APPLIED, f"{clause} appended")
        return _append(view, f" {clause}", diag, f"append {clause}")

    pos = head.end()
    text = f"TOP {limit} "
    if pos > 0 and not view[pos - 1].isspace():
        text = " " + text
    return (
        Diagnostic.info(codes.LIMIT_INJECTED, f"TOP {limit} added to unbounded SELECT")
        .note("override with --max-rows N")
        .fix(f"insert TOP {limit}", Span(pos, pos), text)
    )


def _plan_limit(view: str, limit: int, offset: int) -> Diagnostic | None:
    if _top_level(_LIMIT_RE, view):
        trailing = _TRAILING_LIMIT_RE.search(view)
        if trailing is None:
            return None
        group = 2 if trailing.group(2) is not None else 1
        return _cap(trailing, group, limit, "LIMIT")

    if offset > 0:
        clause = f"LIMIT {limit} OFFSET {offset}"
        diag = Diagnostic.info(codes.PAGINATION_APPLIED, f"{clause} appended")
        return _append(view, f" {clause}", diag, f"append {clause}")

    diag = Diagnostic.info(
        codes.LIMIT_INJECTED, f"LIMIT {limit} added to unbounded SELECT"
    ).note("override with --max-rows N")
    return _append(view, f" LIMIT {limit}", diag, f"append LIMIT {limit}")


def plan_rewrite(request: RewriteRequest, style: LimitStyle) -> Diagnostic | None:
    """Work out the single fix that bounds the statement, or None to leave it."""
    view = mask_comments_and_literals(request.sql)
    if not view.strip():
        return None

    handled, diag = _plan_fetch(view, request.limit)
    if handled:
        return diag
    if style == LimitStyle.TOP:
        return _plan_top(view, request.limit, request.offset)
    return _plan_limit(view, request.limit, request.offset)


def rewrite_for_limit(
    request: RewriteRequest,
    category: StatementCategory,
    *,
    style: LimitStyle = LimitStyle.TOP,
) -> RewriteResult:
    """Bound a read-only statement to `request.limit` rows, starting at `request.offset`."""
    unchanged = RewriteResult(sql=request.sql)
    if category != StatementCategory.READ_ONLY or len(request.sql) > MAX_SQL_LENGTH:
        return unchanged

    try:
        diag = plan_rewrite(request, style)
        if diag is None:
            return unchanged
        rewritten = apply_fixes(request.sql, [diag])
    except Exception:
        # A rewrite failure must never stop an allowed read from running.
        return unchanged

    if rewritten is None or not rewritten.strip():
        return unchanged
    return RewriteResult(sql=rewritten, diagnostic=diag)
