"""Advisory checks: non-blocking warnings attached to every policy result."""

from __future__ import annotations

import re

from querywarden.diagnostics import Diagnostic, codes
from querywarden.policy._types import StatementCategory
from querywarden.policy.normalize import normalize

_WHERE_RE = re.compile(r"\bWHERE\b")
_ROW_LIMIT_RE = re.compile(r"\b(?:TOP|LIMIT|FETCH)\b")
_OFFSET_RE = re.compile(r"\bOFFSET\b")

_MODIFYING = frozenset({StatementCategory.INSERT, StatementCategory.UPDATE})
_REMOVING = frozenset({StatementCategory.DELETE, StatementCategory.TRUNCATE})


def check_unbounded_result(
    text: str, category: StatementCategory, offset: int | None
) -> Diagnostic | None:
    if _WHERE_RE.search(text) or _ROW_LIMIT_RE.search(text):
        return None
    return (
        Diagnostic.warning(codes.UNBOUNDED_RESULT, "query may return a large result set")
        .suggest_template("add a WHERE clause or a TOP/LIMIT row limit")
    )


def check_manual_pagination(
    text: str, category: StatementCategory, offset: int | None
) -> Diagnostic | None:
    if not offset or offset <= 0 or _OFFSET_RE.search(text):
        return None
    return Diagnostic.warning(
        codes.MANUAL_PAGINATION,
        "using manual pagination; OFFSET/FETCH in the query performs better",
    )


def check_write_without_where(
    text: str, category: StatementCategory, offset: int | None
) -> Diagnostic | None:
    if category == StatementCategory.DELETE:
        code, verb = codes.DELETE_WITHOUT_WHERE, "DELETE"
    elif category == StatementCategory.UPDATE:
        code, verb = codes.UPDATE_WITHOUT_WHERE, "UPDATE"
    else:
        return None
    if _WHERE_RE.search(text):
        return None
    return (
        Diagnostic.warning(code, f"{verb} without WHERE clause affects every row in the table")
        .suggest_template(f"add a WHERE clause: {verb} ... WHERE <condition>")
    )


def check_data_change(
    text: str, category: StatementCategory, offset: int | None
) -> Diagnostic | None:
    if category in _MODIFYING:
        return Diagnostic.warning(
            codes.DATA_MODIFICATION,
            "this query will modify data; make sure a backup exists before proceeding",
        )
    if category in _REMOVING:
        return Diagnostic.warning(
            codes.DATA_REMOVAL,
            "this query will permanently delete data; make sure a backup exists before proceeding",
        )
    return None


_CHECKS = (
    check_unbounded_result,
    check_manual_pagination,
    check_write_without_where,
    check_data_change,
)


def advise(
    sql: str, category: StatementCategory, offset: int | None = None
) -> list[Diagnostic]:
    """Run every advisory check in order. Never affects the policy decision."""
    text = normalize(sql)
    found: list[Diagnostic] = []
    for check in _CHECKS:
        diag = check(text, category, offset)
        if diag is not None:
            found.append(diag)
    return found


def advise_on(
    sql: str, category: StatementCategory, offset: int | None = None
) -> list[str]:
    """Advisory messages, in order."""
    return [d.message for d in advise(sql, category, offset)]
