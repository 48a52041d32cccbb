"""Classify SQL text into a StatementCategory with an ordered list of rules.

Security-critical: anything not positively recognised as a plain SELECT (or a
WITH ... SELECT) is classified as DML or DANGEROUS. Each rule looks at the
normalized text (comments stripped, whitespace collapsed, upper-cased) and
either returns a Classification or None to let the next rule decide.

Known limitation: keywords inside string literals are not told apart from real
keywords, so `WHERE name = 'DROP TABLE'` is blocked.
"""

from __future__ import annotations

import re
from collections.abc import Callable

from querywarden.policy._types import (
    Classification,
    OperationTag,
    PolicyMode,
    StatementCategory,
)
from querywarden.policy.normalize import mask_literals, normalize

MAX_SQL_LENGTH = 100 * 1024

# Order matters: the first keyword found wins, and TRUNCATE is the most specific.
_DML_KEYWORDS: tuple[tuple[OperationTag, StatementCategory], ...] = (
    (OperationTag.TRUNCATE, StatementCategory.TRUNCATE),
    (OperationTag.DELETE, StatementCategory.DELETE),
    (OperationTag.INSERT, StatementCategory.INSERT),
    (OperationTag.UPDATE, StatementCategory.UPDATE),
)

_DDL_ADMIN_KEYWORDS: tuple[OperationTag, ...] = (
    OperationTag.DROP,
    OperationTag.CREATE,
    OperationTag.ALTER,
    OperationTag.EXEC,
    OperationTag.EXECUTE,
    OperationTag.MERGE,
    OperationTag.BULK,
    OperationTag.GRANT,
    OperationTag.REVOKE,
    OperationTag.DENY,
)

# Session/server statements, only blocked by the strict read-only policy.
_READ_ONLY_EXTRA_KEYWORDS: tuple[OperationTag, ...] = (
    OperationTag.USE,
    OperationTag.SET,
    OperationTag.DBCC,
    OperationTag.BACKUP,
    OperationTag.RESTORE,
    OperationTag.RECONFIGURE,
    OperationTag.SP_CONFIGURE,
)

_KEYWORD_RES: dict[OperationTag, re.Pattern[str]] = {
    tag: re.compile(rf"\b{tag.value}\b")
    for tag in (
        *(t for t, _ in _DML_KEYWORDS),
        *_DDL_ADMIN_KEYWORDS,
        *_READ_ONLY_EXTRA_KEYWORDS,
    )
}

_FIRST_WORD_RE = re.compile(r"\w+")
_SELECT_RE = re.compile(r"\bSELECT\b")
_INTO_RE = re.compile(r"\bINTO\b")
_STARTS_WITH_RE = re.compile(r"^WITH\b")
_STARTS_SELECT_RE = re.compile(r"^SELECT\b")

# Dialect quoting where a misread literal could pass a separator off as comment text.
_DIALECT_QUOTING_RE = re.compile(r"\$|\\|(?<![\w$])[Ee]'")

Rule = Callable[[str, PolicyMode], Classification | None]


def _dangerous(tag: OperationTag) -> Classification:
    return Classification(StatementCategory.DANGEROUS, tag)


def _ddl_admin_keywords(mode: PolicyMode) -> tuple[OperationTag, ...]:
    if mode == PolicyMode.READ_ONLY:
        return _DDL_ADMIN_KEYWORDS + _READ_ONLY_EXTRA_KEYWORDS
    return _DDL_ADMIN_KEYWORDS


def check_multiple_statements(text: str, mode: PolicyMode) -> Classification | None:
    """Block stacked statements; a single trailing semicolon is fine."""
    if ";" not in text:
        return None
    if text.count(";") > 1 or not text.endswith(";"):
        return _dangerous(OperationTag.MULTIPLE_STATEMENTS)
    return None


def check_leading_ddl_admin(text: str, mode: PolicyMode) -> Classification | None:
    """A statement that opens with a DDL/admin keyword is DANGEROUS whatever follows.

    Keeps `GRANT UPDATE ...` or `CREATE TRIGGER ... AFTER INSERT` from being
    read as DML by the keyword scan below.
    """
    first = _FIRST_WORD_RE.match(text)
    if first is None:
        return None
    for tag in _ddl_admin_keywords(mode):
        if first.group(0) == tag.value:
            return _dangerous(tag)
    return None


def check_dml_keywords(text: str, mode: PolicyMode) -> Classification | None:
    for tag, category in _DML_KEYWORDS:
        if _KEYWORD_RES[tag].search(text):
            return Classification(category, tag)
    return None


def check_ddl_admin_keywords(text: str, mode: PolicyMode) -> Classification | None:
    for tag in _ddl_admin_keywords(mode):
        if _KEYWORD_RES[tag].search(text):
            return _dangerous(tag)
    return None


def check_select_family(text: str, mode: PolicyMode) -> Classification | None:
    """Only SELECT, or WITH followed by a SELECT somewhere after it, may pass."""
    if _STARTS_WITH_RE.match(text):
        if _SELECT_RE.search(text, 4) is None:
            return _dangerous(OperationTag.NON_SELECT_STATEMENT)
        return None
    if _STARTS_SELECT_RE.match(text) is None:
        return _dangerous(OperationTag.NON_SELECT_STATEMENT)
    return None


def check_select_into(text: str, mode: PolicyMode) -> Classification | None:
    """SELECT ... INTO creates a table despite being a SELECT."""
    select = _SELECT_RE.search(text)
    if select is not None and _INTO_RE.search(text, select.end()):
        return _dangerous(OperationTag.SELECT_INTO)
    return None


RULES: tuple[Rule, ...] = (
    check_multiple_statements,
    check_leading_ddl_admin,
    check_dml_keywords,
    check_ddl_admin_keywords,
    check_select_family,
    check_select_into,
)


def classify(sql: str, mode: PolicyMode = PolicyMode.DML) -> Classification:
    """Classify raw SQL text. Never raises; unknown input is DANGEROUS."""
    if len(sql) > MAX_SQL_LENGTH:
        return _dangerous(OperationTag.QUERY_TOO_LONG)

    if _DIALECT_QUOTING_RE.search(sql):
        # Second look at separators with comments left in place.
        raw = check_multiple_statements(" ".join(mask_literals(sql).split()), mode)
        if raw is not None:
            return raw

    text = normalize(sql)
    for rule in RULES:
        result = rule(text, mode)
        if result is not None:
            return result
    return Classification(StatementCategory.READ_ONLY)
