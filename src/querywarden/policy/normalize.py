"""Text normalization: comment stripping, whitespace collapsing, case folding.

Quoted literals are scanned as opaque tokens: `'...'`, `"..."`, `[...]`,
backslash-escaped `E'...'` strings and dollar-quoted `$$...$$` or
`$tag$...$tag$` bodies. A `--` or `/*` inside one of them is not mistaken for a
comment. An unterminated literal runs to the end of the text, like an
unterminated block comment. Literal contents are otherwise kept: a keyword
inside a string literal still counts as a keyword.
"""

from __future__ import annotations

import re

_TOKEN_RE = re.compile(
    r"""
    (?P<literal>
        (?<![\w$])[Ee]'(?:[^'\\]|\\.?|'')*(?:'|\Z)
        |'(?:[^']|'')*(?:'|\Z)
        |"(?:[^"]|"")*(?:"|\Z)
        |\[[^\]]*(?:\]|\Z)
        |(?<![\w$])(?P<dollar>\$(?:[A-Za-z_][A-Za-z_0-9]*)?\$).*?(?:(?P=dollar)|\Z)
    )
    |(?P<block>/\*.*?(?:\*/|\Z))
    |(?P<line>--[^\r\n]*)
    """,
    re.VERBOSE | re.DOTALL,
)

_NON_NEWLINE_RE = re.compile(r"[^\r\n]")


def _blank(text: str) -> str:
    """Replace every character except line breaks with a space."""
    return _NON_NEWLINE_RE.sub(" ", text)


def strip_comments(sql: str) -> str:
    """Remove block and line comments. An unterminated block comment runs to the end."""

    def _replace(m: re.Match[str]) -> str:
        if m.lastgroup == "literal":
            return m.group(0)
        return " "

    return _TOKEN_RE.sub(_replace, sql)


def normalize(sql: str) -> str:
    """Comment-free, whitespace-collapsed, upper-cased view for keyword matching."""
    return " ".join(strip_comments(sql).split()).upper()


def mask_comments(sql: str) -> str:
    """Blank out comments while keeping every other character at its offset."""

    def _replace(m: re.Match[str]) -> str:
        if m.lastgroup == "literal":
            return m.group(0)
        return _blank(m.group(0))

    return _TOKEN_RE.sub(_replace, sql)


def mask_comments_and_literals(sql: str) -> str:
    """Blank out comments, quoted literals and bracketed identifiers, offsets kept.

    Used for structural searches (parenthesis depth, clause positions) where
    text inside quotes must never match.
    """
    return _TOKEN_RE.sub(lambda m: _blank(m.group(0)), sql)


def mask_literals(sql: str) -> str:
    """Blank out quoted literals and bracketed identifiers, keeping comments as written."""

    def _replace(m: re.Match[str]) -> str:
        if m.lastgroup == "literal":
            return _blank(m.group(0))
        return m.group(0)

    return _TOKEN_RE.sub(_replace, sql)
