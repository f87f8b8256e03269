"""Lexical helpers for string-level SQL inspection.

String-level rewriting must never touch keywords that sit inside string
literals, quoted identifiers, comments or sub-queries. ``mask_sql`` produces
a copy of the SQL of identical length in which every such region is blanked
out, so regex positions found on the mask apply unchanged to the input SQL.
"""

import re
from collections.abc import Iterator

from sqlscope.dialects import Dialect

MASK_CHAR = " "

NAMED_PARAMETER_PATTERN = re.compile(r"(?<![:\w]):([A-Za-z_][A-Za-z0-9_]*)")
_DOLLAR_TAG_PATTERN = re.compile(r"\$([A-Za-z_][A-Za-z0-9_]*)?\$")


def _blank(text: str) -> str:
    # Keep newlines so line/column positions survive masking
    return "".join(ch if ch == "\n" else MASK_CHAR for ch in text)


def mask_sql(
    sql: str,
    backslash_escapes: bool = False,
    bracket_identifiers: bool = False,
    hash_comments: bool = False,
    dollar_quotes: bool = False,
    keep_quoted: bool = False,
) -> str:
    """Blank out literals, quoted identifiers and comments.

    Args:
        sql: SQL text
        backslash_escapes: Treat ``\\`` as an escape inside quotes (MySQL)
        bracket_identifiers: Treat ``[...]`` as a quoted identifier (T-SQL)
        hash_comments: Treat ``#`` as a line comment (MySQL)
        dollar_quotes: Recognise ``$tag$...$tag$`` strings (PostgreSQL)
        keep_quoted: Leave literals and quoted identifiers as they are and
            blank comments only

    Returns:
        Masked SQL of the same length as the input
    """
    out: list[str] = []
    i = 0
    n = len(sql)

    while i < n:
        ch = sql[i]
        nxt = sql[i + 1] if i + 1 < n else ""

        if (ch == "-" and nxt == "-") or (hash_comments and ch == "#"):
            end = sql.find("\n", i)
            end = n if end == -1 else end
            out.append(_blank(sql[i:end]))
            i = end
            continue

        if ch == "/" and nxt == "*":
            end = sql.find("*/", i + 2)
            end = n if end == -1 else end + 2
            out.append(_blank(sql[i:end]))
            i = end
            continue

        if dollar_quotes and ch == "$":
            tag = _DOLLAR_TAG_PATTERN.match(sql, i)
            if tag:
                close = sql.find(tag.group(0), tag.end())
                end = n if close == -1 else close + len(tag.group(0))
                out.append(sql[i:end] if keep_quoted else _blank(sql[i:end]))
                i = end
                continue

        if ch in ("'", '"', "`") or (bracket_identifiers and ch == "["):
            closing = "]" if ch == "[" else ch
            j = i + 1
            while j < n:
                if backslash_escapes and ch != "[" and sql[j] == "\\":
                    j += 2
                    continue
                if sql[j] == closing:
                    # Doubled delimiter is an escaped delimiter
                    if j + 1 < n and sql[j + 1] == closing and closing != "]":
                        j += 2
                        continue
                    break
                j += 1
            end = min(j + 1, n)
            out.append(sql[i:end] if keep_quoted else _blank(sql[i:end]))
            i = end
            continue

        out.append(ch)
        i += 1

    return "".join(out)


def paren_depths(masked: str) -> list[int]:
    """Parenthesis depth at every position of a masked SQL string."""
    depths: list[int] = []
    depth = 0
    for ch in masked:
        if ch == "(":
            depths.append(depth)
            depth += 1
        elif ch == ")":
            depth = max(depth - 1, 0)
            depths.append(depth)
        else:
            depths.append(depth)
    return depths


def find_top_level(pattern: re.Pattern[str], masked: str) -> Iterator[re.Match[str]]:
    """Yield matches of ``pattern`` that start outside any parentheses."""
    depths = paren_depths(masked)
    for match in pattern.finditer(masked):
        if depths[match.start()] == 0:
            yield match


def content_end(comment_masked: str) -> int:
    """Index just past the last character that is neither blank nor a comment.

    ``comment_masked`` must keep its literals (``mask_sql(..., keep_quoted=True)``)
    so a statement ending in a string or quoted identifier keeps that token.
    """
    return len(comment_masked.rstrip())


def extract_named_parameters(masked: str) -> list[str]:
    """Unique ``:name`` placeholders in order of first appearance.

    ``::type`` casts are not parameters.
    """
    seen: dict[str, None] = {}
    for match in NAMED_PARAMETER_PATTERN.finditer(masked):
        seen.setdefault(match.group(1), None)
    return list(seen)


def line_column_to_offset(sql: str, line: int, column: int) -> int | None:
    """Convert a 1-based line/column pair into a 0-based character offset."""
    if line < 1 or column < 1:
        return None
    lines = sql.split("\n")
    if line > len(lines):
        return None
    offset = sum(len(text) + 1 for text in lines[: line - 1])
    return min(offset + column - 1, len(sql))


def mask_for_dialect(sql: str, dialect: Dialect, keep_quoted: bool = False) -> str:
    """Mask SQL with the quoting and comment rules of ``dialect``."""
    return mask_sql(
        sql,
        keep_quoted=keep_quoted,
        backslash_escapes=dialect == Dialect.MYSQL,
        bracket_identifiers=dialect == Dialect.SQLSERVER,
        hash_comments=dialect == Dialect.MYSQL,
        dollar_quotes=dialect == Dialect.POSTGRES,
    )
