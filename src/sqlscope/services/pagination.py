"""Server-side pagination rewriting.

Queries are bounded by editing the SQL text rather than rebuilding it from an
AST, so the user's formatting and dialect-specific syntax survive untouched.
Keyword searches run on a masked copy of the SQL (literals, quoted
identifiers and comments blanked out) and only count at parenthesis depth 0,
so LIMIT/TOP inside strings, comments or sub-queries is never rewritten. The
end of the statement is found on a copy with only comments blanked, so a
trailing literal or quoted identifier stays part of the statement.

Rewriting is idempotent: rewriting already rewritten SQL with the same
arguments returns it unchanged.
"""

import math
import re
from collections.abc import Iterator

import structlog

from sqlscope.config.models import PaginationPolicy
from sqlscope.dialects import Dialect
from sqlscope.models.query import PageMeta, PaginatedQuery, PaginationDirective
from sqlscope.utils.lexing import content_end, find_top_level, mask_for_dialect

logger = structlog.get_logger(__name__)

# LIMIT n | LIMIT -1 (SQLite) | LIMIT o, n (MySQL) | LIMIT ALL | LIMIT <placeholder>
LIMIT_PATTERN = re.compile(
    r"\bLIMIT\s+(-?\d+|ALL\b|\?|\$\d+|:\w+)(?:\s*,\s*(\d+|\?|\$\d+|:\w+))?",
    re.IGNORECASE,
)
OFFSET_PATTERN = re.compile(r"\bOFFSET\b", re.IGNORECASE)
TOP_PATTERN = re.compile(r"\bTOP\s*(\(\s*)?(\d+)(?(1)\s*\))", re.IGNORECASE)
FETCH_PATTERN = re.compile(
    r"\bFETCH\s+(?:NEXT|FIRST)\s+(?:(\d+)\s+)?ROWS?\b", re.IGNORECASE
)
ORDER_BY_PATTERN = re.compile(r"\bORDER\s+BY\b", re.IGNORECASE)
SELECT_HEAD_PATTERN = re.compile(r"\bSELECT(?:\s+(?:DISTINCT|ALL)\b)?", re.IGNORECASE)
PASSTHROUGH_PATTERN = re.compile(r"^\s*(SHOW|DESCRIBE|DESC|EXPLAIN)\b", re.IGNORECASE)


def _last(matches: Iterator[re.Match[str]]) -> re.Match[str] | None:
    found = None
    for found in matches:
        pass
    return found


def _split_trailer(sql: str, masked: str, comment_masked: str) -> tuple[str, str, str]:
    """Split SQL into (body, masked body, trailer).

    The body ends at the last real character before any trailing semicolons;
    the trailer keeps whatever followed the statement (comments, whitespace),
    with the semicolons themselves dropped.
    """
    end = content_end(comment_masked)
    trailer = sql[end:]
    while end > 0 and comment_masked[end - 1] == ";":
        end = content_end(comment_masked[: end - 1])
    return sql[:end], masked[:end], trailer


def _clamp_token(token: str, effective: int) -> str:
    if token.isdigit() and int(token) <= effective:
        return token
    return str(effective)


def _rewrite_limit(body: str, masked: str, effective: int, offset: int) -> str:
    limit = _last(find_top_level(LIMIT_PATTERN, masked))

    if limit is None:
        top = _last(find_top_level(TOP_PATTERN, masked))
        if top is not None:
            return _clamp_top(body, top, effective)

        existing_offset = _last(find_top_level(OFFSET_PATTERN, masked))
        fetch = _last(find_top_level(FETCH_PATTERN, masked))
        if fetch is not None:
            clamped = _clamp_fetch(body, fetch, effective)
            if offset > 0 and existing_offset is None:
                # OFFSET must precede FETCH
                pos = fetch.start()
                clamped = f"{clamped[:pos]}OFFSET {offset} ROWS {clamped[pos:]}"
            return clamped

        if existing_offset is not None:
            # OFFSET without LIMIT: put the LIMIT in front of the user's OFFSET
            pos = existing_offset.start()
            return f"{body[:pos]}LIMIT {effective} {body[pos:]}"

        return f"{body} LIMIT {effective} OFFSET {offset}"

    if limit.group(2) is not None:
        # MySQL LIMIT offset, count
        start, end = limit.span(2)
        return body[:start] + _clamp_token(limit.group(2), effective) + body[end:]

    start, end = limit.span(1)
    has_offset = _last(find_top_level(OFFSET_PATTERN, masked)) is not None
    suffix = f" OFFSET {offset}" if offset > 0 and not has_offset else ""
    return body[:start] + _clamp_token(limit.group(1), effective) + suffix + body[end:]


def _clamp_top(body: str, top: re.Match[str], effective: int) -> str:
    start, end = top.span(2)
    return body[:start] + _clamp_token(top.group(2), effective) + body[end:]


def _clamp_fetch(body: str, fetch: re.Match[str], effective: int) -> str:
    if fetch.group(1) is None:
        # FETCH FIRST ROW ONLY is a single row
        return body
    start, end = fetch.span(1)
    return body[:start] + _clamp_token(fetch.group(1), effective) + body[end:]


def _rewrite_sqlserver(body: str, masked: str, effective: int, offset: int) -> str:
    top = _last(find_top_level(TOP_PATTERN, masked))
    if top is not None:
        return _clamp_top(body, top, effective)

    fetch = _last(find_top_level(FETCH_PATTERN, masked))
    if fetch is not None:
        return _clamp_fetch(body, fetch, effective)

    if offset == 0 and _last(find_top_level(OFFSET_PATTERN, masked)) is None:
        head = next(find_top_level(SELECT_HEAD_PATTERN, masked), None)
        if head is None:
            return body
        return f"{body[:head.end()]} TOP {effective}{body[head.end():]}"

    clause = ""
    if _last(find_top_level(ORDER_BY_PATTERN, masked)) is None:
        clause += " ORDER BY (SELECT NULL)"
    if _last(find_top_level(OFFSET_PATTERN, masked)) is None:
        clause += f" OFFSET {offset} ROWS"
    clause += f" FETCH NEXT {effective} ROWS ONLY"
    return body + clause


def rewrite_pagination(
    sql: str,
    limit: int | None,
    offset: int | None,
    dialect: Dialect,
    policy: PaginationPolicy,
) -> PaginatedQuery:
    """Bound and page a read-only query.

    Args:
        sql: SQL that already passed the read-only gate
        limit: Requested page size (None for the policy default)
        offset: Requested row offset (negative values become 0)
        dialect: Target dialect; SQL Server uses TOP / OFFSET-FETCH
        policy: Page-size bounds

    Returns:
        Rewritten SQL and the directive it encodes. SHOW, DESCRIBE and
        EXPLAIN statements come back unchanged.
    """
    effective = policy.clamp(limit)
    offset = max(offset or 0, 0)
    directive = PaginationDirective(limit=effective, offset=offset)

    masked = mask_for_dialect(sql, dialect)
    comment_masked = mask_for_dialect(sql, dialect, keep_quoted=True)
    if PASSTHROUGH_PATTERN.match(masked) or not comment_masked.strip():
        return PaginatedQuery(sql=sql, directive=directive)

    body, masked_body, trailer = _split_trailer(sql, masked, comment_masked)
    if dialect == Dialect.SQLSERVER:
        rewritten = _rewrite_sqlserver(body, masked_body, effective, offset)
    else:
        rewritten = _rewrite_limit(body, masked_body, effective, offset)

    if trailer.strip():
        # Trailing comments go after the injected clause
        rewritten = f"{rewritten}{trailer}"

    if rewritten != sql:
        logger.debug(
            "Pagination applied",
            dialect=dialect.value,
            limit=effective,
            offset=offset,
        )
    return PaginatedQuery(sql=rewritten, directive=directive)


def calculate_offset(page: int, page_size: int) -> int:
    """Row offset of a 1-based page number."""
    return (page - 1) * page_size


def build_sql_pagination(
    page: int | None,
    page_size: int | None,
    policy: PaginationPolicy,
) -> PaginationDirective:
    """Turn a page number and page size into a limit/offset directive.

    Missing or non-positive pages become page 1; the page size is clamped
    by the policy.
    """
    size = policy.clamp(page_size or None)
    current = max(1, page or 1)
    return PaginationDirective(limit=size, offset=calculate_offset(current, size))


def create_pagination_meta(page: int, page_size: int, total_rows: int) -> PageMeta:
    """Page-number metadata for a result set of known size."""
    total_pages = math.ceil(total_rows / page_size) if page_size > 0 else 0
    return PageMeta(
        page=page,
        page_size=page_size,
        total_rows=total_rows,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_previous=page > 1,
    )
