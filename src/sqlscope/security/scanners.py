"""Advisory security and performance scanners.

Both scanners are regex rule tables: heuristic and dialect-blind by
construction. Their findings are warnings only and never block execution;
the read-only gate is the sole hard boundary.
"""

import re
from dataclasses import dataclass

from sqlscope.models.query import SQLWarning, WarningType


@dataclass(frozen=True)
class ScanRule:
    """One heuristic rule.

    The rule fires when any of ``patterns`` matches and ``unless`` (if set)
    does not.
    """

    patterns: tuple[re.Pattern[str], ...]
    message: str
    type: WarningType
    unless: re.Pattern[str] | None = None

    def matches(self, sql: str) -> bool:
        if not any(p.search(sql) for p in self.patterns):
            return False
        return self.unless is None or not self.unless.search(sql)


def _rule(
    patterns: list[str],
    message: str,
    warning_type: WarningType,
    unless: str | None = None,
) -> ScanRule:
    return ScanRule(
        patterns=tuple(re.compile(p, re.IGNORECASE) for p in patterns),
        message=message,
        type=warning_type,
        unless=re.compile(unless, re.IGNORECASE) if unless else None,
    )


SECURITY_RULES: list[ScanRule] = [
    _rule(
        [r"\bDROP\s+(TABLE|DATABASE|INDEX|VIEW)\b"],
        "DROP statement detected - this will permanently delete data",
        WarningType.SECURITY,
    ),
    _rule(
        [r"\bTRUNCATE\b"],
        "TRUNCATE statement detected - this will delete all rows",
        WarningType.SECURITY,
    ),
    _rule(
        [r"\bDELETE\s+FROM\b"],
        "DELETE without WHERE clause - this will delete all rows",
        WarningType.SECURITY,
        unless=r"\bWHERE\b",
    ),
    _rule(
        [r"\bUPDATE\b"],
        "UPDATE without WHERE clause - this will update all rows",
        WarningType.SECURITY,
        unless=r"\bWHERE\b",
    ),
    _rule(
        [r"('|\")\s*;\s*--", r"'\s*OR\s+'?\d+'?\s*=\s*'?\d+"],
        "Potential SQL injection pattern detected",
        WarningType.SECURITY,
    ),
]

PERFORMANCE_RULES: list[ScanRule] = [
    _rule(
        [r"\bSELECT\s+\*"],
        "SELECT * detected - consider selecting only needed columns",
        WarningType.PERFORMANCE,
    ),
    _rule(
        [r"\bSELECT\b"],
        "Query without LIMIT - consider adding a limit for large tables",
        WarningType.PERFORMANCE,
        unless=r"\bLIMIT\b|\bTOP\b",
    ),
    _rule(
        [r"\bLIKE\s+['\"]%"],
        "LIKE with leading wildcard may prevent index usage",
        WarningType.PERFORMANCE,
    ),
    _rule(
        [r"\bWHERE\b[\s\S]*\bOR\b"],
        "OR in WHERE clause may prevent optimal index usage - consider UNION",
        WarningType.PERFORMANCE,
    ),
    _rule(
        [r"\bWHERE\b[\s\S]*\b(UPPER|LOWER|TRIM|SUBSTRING|CAST|CONVERT)\s*\("],
        "Function on column in WHERE clause may prevent index usage",
        WarningType.PERFORMANCE,
    ),
]


def _scan(sql: str, rules: list[ScanRule]) -> list[SQLWarning]:
    return [
        SQLWarning(message=rule.message, type=rule.type)
        for rule in rules
        if rule.matches(sql)
    ]


def scan_security(sql: str) -> list[SQLWarning]:
    """Run the security rules over raw SQL text."""
    return _scan(sql, SECURITY_RULES)


def scan_performance(sql: str) -> list[SQLWarning]:
    """Run the performance rules over raw SQL text."""
    return _scan(sql, PERFORMANCE_RULES)
