"""Structured logging.

Modules log through ``structlog.get_logger(__name__)`` with key/value events;
``setup_logging`` decides where they go and how they render. Driver loggers
(asyncpg, aiomysql) go through the stdlib handler configured alongside.
"""

import logging
import sys
from typing import Any, TextIO

import structlog

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Submitted SQL is never logged in full
SLOW_QUERY_SQL_PREVIEW = 200


def _level_number(level: str) -> int:
    name = level.upper()
    if name not in LOG_LEVELS:
        raise ValueError(f"Unknown log level: {level}")
    return logging.getLevelName(name)


def build_processors(json_format: bool, colors: bool = False) -> list[Any]:
    """Processor chain ending in a JSON or console renderer."""
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_format:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.set_exc_info)
        processors.append(structlog.dev.ConsoleRenderer(colors=colors))
    return processors


def setup_logging(
    level: str = "INFO",
    json_format: bool = False,
    stream: TextIO | None = None,
) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        json_format: Emit JSON lines instead of console output
        stream: Output stream (defaults to stderr so stdout stays clean for
            command output)

    Raises:
        ValueError: Unknown log level
    """
    stream = stream or sys.stderr
    level_number = _level_number(level)

    logging.basicConfig(format="%(message)s", stream=stream, level=level_number)

    structlog.configure(
        processors=build_processors(json_format, colors=stream.isatty()),
        wrapper_class=structlog.make_filtering_bound_logger(level_number),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )


class SlowQueryLogger:
    """Warn about executions slower than a threshold.

    Only a short preview of the SQL and its total length are logged.

    Example:
        >>> slow = SlowQueryLogger(threshold_seconds=5.0)
        >>> slow.log_if_slow(6.2, "SELECT * FROM events", dialect="postgres", row_count=50)
        True
    """

    def __init__(self, threshold_seconds: float = 5.0):
        self.threshold_seconds = threshold_seconds
        self.logger = structlog.get_logger("sqlscope.slow_query")

    def log_if_slow(self, duration_seconds: float, sql: str, **context: Any) -> bool:
        """Log a warning when ``duration_seconds`` reaches the threshold.

        Returns:
            Whether the query was logged as slow
        """
        if duration_seconds < self.threshold_seconds:
            return False
        preview = sql[:SLOW_QUERY_SQL_PREVIEW]
        self.logger.warning(
            "slow_query_detected",
            duration_seconds=round(duration_seconds, 3),
            threshold_seconds=self.threshold_seconds,
            sql_preview=preview,
            sql_length=len(sql),
            **context,
        )
        return True
