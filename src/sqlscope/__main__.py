"""Command line entry point.

Usage:
    # Validate SQL (reads stdin when SQL is "-")
    python -m sqlscope validate "SELECT * FROM users" --client-type mysql

    # Pretty-print SQL
    python -m sqlscope format "select a from t"

    # Show the paginated SQL that would be executed
    python -m sqlscope rewrite "SELECT * FROM users" --limit 20 --offset 40

    # Introspect a local SQLite database
    python -m sqlscope introspect-sqlite ./app.db
"""

import argparse
import asyncio
import json
import sys

from sqlscope.config import get_settings
from sqlscope.dialects import DEFAULT_CLIENT_TYPE, resolve_dialect
from sqlscope.infrastructure.connection import SQLiteConnection
from sqlscope.infrastructure.sql_parser import format_sql_code, validate_sql
from sqlscope.introspection import introspect_schema
from sqlscope.services.pagination import rewrite_pagination
from sqlscope.utils.logging import setup_logging


def create_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="sqlscope",
        description="SQL validation, pagination rewriting and schema introspection",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    validate_parser = subparsers.add_parser("validate", help="Validate SQL")
    validate_parser.add_argument("sql", help='SQL text, or "-" to read stdin')
    validate_parser.add_argument("--client-type", "-t", default=DEFAULT_CLIENT_TYPE)
    validate_parser.add_argument(
        "--read-only",
        action="store_true",
        help="Reject statements that are not reads",
    )

    format_parser = subparsers.add_parser("format", help="Pretty-print SQL")
    format_parser.add_argument("sql", help='SQL text, or "-" to read stdin')
    format_parser.add_argument("--client-type", "-t", default=DEFAULT_CLIENT_TYPE)

    rewrite_parser = subparsers.add_parser("rewrite", help="Apply server-side pagination")
    rewrite_parser.add_argument("sql", help='SQL text, or "-" to read stdin')
    rewrite_parser.add_argument("--client-type", "-t", default=DEFAULT_CLIENT_TYPE)
    rewrite_parser.add_argument("--limit", type=int, default=None)
    rewrite_parser.add_argument("--offset", type=int, default=0)

    introspect_parser = subparsers.add_parser(
        "introspect-sqlite",
        help="Introspect a SQLite database file",
    )
    introspect_parser.add_argument("path", help="Database file path")
    introspect_parser.add_argument("--budget", type=float, default=None, help="Seconds")
    introspect_parser.add_argument("--concurrency", type=int, default=None)

    return parser


def _read_sql(value: str) -> str:
    return sys.stdin.read() if value == "-" else value


def _print_json(data: dict) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


async def _introspect_sqlite(path: str, budget: float | None, concurrency: int | None) -> int:
    config = get_settings().introspection
    connection = SQLiteConnection.open(path)
    try:
        result = await introspect_schema(
            connection,
            "sqlite3",
            budget_seconds=budget or config.budget_seconds,
            concurrency=concurrency or config.concurrency,
        )
    finally:
        await connection.close()
    _print_json(result.model_dump(by_alias=True))
    return 0


def main() -> None:
    """Entry point for the sqlscope CLI."""
    parser = create_parser()
    args = parser.parse_args()

    settings = get_settings()
    setup_logging(settings.log_level, json_format=settings.log_format == "json")

    if args.command == "validate":
        result = validate_sql(_read_sql(args.sql), args.client_type, read_only=args.read_only)
        _print_json(result.model_dump(by_alias=True))
        sys.exit(0 if result.is_valid else 1)
    elif args.command == "format":
        print(format_sql_code(_read_sql(args.sql), args.client_type))
    elif args.command == "rewrite":
        paginated = rewrite_pagination(
            _read_sql(args.sql),
            args.limit,
            args.offset,
            resolve_dialect(args.client_type),
            settings.pagination_policy,
        )
        _print_json(paginated.model_dump(by_alias=True))
    elif args.command == "introspect-sqlite":
        sys.exit(asyncio.run(_introspect_sqlite(args.path, args.budget, args.concurrency)))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
