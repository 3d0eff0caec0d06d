#!/usr/bin/env python3
"""
Inspect and maintain a persisted error record store.

Usage:
    error-recovery list --limit 20        # Newest records
    error-recovery stats                  # Aggregate statistics
    error-recovery health                 # Health verdict (exit 1 when unhealthy)
    error-recovery purge --days 7         # Drop records older than 7 days
"""
import argparse
import asyncio
import json
import sys
from datetime import timedelta
from typing import Any

from .config import EngineConfig, configure_logging
from .engine import RecoveryEngine


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="error-recovery",
        description="Inspect and maintain the error record store"
    )
    parser.add_argument("--database-url", help="SQLAlchemy async URL (default: $ERROR_RECOVERY_DATABASE_URL)")
    parser.add_argument("--log-level", default=None, help="Logging level (default: $ERROR_RECOVERY_LOG_LEVEL or WARNING)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="Show newest records")
    list_parser.add_argument("--limit", type=int, default=None)

    subparsers.add_parser("stats", help="Show aggregate statistics")
    subparsers.add_parser("health", help="Run the health check")

    purge_parser = subparsers.add_parser("purge", help="Remove old records")
    purge_parser.add_argument("--days", type=float, default=7.0)

    return parser


def load_config(args: argparse.Namespace) -> EngineConfig:
    """Environment settings with command-line overrides applied."""
    overrides = {}
    if args.database_url:
        overrides["database_url"] = args.database_url
    if args.log_level:
        overrides["log_level"] = args.log_level.upper()
    return EngineConfig.from_env(**overrides)


async def run(args: argparse.Namespace, config: EngineConfig) -> tuple[int, Any]:
    async with RecoveryEngine(config) as engine:
        if args.command == "list":
            return 0, [record.to_dict() for record in engine.errors(args.limit)]
        if args.command == "stats":
            return 0, engine.stats().to_dict()
        if args.command == "health":
            report = engine.health_check()
            return (0 if report.healthy else 1), report.to_dict()
        removed = await engine.purge_older_than(timedelta(days=args.days))
        return 0, {"removed": removed}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config(args)
    configure_logging(config.log_level)

    exit_code, payload = asyncio.run(run(args, config))
    json.dump(payload, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
