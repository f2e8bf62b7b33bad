#!/usr/bin/env python3
"""Command-line interface for Sicredi boleto sync.

Usage:
    python -m boleto_sync.sync.cli perform
    python -m boleto_sync.sync.cli client <customer-id> --output result.json
    python -m boleto_sync.sync.cli stats
    python -m boleto_sync.sync.cli watch --interval 30
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

from ..config import SyncSettings
from ..database import DatabaseManager
from ..gateway import get_gateway
from .adapters import build_sync_service
from .errors import SyncError
from .scheduler import SyncScheduler, MIN_INTERVAL_MINUTES, MAX_INTERVAL_MINUTES

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ITEM_ERRORS = 1
EXIT_FATAL = 2


def _emit(payload: dict, output_file: Optional[str]) -> None:
    output = json.dumps(payload, indent=2, default=str)
    if output_file:
        with open(output_file, "w") as f:
            f.write(output)
        logger.info(f"Result written to {output_file}")
    else:
        print(output)


async def run_command_async(
    command: str,
    settings: SyncSettings,
    client_id: Optional[str] = None,
    output_file: Optional[str] = None,
) -> int:
    """Run a one-shot sync command against the configured database.

    Returns:
        Exit code: 0 on success, 1 if some payments failed, 2 on a fatal error.
    """
    db = DatabaseManager(settings.database_url)
    await db.initialize()

    try:
        service = build_sync_service(
            db,
            get_gateway(settings.gateway),
            batch_limit=settings.batch_limit,
            stats_limit=settings.stats_limit,
        )

        try:
            if command == "stats":
                stats = await service.get_sync_stats()
                _emit(stats.model_dump(mode="json", by_alias=True), output_file)
                return EXIT_OK

            if command == "client":
                result = await service.sync_client_payments(client_id or "")
            else:
                result = await service.perform_sync()
        except SyncError as e:
            logger.error(f"Sync failed: [{e.code}] {e.message}")
            return EXIT_FATAL

        _emit(result.model_dump(mode="json", by_alias=True), output_file)
        if result.errors:
            logger.warning(f"Sync completed with {len(result.errors)} payment errors")
            return EXIT_ITEM_ERRORS
        return EXIT_OK

    finally:
        await db.shutdown()


async def watch_async(settings: SyncSettings, interval_minutes: int) -> int:
    """Run auto-sync in the foreground until interrupted."""
    db = DatabaseManager(settings.database_url)
    await db.initialize()

    scheduler = SyncScheduler(build_sync_service(
        db,
        get_gateway(settings.gateway),
        batch_limit=settings.batch_limit,
        stats_limit=settings.stats_limit,
    ))
    scheduler.start(interval_minutes)
    try:
        await asyncio.Event().wait()
    finally:
        scheduler.stop()
        await scheduler.drain()
        await db.shutdown()
    return EXIT_OK


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="boleto-sync",
        description="Reconcile Sicredi boleto payments with the bank and update client debts.",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    perform_parser = subparsers.add_parser("perform", help="Reconcile every pending boleto once")
    perform_parser.add_argument("--output", "-o", help="Output file path (default: stdout)")

    client_parser = subparsers.add_parser("client", help="Reconcile the boletos of one customer")
    client_parser.add_argument("client_id", help="Customer identifier")
    client_parser.add_argument("--output", "-o", help="Output file path (default: stdout)")

    stats_parser = subparsers.add_parser("stats", help="Show gateway status statistics")
    stats_parser.add_argument("--output", "-o", help="Output file path (default: stdout)")

    watch_parser = subparsers.add_parser("watch", help="Run auto-sync until interrupted")
    watch_parser.add_argument(
        "--interval", "-i",
        type=int,
        default=None,
        help=f"Minutes between passes ({MIN_INTERVAL_MINUTES}-{MAX_INTERVAL_MINUTES}, "
             f"default: SYNC_INTERVAL_MINUTES or 30)",
    )

    return parser


def main(args: Optional[list] = None) -> int:
    """Main entry point for the CLI.

    Args:
        args: Optional list of command-line arguments (for testing).

    Returns:
        Exit code.
    """
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return EXIT_ITEM_ERRORS

    try:
        settings = SyncSettings.from_env()
    except ValueError as e:
        logger.error(str(e))
        return EXIT_FATAL

    if parsed_args.command == "watch":
        if parsed_args.interval is None:
            interval = settings.interval_minutes
        else:
            interval = parsed_args.interval
        if not MIN_INTERVAL_MINUTES <= interval <= MAX_INTERVAL_MINUTES:
            logger.error(
                f"--interval must be between {MIN_INTERVAL_MINUTES} and {MAX_INTERVAL_MINUTES}"
            )
            return EXIT_FATAL
        try:
            return asyncio.run(watch_async(settings, interval))
        except KeyboardInterrupt:
            logger.info("Auto-sync interrupted")
            return EXIT_OK

    return asyncio.run(run_command_async(
        parsed_args.command,
        settings,
        client_id=getattr(parsed_args, "client_id", None),
        output_file=parsed_args.output,
    ))


if __name__ == "__main__":
    sys.exit(main())
